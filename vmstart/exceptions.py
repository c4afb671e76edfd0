"""Custom exceptions for vmstart."""


class ManagerError(RuntimeError):
    """Raised on unrecoverable configuration or runtime errors."""


class ConfigError(ManagerError):
    """Raised when a flag value is invalid."""


class StartError(ManagerError):
    """Raised by a provisioner when the VM could not be started."""


class PersistenceLoadError(ManagerError):
    """Raised when the persisted configuration cannot be read or parsed."""


class ConfigNotFoundError(PersistenceLoadError):
    """Raised when no configuration has been persisted for the profile yet."""


class PersistenceSaveError(ManagerError):
    """Raised when the effective configuration could not be written."""
