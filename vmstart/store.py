"""Per-profile persistence of the effective configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from vmstart.constants import CONFIG_FILE_NAME, CONFIG_HOME, DEFAULT_PROFILE
from vmstart.exceptions import ConfigNotFoundError, PersistenceLoadError, PersistenceSaveError
from vmstart.models import Config, Kubernetes, Network
from vmstart.utils import atomic_write_text, log


def config_to_dict(config: Config) -> Dict[str, Any]:
    return {
        "runtime": config.runtime,
        "cpu": config.cpu,
        "cpuType": config.cpu_type,
        "memory": config.memory,
        "disk": config.disk,
        "arch": config.arch,
        "mounts": list(config.mounts),
        "forwardAgent": config.forward_agent,
        "dns": list(config.dns),
        "network": {
            "address": config.network.address,
            "userMode": config.network.user_mode,
        },
        "kubernetes": {
            "enabled": config.kubernetes.enabled,
            "version": config.kubernetes.version,
        },
        "env": dict(config.env),
    }


def _typed(data: Dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; reject it where a number is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise PersistenceLoadError(f"'{key}' must be of type {kind.__name__} (got {type(value).__name__})")
    return value


def _string_list(data: Dict[str, Any], key: str) -> Tuple[str, ...]:
    items = _typed(data, key, list, [])
    if not all(isinstance(item, str) for item in items):
        raise PersistenceLoadError(f"'{key}' must be a list of strings")
    return tuple(items)


def config_from_dict(data: Dict[str, Any]) -> Config:
    """Build a Config from a persisted mapping; missing keys load as zero values."""
    network = _typed(data, "network", dict, {})
    kubernetes = _typed(data, "kubernetes", dict, {})
    env = _typed(data, "env", dict, {})
    return Config(
        runtime=_typed(data, "runtime", str, ""),
        cpu=_typed(data, "cpu", int, 0),
        cpu_type=_typed(data, "cpuType", str, ""),
        memory=_typed(data, "memory", int, 0),
        disk=_typed(data, "disk", int, 0),
        arch=_typed(data, "arch", str, ""),
        mounts=_string_list(data, "mounts"),
        forward_agent=_typed(data, "forwardAgent", bool, False),
        dns=_string_list(data, "dns"),
        network=Network(
            address=_typed(network, "address", bool, False),
            user_mode=_typed(network, "userMode", bool, False),
        ),
        kubernetes=Kubernetes(
            enabled=_typed(kubernetes, "enabled", bool, False),
            version=_typed(kubernetes, "version", str, ""),
        ),
        env={str(key): str(value) for key, value in env.items()},
    )


class ConfigStore:
    """YAML file holding the last successfully started config of a profile."""

    def __init__(self, profile: str = DEFAULT_PROFILE, home: Optional[Path] = None) -> None:
        self.profile = profile
        self.home = home if home is not None else CONFIG_HOME

    @property
    def path(self) -> Path:
        return self.home / self.profile / CONFIG_FILE_NAME

    def load(self) -> Config:
        path = self.path
        if not path.exists():
            raise ConfigNotFoundError(f"config file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PersistenceLoadError(f"cannot read {path}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise PersistenceLoadError(f"cannot decode {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise PersistenceLoadError(f"invalid YAML in {path}: {exc}") from exc
        if data is None:
            return Config.empty()
        if not isinstance(data, dict):
            raise PersistenceLoadError(f"{path} must contain a YAML mapping, got {type(data).__name__}")
        try:
            return config_from_dict(data)
        except PersistenceLoadError as exc:
            raise PersistenceLoadError(f"invalid config in {path}: {exc}") from exc

    def save(self, config: Config) -> None:
        """Replace the persisted config; the previous record survives a failed write."""
        path = self.path
        try:
            payload = yaml.safe_dump(config_to_dict(config), default_flow_style=False, sort_keys=False)
            atomic_write_text(path, payload)
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceSaveError(f"failed to save config to {path}: {exc}") from exc
        log("DEBUG", f"Saved config for profile '{self.profile}' to {path}")
