"""vmstart package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "exceptions",
    "fields",
    "host",
    "models",
    "provisioner",
    "resolver",
    "store",
    "utils",
]
