"""Invocation layer: turn parsed flag values into the invocation config."""

from __future__ import annotations

from typing import Any, Callable, Dict, FrozenSet, Mapping, Tuple

from vmstart import fields
from vmstart.constants import CONTAINER_RUNTIMES, SUPPORTED_ARCHES
from vmstart.exceptions import ConfigError
from vmstart.host import PlatformInfo, normalize_arch
from vmstart.models import Config
from vmstart.utils import check_positive_int, parse_env_pairs, parse_mount, split_values, validate_dns


def flag_dest(flag: str) -> str:
    """argparse destination for a long flag name."""
    return flag.replace("-", "_")


# argparse destination -> dotted config field
FLAG_FIELDS: Dict[str, str] = {flag_dest(spec.flag): spec.name for spec in fields.FIELDS.values()}
FLAG_FIELDS["env"] = fields.ENV


def default_config(host: PlatformInfo) -> Config:
    """Built-in defaults for this host, before any flag is applied."""
    return Config(arch=host.arch)


def _runtime(value: str) -> str:
    runtime = value.strip().lower()
    if runtime not in CONTAINER_RUNTIMES:
        raise ConfigError(f"Unsupported runtime '{value}'. Supported: {', '.join(CONTAINER_RUNTIMES)}")
    return runtime


def _arch(value: str) -> str:
    arch = normalize_arch(value)
    if arch not in SUPPORTED_ARCHES:
        raise ConfigError(f"Unsupported arch '{value}'. Supported: {', '.join(SUPPORTED_ARCHES)}")
    return arch


def _mounts(values: Any) -> Tuple[str, ...]:
    mounts = split_values(values)
    for raw in mounts:
        parse_mount(raw)
    return tuple(mounts)


def _dns(values: Any) -> Tuple[str, ...]:
    return tuple(validate_dns(raw) for raw in split_values(values))


def _kubernetes_version(value: str) -> str:
    version = value.strip()
    if not version:
        raise ConfigError("--kubernetes-version must not be empty")
    return version


_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    fields.RUNTIME: _runtime,
    fields.CPU: lambda value: check_positive_int("cpu", value),
    fields.MEMORY: lambda value: check_positive_int("memory", value),
    fields.DISK: lambda value: check_positive_int("disk", value),
    fields.ARCH: _arch,
    fields.CPU_TYPE: lambda value: value.strip(),
    fields.MOUNTS: _mounts,
    fields.DNS: _dns,
    fields.KUBERNETES_VERSION: _kubernetes_version,
    fields.ENV: lambda values: parse_env_pairs(split_values(values)),
}


def build_invocation(values: Mapping[str, Any], host: PlatformInfo) -> Tuple[Config, FrozenSet[str]]:
    """Apply the flags the user supplied on top of the defaults.

    ``values`` holds only the flags given on the command line (argparse
    defaults are suppressed), so presence alone marks a field as explicit,
    even when the supplied value equals the default.
    """
    config = default_config(host)
    explicit = set()
    for dest, name in FLAG_FIELDS.items():
        if dest not in values or not host.supports(name):
            continue
        convert = _CONVERTERS.get(name)
        value = values[dest]
        if convert is not None:
            value = convert(value)
        config = fields.replace_field(config, name, value)
        explicit.add(name)
    return config, frozenset(explicit)
