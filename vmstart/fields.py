"""Field classification for persisted start settings.

Every setting the resolver carries across restarts is listed in ``FIELDS``
together with the flag that sets it and whether it only takes effect when the
VM is created. Field names are dotted attribute paths into ``Config``.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Dict, NamedTuple

from vmstart.models import Config


class FieldClass(Enum):
    CREATION_ONLY = "creation-only"
    EVERY_START = "every-start"


class FieldSpec(NamedTuple):
    name: str
    flag: str
    field_class: FieldClass
    platform_gated: bool = False


RUNTIME = "runtime"
DISK = "disk"
ARCH = "arch"
KUBERNETES_VERSION = "kubernetes.version"
KUBERNETES_ENABLED = "kubernetes.enabled"
CPU = "cpu"
CPU_TYPE = "cpu_type"
MEMORY = "memory"
MOUNTS = "mounts"
FORWARD_AGENT = "forward_agent"
DNS = "dns"
NETWORK_ADDRESS = "network.address"
NETWORK_USER_MODE = "network.user_mode"
ENV = "env"

_SPECS = (
    FieldSpec(RUNTIME, "runtime", FieldClass.CREATION_ONLY),
    FieldSpec(DISK, "disk", FieldClass.CREATION_ONLY),
    FieldSpec(ARCH, "arch", FieldClass.CREATION_ONLY),
    FieldSpec(KUBERNETES_VERSION, "kubernetes-version", FieldClass.CREATION_ONLY),
    FieldSpec(KUBERNETES_ENABLED, "with-kubernetes", FieldClass.EVERY_START),
    FieldSpec(CPU, "cpu", FieldClass.EVERY_START),
    FieldSpec(CPU_TYPE, "cpu-type", FieldClass.EVERY_START),
    FieldSpec(MEMORY, "memory", FieldClass.EVERY_START),
    FieldSpec(MOUNTS, "mount", FieldClass.EVERY_START),
    FieldSpec(FORWARD_AGENT, "ssh-agent", FieldClass.EVERY_START),
    FieldSpec(DNS, "dns", FieldClass.EVERY_START),
    FieldSpec(NETWORK_ADDRESS, "network-address", FieldClass.EVERY_START, platform_gated=True),
    FieldSpec(NETWORK_USER_MODE, "network-user-mode", FieldClass.EVERY_START, platform_gated=True),
)

FIELDS: Dict[str, FieldSpec] = {spec.name: spec for spec in _SPECS}

# Never carried over from the persisted config; always taken from the invocation.
SESSION_FIELDS = frozenset({ENV})

KNOWN_FIELDS = frozenset(FIELDS) | SESSION_FIELDS


def field_class(name: str) -> FieldClass:
    return FIELDS[name].field_class


def get_field(config: Config, name: str) -> Any:
    """Read a dotted field path such as ``kubernetes.version``."""
    value: Any = config
    for part in name.split("."):
        value = getattr(value, part)
    return value


def replace_field(config: Any, name: str, value: Any) -> Any:
    """Return a copy of ``config`` with the dotted field path set to ``value``."""
    head, _, rest = name.partition(".")
    if not rest:
        return dataclasses.replace(config, **{head: value})
    child = replace_field(getattr(config, head), rest, value)
    return dataclasses.replace(config, **{head: child})
