"""Data models for vmstart."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, NamedTuple, Tuple

from vmstart.constants import (
    DEFAULT_CPU,
    DEFAULT_DISK,
    DEFAULT_KUBERNETES_VERSION,
    DEFAULT_MEMORY,
    DEFAULT_RUNTIME,
)


class MountSpec(NamedTuple):
    location: str
    writable: bool


@dataclass(frozen=True)
class Network:
    address: bool = True  # reachable IP address for the VM
    user_mode: bool = True  # ignored when address is False


@dataclass(frozen=True)
class Kubernetes:
    enabled: bool = False
    version: str = DEFAULT_KUBERNETES_VERSION


@dataclass(frozen=True)
class Config:
    """Settings for one start of the VM.

    Instances are never mutated; derive a new value with ``dataclasses.replace``.
    """

    runtime: str = DEFAULT_RUNTIME
    cpu: int = DEFAULT_CPU
    cpu_type: str = ""
    memory: int = DEFAULT_MEMORY  # GiB
    disk: int = DEFAULT_DISK  # GiB
    arch: str = "x86_64"
    mounts: Tuple[str, ...] = ()
    forward_agent: bool = False
    dns: Tuple[str, ...] = ()
    network: Network = field(default_factory=Network)
    kubernetes: Kubernetes = field(default_factory=Kubernetes)
    env: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "Config":
        """Return the zero value, as loaded when nothing has been persisted."""
        return cls(
            runtime="",
            cpu=0,
            memory=0,
            disk=0,
            arch="",
            network=Network(address=False, user_mode=False),
            kubernetes=Kubernetes(enabled=False, version=""),
        )

    def is_empty(self) -> bool:
        return self.runtime == ""
