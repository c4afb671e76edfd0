"""Host platform detection for vmstart."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import FrozenSet

from vmstart.constants import ARCH_ALIASES, SUPPORTED_ARCHES
from vmstart.fields import FIELDS
from vmstart.utils import log


@dataclass(frozen=True)
class PlatformInfo:
    system: str  # "darwin", "linux", ...
    arch: str  # normalised host architecture

    @property
    def macos(self) -> bool:
        return self.system == "darwin"

    def supports(self, name: str) -> bool:
        """Return False for platform-gated fields the host cannot honour."""
        spec = FIELDS.get(name)
        if spec is None or not spec.platform_gated:
            return True
        # reachable address and user-mode networking are only wired up on macOS
        return self.macos

    def unsupported_fields(self) -> FrozenSet[str]:
        return frozenset(name for name in FIELDS if not self.supports(name))


def normalize_arch(raw: str) -> str:
    lowered = raw.strip().lower()
    return ARCH_ALIASES.get(lowered, lowered)


def _detect_system() -> str:
    return platform.system().lower()


def _detect_arch() -> str:
    """Map the host machine type to a VM architecture."""
    arch = normalize_arch(platform.machine())
    if arch not in SUPPORTED_ARCHES:
        log("DEBUG", f"Unknown host architecture '{arch}'; defaulting to x86_64")
        return "x86_64"
    return arch


def detect_platform() -> PlatformInfo:
    info = PlatformInfo(system=_detect_system(), arch=_detect_arch())
    gated = sorted(info.unsupported_fields())
    if gated:
        log("DEBUG", f"Settings unavailable on {info.system}: {', '.join(gated)}")
    return info
