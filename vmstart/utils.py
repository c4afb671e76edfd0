"""Utility functions for vmstart."""

from __future__ import annotations

import ipaddress
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from vmstart.constants import _LOG_VERBOSE, WRITABLE_MOUNT_SUFFIX
from vmstart.exceptions import ConfigError
from vmstart.models import MountSpec


def log(level: str, message: str) -> None:
    """Lightweight structured logging compatible with existing colour expectation."""
    if level == "DEBUG" and not _LOG_VERBOSE:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)


def split_values(raw_values: Optional[Iterable[str]]) -> List[str]:
    """Flatten repeated, comma-separated flag values into a list."""
    values: List[str] = []
    for raw in raw_values or ():
        for item in raw.split(","):
            item = item.strip()
            if item:
                values.append(item)
    return values


def check_positive_int(name: str, value: int) -> int:
    if value < 1:
        raise ConfigError(f"--{name} must be >= 1 (got {value})")
    return value


def parse_mount(raw: str) -> MountSpec:
    """Parse a ``path[:w]`` mount specification."""
    location = raw
    writable = False
    if raw.endswith(WRITABLE_MOUNT_SUFFIX):
        location = raw[: -len(WRITABLE_MOUNT_SUFFIX)]
        writable = True
    location = location.strip()
    if not location:
        raise ConfigError(f"Invalid mount '{raw}': expected format path[:w]")
    if ":" in location:
        raise ConfigError(f"Invalid mount '{raw}': only the ':w' suffix is supported")
    return MountSpec(location=str(Path(location).expanduser()), writable=writable)


def validate_dns(raw: str) -> str:
    try:
        return str(ipaddress.ip_address(raw))
    except ValueError:
        raise ConfigError(f"Invalid DNS server '{raw}': must be an IP address")


def parse_env_pairs(entries: Iterable[str]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` entries; later keys win."""
    env: Dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Invalid env entry '{entry}': expected format KEY=VALUE")
        env[key] = value
    return env


def validate_profile(name: str) -> str:
    """Reject profile names that would escape the per-profile directory."""
    if not name.strip():
        raise ConfigError("Profile name must not be empty")
    if ".." in name or "/" in name or "\\" in name or os.sep in name:
        raise ConfigError(f"Invalid profile name '{name}': must not contain path separators or '..'")
    return name


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def atomic_write_text(destination: Path, payload: str) -> None:
    """Write payload next to destination, then move it into place."""
    ensure_directory(destination.parent)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", delete=False, dir=destination.parent, suffix=".tmp"
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(payload)
            tmp.flush()
            os.fsync(tmp.fileno())
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        tmp_path.replace(destination)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
