"""Global constants and path configuration for vmstart."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_PROFILE = "default"

# VMSTART_HOME holds one directory per profile with its persisted config.
_HOME = os.environ.get("VMSTART_HOME")
if _HOME:
    CONFIG_HOME = Path(_HOME).expanduser()
else:
    CONFIG_HOME = Path.home() / ".vmstart"
CONFIG_FILE_NAME = "vmstart.yaml"

DEFAULT_RUNTIME = "docker"
CONTAINER_RUNTIMES = ("docker", "containerd")

DEFAULT_CPU = 2
DEFAULT_MEMORY = 2  # GiB
DEFAULT_DISK = 60  # GiB
DEFAULT_KUBERNETES_VERSION = "v1.23.4"

SUPPORTED_ARCHES = ("x86_64", "aarch64")

ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
}

WRITABLE_MOUNT_SUFFIX = ":w"

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in {"1", "true", "yes", "on"}
