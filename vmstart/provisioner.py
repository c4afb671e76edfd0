"""Provisioner interface consumed by the start command."""

from __future__ import annotations

from vmstart.models import Config
from vmstart.utils import log, parse_mount


class Provisioner:
    """Starts the VM described by an effective config.

    The config handed over has every creation-only field reconciled with the
    existing VM, so implementations never look at persisted state themselves.
    Implementations raise ``StartError`` when the VM could not be started.
    """

    def start(self, config: Config) -> None:
        raise NotImplementedError


class SummaryProvisioner(Provisioner):
    """Report the effective config; used when no VM backend is wired in."""

    def start(self, config: Config) -> None:
        log("INFO", f"Runtime: {config.runtime} | Arch: {config.arch}")
        cpu_info = f"CPUs: {config.cpu}"
        if config.cpu_type:
            cpu_info += f" ({config.cpu_type})"
        log("INFO", f"{cpu_info} | Memory: {config.memory} GiB | Disk: {config.disk} GiB")
        for idx, raw in enumerate(config.mounts, start=1):
            mount = parse_mount(raw)
            mode = "rw" if mount.writable else "ro"
            log("INFO", f"Mount #{idx}: {mount.location} ({mode})")
        if config.dns:
            log("INFO", f"DNS: {', '.join(config.dns)}")
        if config.forward_agent:
            log("INFO", "SSH agent forwarding: enabled")
        if config.kubernetes.enabled:
            log("INFO", f"Kubernetes: {config.kubernetes.version}")
        if config.network.address:
            mode = "user-mode" if config.network.user_mode else "default"
            log("INFO", f"Network: reachable address ({mode} internet)")
        log("SUCCESS", "VM configuration ready")
