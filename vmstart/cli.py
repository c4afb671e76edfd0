"""CLI entry points for vmstart."""

from __future__ import annotations

import argparse
import dataclasses
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from vmstart.config import build_invocation
from vmstart.constants import (
    CONTAINER_RUNTIMES,
    DEFAULT_CPU,
    DEFAULT_DISK,
    DEFAULT_MEMORY,
    DEFAULT_PROFILE,
    DEFAULT_RUNTIME,
)
from vmstart.exceptions import ConfigNotFoundError, ManagerError, PersistenceLoadError, PersistenceSaveError
from vmstart.fields import FIELDS, get_field
from vmstart.host import PlatformInfo, detect_platform
from vmstart.models import Config
from vmstart.provisioner import Provisioner, SummaryProvisioner
from vmstart.resolver import ConfigResolver, Resolution
from vmstart.store import ConfigStore
from vmstart.utils import log, validate_profile

START_DESCRIPTION = """\
Start the VM with the specified container runtime (and kubernetes if --with-kubernetes is passed).
The --runtime, --disk and --arch flags are only used on initial start and ignored on subsequent starts.
"""

START_EXAMPLES = """\
examples:
  vmstart start
  vmstart start --runtime containerd
  vmstart start --with-kubernetes
  vmstart start --runtime containerd --with-kubernetes
  vmstart start --cpu 4 --memory 8 --disk 100
  vmstart start --arch aarch64
  vmstart start --dns 1.1.1.1 --dns 8.8.8.8
"""


def build_parser(host: PlatformInfo) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vmstart", description="Start a VM hosting a container runtime")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Flags default to SUPPRESS so only the ones given on the command line reach the namespace.
    start = subparsers.add_parser(
        "start",
        help="start the VM",
        description=START_DESCRIPTION,
        epilog=START_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        argument_default=argparse.SUPPRESS,
    )
    start.add_argument("profile", nargs="?", default=DEFAULT_PROFILE, help="profile name (default: %(default)s)")
    start.add_argument("--dry-run", action="store_true", default=False, help="Resolve the configuration, then exit")
    start.add_argument(
        "--show-config", action="store_true", default=False, help="Show resolved configuration and exit"
    )

    start.add_argument(
        "-r", "--runtime", metavar="RUNTIME",
        help=f"container runtime ({', '.join(CONTAINER_RUNTIMES)}) (default: {DEFAULT_RUNTIME})",
    )
    start.add_argument("-c", "--cpu", type=int, help=f"number of CPUs (default: {DEFAULT_CPU})")
    start.add_argument("--cpu-type", help="the Qemu CPU type")
    start.add_argument("-m", "--memory", type=int, help=f"memory in GiB (default: {DEFAULT_MEMORY})")
    start.add_argument("-d", "--disk", type=int, help=f"disk size in GiB (default: {DEFAULT_DISK})")
    start.add_argument("-a", "--arch", help=f"architecture (aarch64, x86_64) (default: {host.arch})")

    if host.supports("network.address"):
        start.add_argument(
            "--network-address",
            action=argparse.BooleanOptionalAction,
            help="assign reachable IP address to the VM (default: true)",
        )
    if host.supports("network.user_mode"):
        start.add_argument(
            "--network-user-mode",
            action=argparse.BooleanOptionalAction,
            help="use Qemu user-mode network for internet, ignored if --no-network-address (default: true)",
        )

    start.add_argument(
        "-v", "--mount", action="append", metavar="PATH[:w]",
        help="directories to mount, suffix ':w' for writable",
    )
    start.add_argument(
        "-s", "--ssh-agent", action=argparse.BooleanOptionalAction, help="forward SSH agent to the VM"
    )
    start.add_argument(
        "-k", "--with-kubernetes", action=argparse.BooleanOptionalAction, help="start VM with Kubernetes"
    )
    start.add_argument("--kubernetes-version", help=argparse.SUPPRESS)
    start.add_argument("-e", "--env", action="append", metavar="KEY=VALUE", help=argparse.SUPPRESS)
    start.add_argument("-n", "--dns", action="append", metavar="IP", help="DNS servers for the VM")
    return parser


def load_persisted(store: ConfigStore) -> Tuple[Optional[Config], Optional[Exception]]:
    """Load the previous config; a failure is returned, never raised."""
    try:
        return store.load(), None
    except ConfigNotFoundError as exc:
        log("DEBUG", str(exc))
        return None, None
    except PersistenceLoadError as exc:
        return None, exc


def show_config(cfg: Config, prefix: str = "") -> None:
    """Print the resolved configuration."""
    for field in dataclasses.fields(cfg):
        value = getattr(cfg, field.name)
        if dataclasses.is_dataclass(value):
            print(f"  {prefix}{field.name}:")
            show_config(value, prefix=prefix + "  ")
        elif isinstance(value, tuple):
            print(f"  {prefix}{field.name}: {', '.join(value) if value else '[]'}")
        else:
            print(f"  {prefix}{field.name}: {value}")


def report_resolution(resolution: Resolution, persisted: Optional[Config]) -> None:
    for warning in resolution.warnings:
        log("WARN", warning)
    if resolution.bootstrap or persisted is None:
        return
    for name in resolution.creation_overrides:
        flag = FIELDS[name].flag
        previous = get_field(persisted, name)
        current = get_field(resolution.config, name)
        log("WARN", f"--{flag} changed from {previous} to {current}; it only takes effect when the VM is created")
    log("INFO", f"using {resolution.config.runtime} runtime")


def run_start(
    invocation: Config,
    explicitly_set: FrozenSet[str],
    host: PlatformInfo,
    store: ConfigStore,
    provisioner: Provisioner,
    dry_run: bool = False,
    show_only: bool = False,
) -> int:
    """Load, resolve, start, then save; the store is only written after a successful start."""
    persisted, load_error = load_persisted(store)
    resolution = ConfigResolver(host).resolve(invocation, explicitly_set, persisted, load_error=load_error)
    report_resolution(resolution, persisted)
    cfg = resolution.config

    if show_only:
        show_config(cfg)
        return 0

    if dry_run:
        log("INFO", f"=== Configuration (profile: {store.profile}) ===")
        show_config(cfg)
        log("INFO", "=== Dry-run complete (no VM started) ===")
        return 0

    try:
        provisioner.start(cfg)
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        import traceback

        traceback.print_exc()
        return 1

    try:
        store.save(cfg)
    except PersistenceSaveError as exc:
        log("ERROR", f"VM started but its configuration was not saved: {exc}")
        log("ERROR", "Settings from this start will not be remembered on the next start.")
        return 1
    return 0


def main(argv: Optional[List[str]] = None, provisioner: Optional[Provisioner] = None) -> int:
    host = detect_platform()
    parser = build_parser(host)
    args = parser.parse_args(argv)
    values: Dict[str, Any] = vars(args)

    try:
        profile = validate_profile(args.profile)
        invocation, explicitly_set = build_invocation(values, host)
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1

    if provisioner is None:
        provisioner = SummaryProvisioner()
    return run_start(
        invocation,
        explicitly_set,
        host,
        ConfigStore(profile),
        provisioner,
        dry_run=args.dry_run,
        show_only=args.show_config,
    )
