"""Effective configuration resolution for vmstart.

The effective config for a start is computed from three layers:

* the invocation config: built-in defaults overridden by the flags the user
  supplied on this run,
* the set of fields the user supplied explicitly,
* the config persisted by the previous successful start, if any.

Explicit flags always win. Any other field tracked in ``vmstart.fields.FIELDS``
takes the persisted value: creation-only fields because the existing VM keeps
the value it was created with, every-start fields so an omitted flag does not
reset the setting to its default. Session fields (``env``) always come from
the invocation.

Resolution is pure: no I/O and no logging. Load failures are reported back
through ``Resolution.warnings`` for the caller to print.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Optional, Tuple

from vmstart.fields import FIELDS, KNOWN_FIELDS, FieldClass, field_class, get_field, replace_field
from vmstart.host import PlatformInfo
from vmstart.models import Config


@dataclass(frozen=True)
class Resolution:
    config: Config
    bootstrap: bool
    warnings: Tuple[str, ...] = ()
    # creation-only fields explicitly set to a value other than the persisted one
    creation_overrides: Tuple[str, ...] = ()


class ConfigResolver:
    """Merge invocation flags with the persisted config of a profile."""

    def __init__(self, host: PlatformInfo) -> None:
        self.host = host

    def resolve(
        self,
        invocation: Config,
        explicitly_set: AbstractSet[str],
        persisted: Optional[Config] = None,
        load_error: Optional[Exception] = None,
    ) -> Resolution:
        unknown = set(explicitly_set) - KNOWN_FIELDS
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")

        if load_error is not None:
            return Resolution(
                config=invocation,
                bootstrap=True,
                warnings=(
                    f"config load failed: {load_error}",
                    "reverting to default settings",
                ),
            )

        if persisted is None or persisted.is_empty():
            return Resolution(config=invocation, bootstrap=True)

        explicit = {name for name in explicitly_set if self.host.supports(name)}
        effective = invocation
        creation_overrides = []
        for name in FIELDS:
            if not self.host.supports(name):
                continue
            previous = get_field(persisted, name)
            if name in explicit:
                if field_class(name) is FieldClass.CREATION_ONLY and get_field(invocation, name) != previous:
                    creation_overrides.append(name)
                continue
            effective = replace_field(effective, name, previous)

        return Resolution(
            config=effective,
            bootstrap=False,
            creation_overrides=tuple(creation_overrides),
        )


def resolve(
    invocation: Config,
    explicitly_set: AbstractSet[str],
    persisted: Optional[Config],
    host: PlatformInfo,
    load_error: Optional[Exception] = None,
) -> Resolution:
    return ConfigResolver(host).resolve(invocation, explicitly_set, persisted, load_error=load_error)
