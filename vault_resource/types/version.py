"""
Secret versions.

A version reported to Concourse is either an ordinal (KV2 version numbers,
and the KV1 placeholder "0") or an opaque string (the lease expiration
timestamp of a dynamic secret). Parsing happens once, here, so the
reconciler branches on the type instead of re-parsing strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

_ORDINAL_RE = re.compile(r"[0-9]+")

# sortable local expiration timestamp, e.g. 2024-05-01-134502
TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"

# placeholder version for engines without versioning
KV1_VERSION = "0"


@dataclass(frozen=True, slots=True)
class Ordinal:
    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Ordinal version must be nonnegative, got {self.value}")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class OpaqueVersion:
    value: str

    def __str__(self) -> str:
        return self.value


Version = Union[Ordinal, OpaqueVersion]


def is_ordinal(raw: Optional[str]) -> bool:
    return raw is not None and _ORDINAL_RE.fullmatch(raw) is not None


def parse_version(raw: Optional[str]) -> Version:
    """Return an Ordinal for nonnegative decimal strings, an OpaqueVersion otherwise."""
    if raw is not None and is_ordinal(raw):
        return Ordinal(int(raw))
    return OpaqueVersion(raw or "")


def expiration_version(now: datetime, lease_duration: timedelta) -> str:
    """Render the expiration time of a lease issued at `now` as a version string."""
    return (now + lease_duration).strftime(TIMESTAMP_FORMAT)
