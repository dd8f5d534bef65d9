"""
Value types shared between the backend port, the secret operations and the
Concourse steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional


@dataclass(frozen=True)
class RawSecret:
    """Lease-bearing response of a Vault API call (credentials, KV reads, renewals)."""

    data: Optional[dict[str, Any]] = None
    lease_id: str = ""
    lease_duration: int = 0  # seconds
    renewable: bool = False


@dataclass(frozen=True)
class KVSecret:
    """Key-value secret as returned by the KV engines.

    `data` is None when the requested version was deleted or destroyed.
    `version` is None for KV1 (no versioning).
    """

    data: Optional[dict[str, Any]]
    version: Optional[int] = None
    raw: RawSecret = field(default_factory=RawSecret)


@dataclass(frozen=True)
class SecretMetadata:
    lease_id: str = ""
    lease_duration: timedelta = timedelta(0)
    renewable: bool = False
    version: str = ""

    @classmethod
    def from_raw(cls, raw: RawSecret, version: str = "") -> "SecretMetadata":
        return cls(
            lease_id=raw.lease_id,
            lease_duration=timedelta(seconds=raw.lease_duration),
            renewable=raw.renewable,
            version=version,
        )

    @property
    def empty(self) -> bool:
        return self == SecretMetadata()


@dataclass(frozen=True)
class SecretValue:
    data: dict[str, Any]
    metadata: SecretMetadata

    @property
    def empty(self) -> bool:
        return not self.data
