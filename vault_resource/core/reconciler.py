"""
Version reconciliation for the check step.

Concourse remembers the last version it saw and expects every version
produced since then, oldest first. KV2 versions are ordinals and can be
expanded into a range; KV1 placeholders and dynamic-secret expiration
timestamps are opaque and are reported on their own.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from vault_resource.adapters.clock import SystemClock
from vault_resource.core.auth import AuthSession
from vault_resource.core.operations import renew_secret
from vault_resource.core.secret import DynamicSecret, SecretDescriptor
from vault_resource.ports.clock import Clock
from vault_resource.types.version import Ordinal, parse_version

logger = logging.getLogger(__name__)

LEASE_ID_RE = re.compile(r"^\w{8}-\w{4}-\w{4}-\w{4}-\w{12}$")


def is_valid_lease_id(lease_id: Optional[str]) -> bool:
    return lease_id is not None and LEASE_ID_RE.match(lease_id) is not None


def version_delta(last_seen: Optional[str], current: str) -> list[str]:
    """Return the versions to report, given the last seen and the current version.

    An absent or unparseable `last_seen` counts as version 0.
    """
    current_version = parse_version(current)
    if not isinstance(current_version, Ordinal):
        return [str(current_version)]

    last_version = parse_version(last_seen)
    start = last_version.value if isinstance(last_version, Ordinal) else 0

    if start > current_version.value:
        logger.warning(
            f"the input version {start} is later than the retrieved version {current}; "
            "only the retrieved version will be returned to Concourse"
        )
        return [str(current_version)]

    return [str(version) for version in range(start, current_version.value + 1)]


class VersionReconciler:
    """Reconcile versions, renewing dynamic leases first when a lease id is known."""

    def __init__(self, session: AuthSession, clock: Clock = SystemClock()) -> None:
        self._session = session
        self._clock = clock

    def reconcile(
        self,
        last_seen: Optional[str],
        current: str,
        descriptor: Optional[SecretDescriptor] = None,
        lease_id: Optional[str] = None,
    ) -> list[str]:
        if isinstance(descriptor, DynamicSecret) and not isinstance(parse_version(current), Ordinal):
            current = self._renewed_version(descriptor, current, lease_id)
        return version_delta(last_seen, current)

    def _renewed_version(self, descriptor: DynamicSecret, current: str, lease_id: Optional[str]) -> str:
        # an absent or invalid lease id skips renewal and keeps the pre-renewal version
        if not lease_id:
            logger.info("no lease id was specified, and the secret lease will not be renewed")
            return current
        if not is_valid_lease_id(lease_id):
            logger.warning(f"the specified lease id {lease_id} is invalid and will not be renewed")
            return current

        metadata = renew_secret(self._session, descriptor, lease_id, clock=self._clock)
        return metadata.version or current
