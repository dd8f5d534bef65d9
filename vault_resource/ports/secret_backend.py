"""SecretBackend Port Interface.

Contract: The Vault API primitives the resource relies on. Implementations
translate transport and API failures into BackendOperationFailed and report
a missing path or version as None. No retries, no caching.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from vault_resource.types.enums import AuthMethod
from vault_resource.types.types import KVSecret, RawSecret


class SecretBackend(Protocol):
    def seal_status(self) -> bool:
        """Return True when the Vault cluster is sealed."""
        ...

    def set_token(self, token: str) -> None: ...

    def login(self, method: AuthMethod, *, mount: str, role: Optional[str]) -> Optional[dict[str, Any]]:
        """Perform a login handshake and return the auth block (None if Vault returned none)."""
        ...

    def read(self, path: str) -> Optional[RawSecret]: ...

    def generate_ssh_credential(self, mount: str, role: str) -> Optional[RawSecret]: ...

    def read_kv1(self, mount: str, path: str) -> Optional[KVSecret]: ...

    def read_kv2(self, mount: str, path: str, version: Optional[int] = None) -> Optional[KVSecret]: ...

    def write_kv1(self, mount: str, path: str, data: dict[str, Any]) -> None: ...

    def write_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret: ...

    def patch_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret: ...

    def renew_lease(self, lease_id: str, increment: Optional[int] = None) -> RawSecret: ...
