import logging
from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from vault_resource.adapters.hvac_backend import HvacBackend
from vault_resource.core.auth import AuthSession
from vault_resource.errors.errors import BackendOperationFailed
from vault_resource.types.enums import AuthMethod
from vault_resource.types.types import KVSecret, RawSecret

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
VAULT_ADDRESS = "https://vault.example.com:8200"


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    # Keep test logging deterministic and avoid leaking handlers between tests.
    logger = logging.getLogger("vault_resource")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


class FixedClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now


class InMemoryKVBackend:
    """Key-value half of the SecretBackend port, backed by dicts."""

    def __init__(self) -> None:
        self.token = ""
        self.kv1: dict[tuple[str, str], dict[str, Any]] = {}
        self.kv2: dict[tuple[str, str], list[dict[str, Any]]] = {}

    def seal_status(self) -> bool:
        return False

    def set_token(self, token: str) -> None:
        self.token = token

    def read_kv1(self, mount: str, path: str) -> Optional[KVSecret]:
        data = self.kv1.get((mount, path))
        if data is None:
            return None
        return KVSecret(data=dict(data), raw=RawSecret(data=dict(data), lease_duration=2764800))

    def write_kv1(self, mount: str, path: str, data: dict[str, Any]) -> None:
        self.kv1[(mount, path)] = dict(data)

    def read_kv2(self, mount: str, path: str, version: Optional[int] = None) -> Optional[KVSecret]:
        versions = self.kv2.get((mount, path))
        if not versions:
            return None
        number = version or len(versions)
        if number > len(versions):
            return None
        data = dict(versions[number - 1])
        body = {"data": data, "metadata": {"version": number}}
        return KVSecret(data=data, version=number, raw=RawSecret(data=body))

    def write_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret:
        versions = self.kv2.setdefault((mount, path), [])
        versions.append(dict(data))
        number = len(versions)
        return KVSecret(data=dict(data), version=number, raw=RawSecret(data={"version": number}))

    def patch_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret:
        versions = self.kv2.get((mount, path))
        if not versions:
            raise BackendOperationFailed("KV2 patch failed: secret does not exist", path=f"{mount}/{path}")
        return self.write_kv2(mount, path, {**versions[-1], **data})


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-05-01 12:00:00 UTC."""
    return FixedClock()


@pytest.fixture
def backend() -> MagicMock:
    """Mocked Vault backend: unsealed, login succeeds."""
    backend = MagicMock(spec=HvacBackend)
    backend.seal_status.return_value = False
    backend.login.return_value = {"client_token": "hvs.login"}
    return backend


@pytest.fixture
def session(backend: MagicMock) -> AuthSession:
    return AuthSession(method=AuthMethod.TOKEN, backend=backend, address=VAULT_ADDRESS)


@pytest.fixture
def kv_backend() -> InMemoryKVBackend:
    return InMemoryKVBackend()


@pytest.fixture
def kv_session(kv_backend: InMemoryKVBackend) -> AuthSession:
    return AuthSession(method=AuthMethod.TOKEN, backend=kv_backend, address=VAULT_ADDRESS)
