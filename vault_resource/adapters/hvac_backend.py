"""
HashiCorp Vault backend adapter.

Implements the SecretBackend port with the hvac client. AWS IAM logins are
signed with credentials from the boto3 default credential chain (environment,
shared config, instance profile); Kubernetes logins use the pod's
service-account JWT.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import boto3
import hvac
import requests
from hvac import exceptions as hvac_exceptions

from vault_resource.errors.errors import BackendOperationFailed, InvalidAuthMethod
from vault_resource.types.enums import AuthMethod
from vault_resource.types.types import KVSecret, RawSecret

_LOGGER = logging.getLogger(__name__)

SERVICE_ACCOUNT_JWT_PATH = Path("/var/run/secrets/kubernetes.io/serviceaccount/token")
DEFAULT_AWS_REGION = "us-east-1"

T = TypeVar("T")


def raw_secret_from_response(response: Optional[dict[str, Any]]) -> Optional[RawSecret]:
    """Convert an hvac JSON response into a RawSecret (None passes through)."""
    if response is None:
        return None
    return RawSecret(
        data=response.get("data"),
        lease_id=response.get("lease_id") or "",
        lease_duration=int(response.get("lease_duration") or 0),
        renewable=bool(response.get("renewable", False)),
    )


class HvacBackend:
    """Vault API primitives over a single hvac.Client."""

    def __init__(
        self,
        address: str,
        *,
        verify: bool = True,
        client: Optional[hvac.Client] = None,
        jwt_path: Path = SERVICE_ACCOUNT_JWT_PATH,
    ) -> None:
        self.address = address
        self._client = client if client is not None else hvac.Client(url=address, verify=verify)
        self._jwt_path = Path(jwt_path)

    def _call(
        self,
        operation: str,
        func: Callable[[], T],
        *,
        path: Optional[str] = None,
        lease_id: Optional[str] = None,
        missing_ok: bool = False,
    ) -> Optional[T]:
        """Run one hvac call, translating its failures into BackendOperationFailed."""
        start_time = time.perf_counter()
        try:
            result = func()
        except hvac_exceptions.InvalidPath as exc:
            if missing_ok:
                _LOGGER.debug(
                    "vault_path_missing",
                    extra={"event": "vault_path_missing", "operation": operation, "path": path},
                )
                return None
            raise BackendOperationFailed(
                f"{operation} failed: {exc}", path=path, lease_id=lease_id, component="hvac"
            ) from exc
        except (hvac_exceptions.VaultError, requests.exceptions.RequestException) as exc:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            _LOGGER.error(
                "Vault %s failed (%.1fms): %s (%s)",
                operation,
                elapsed_ms,
                exc,
                type(exc).__name__,
            )
            raise BackendOperationFailed(
                f"{operation} failed: {exc}", path=path, lease_id=lease_id, component="hvac"
            ) from exc

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        _LOGGER.debug("Vault %s completed (%.1fms)", operation, elapsed_ms)
        return result

    # --- system ---

    def seal_status(self) -> bool:
        status = self._call("seal status", self._client.sys.read_seal_status)
        return bool(status and status.get("sealed"))

    def set_token(self, token: str) -> None:
        self._client.token = token

    def renew_lease(self, lease_id: str, increment: Optional[int] = None) -> RawSecret:
        response = self._call(
            "lease renewal",
            lambda: self._client.sys.renew_lease(lease_id=lease_id, increment=increment),
            lease_id=lease_id,
        )
        raw = raw_secret_from_response(response)
        if raw is None:
            raise BackendOperationFailed("lease renewal returned no data", lease_id=lease_id)
        return raw

    # --- auth ---

    def login(self, method: AuthMethod, *, mount: str, role: Optional[str]) -> Optional[dict[str, Any]]:
        if method is AuthMethod.AWS_IAM:
            response = self._aws_iam_login(mount=mount, role=role)
        elif method is AuthMethod.KUBERNETES:
            response = self._kubernetes_login(mount=mount, role=role or "")
        else:
            raise InvalidAuthMethod(
                f"{method.value} authentication has no login handshake", value=method.value
            )
        if not response:
            return None
        return response.get("auth")

    def _aws_iam_login(self, *, mount: str, role: Optional[str]) -> Optional[dict[str, Any]]:
        session = boto3.Session()
        credentials = session.get_credentials()
        if credentials is None:
            raise BackendOperationFailed(
                "no AWS credentials could be found for Vault AWS IAM authentication",
                path=f"auth/{mount}/login",
            )
        frozen = credentials.get_frozen_credentials()
        return self._call(
            "AWS IAM login",
            lambda: self._client.auth.aws.iam_login(
                access_key=frozen.access_key,
                secret_key=frozen.secret_key,
                session_token=frozen.token,
                role=role or "",
                use_token=True,
                region=session.region_name or DEFAULT_AWS_REGION,
                mount_point=mount,
            ),
            path=f"auth/{mount}/login",
        )

    def _kubernetes_login(self, *, mount: str, role: str) -> Optional[dict[str, Any]]:
        try:
            jwt = self._jwt_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise BackendOperationFailed(
                f"unable to read the Kubernetes service account token at {self._jwt_path}",
                path=f"auth/{mount}/login",
            ) from exc
        return self._call(
            "Kubernetes login",
            lambda: self._client.auth.kubernetes.login(
                role=role, jwt=jwt, use_token=True, mount_point=mount
            ),
            path=f"auth/{mount}/login",
        )

    # --- dynamic credentials ---

    def read(self, path: str) -> Optional[RawSecret]:
        return raw_secret_from_response(self._call("read", lambda: self._client.read(path), path=path))

    def generate_ssh_credential(self, mount: str, role: str) -> Optional[RawSecret]:
        path = f"{mount}/creds/{role}"
        response = self._call(
            "SSH credential generation",
            lambda: self._client.write_data(path, data={}),
            path=path,
        )
        return raw_secret_from_response(response)

    # --- key-value ---

    def read_kv1(self, mount: str, path: str) -> Optional[KVSecret]:
        response = self._call(
            "KV1 read",
            lambda: self._client.secrets.kv.v1.read_secret(path=path, mount_point=mount),
            path=f"{mount}/{path}",
            missing_ok=True,
        )
        raw = raw_secret_from_response(response)
        if raw is None:
            return None
        return KVSecret(data=raw.data, version=None, raw=raw)

    def read_kv2(self, mount: str, path: str, version: Optional[int] = None) -> Optional[KVSecret]:
        response = self._call(
            "KV2 read",
            lambda: self._client.secrets.kv.v2.read_secret_version(
                path=path,
                version=version,
                mount_point=mount,
                raise_on_deleted_version=False,
            ),
            path=f"{mount}/{path}",
            missing_ok=True,
        )
        return self._kv2_secret(response)

    def write_kv1(self, mount: str, path: str, data: dict[str, Any]) -> None:
        self._call(
            "KV1 write",
            lambda: self._client.secrets.kv.v1.create_or_update_secret(
                path=path, secret=data, mount_point=mount
            ),
            path=f"{mount}/{path}",
        )

    def write_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret:
        response = self._call(
            "KV2 write",
            lambda: self._client.secrets.kv.v2.create_or_update_secret(
                path=path, secret=data, mount_point=mount
            ),
            path=f"{mount}/{path}",
        )
        return self._kv2_write_result(response, data, path=f"{mount}/{path}")

    def patch_kv2(self, mount: str, path: str, data: dict[str, Any]) -> KVSecret:
        response = self._call(
            "KV2 patch",
            lambda: self._client.secrets.kv.v2.patch(path=path, secret=data, mount_point=mount),
            path=f"{mount}/{path}",
        )
        return self._kv2_write_result(response, data, path=f"{mount}/{path}")

    @staticmethod
    def _kv2_secret(response: Optional[dict[str, Any]]) -> Optional[KVSecret]:
        # KV v2 response structure: response['data']['data'] and response['data']['metadata']
        raw = raw_secret_from_response(response)
        if raw is None:
            return None
        body = raw.data or {}
        metadata = body.get("metadata") or {}
        version = metadata.get("version")
        return KVSecret(
            data=body.get("data"),
            version=int(version) if version is not None else None,
            raw=raw,
        )

    @staticmethod
    def _kv2_write_result(
        response: Optional[dict[str, Any]], data: dict[str, Any], *, path: str
    ) -> KVSecret:
        # write responses carry the version metadata directly under 'data'
        raw = raw_secret_from_response(response)
        if raw is None or not raw.data or "version" not in raw.data:
            raise BackendOperationFailed("KV2 write returned no version metadata", path=path)
        return KVSecret(data=data, version=int(raw.data["version"]), raw=raw)
