"""
Read, write and renew operations over a secret descriptor.

Dispatch is on the descriptor variant first (dynamic credentials versus
static key-value secrets) and on the KV engine second. Backend failures
propagate as BackendOperationFailed; nothing here retries or turns a failure
into an empty success.

A KV2 version that was deleted or destroyed is not a failure: the read
returns empty data tagged with the requested version, or with the version
Vault reports when the deleted version is the latest one. Only a KV2 secret
that does not exist at all raises.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional

from vault_resource.adapters.clock import SystemClock
from vault_resource.core.auth import AuthSession
from vault_resource.core.secret import DynamicSecret, SecretDescriptor, StaticSecret
from vault_resource.errors.errors import (
    BackendOperationFailed,
    InvalidSecretEngine,
    InvalidVersionFormat,
)
from vault_resource.ports.clock import Clock
from vault_resource.types.enums import SecretEngine
from vault_resource.types.types import KVSecret, SecretMetadata, SecretValue
from vault_resource.types.version import KV1_VERSION, expiration_version, is_ordinal

logger = logging.getLogger(__name__)

_SYSTEM_CLOCK = SystemClock()


# --- read ---------------------------------------------------------------------------------------


def read_secret(
    session: AuthSession,
    descriptor: SecretDescriptor,
    version: Optional[str] = None,
    *,
    clock: Clock = _SYSTEM_CLOCK,
) -> SecretValue:
    """Return the secret value and metadata for `descriptor`.

    `version` only applies to KV2 secrets; empty or None reads the latest.
    """
    if isinstance(descriptor, DynamicSecret):
        return _generate_credentials(session, descriptor, clock)
    if isinstance(descriptor, StaticSecret):
        return _retrieve_kv_secret(session, descriptor, version)
    raise InvalidSecretEngine(f"unsupported secret descriptor: {descriptor!r}")


def _generate_credentials(session: AuthSession, secret: DynamicSecret, clock: Clock) -> SecretValue:
    backend = session.backend
    if secret.engine is SecretEngine.SSH:
        raw = backend.generate_ssh_credential(secret.mount, secret.path)
    else:
        raw = backend.read(secret.creds_path)

    if raw is None:
        logger.error(
            f"failed to generate credentials for {secret.path} with {secret.engine.value} secrets engine"
        )
        raise BackendOperationFailed(
            "no credentials were returned by the secrets engine",
            path=secret.creds_path,
            details={"engine": secret.engine.value},
        )

    metadata = SecretMetadata.from_raw(raw)
    metadata = replace(metadata, version=expiration_version(clock.now(), metadata.lease_duration))
    return SecretValue(data=dict(raw.data or {}), metadata=metadata)


def _retrieve_kv_secret(
    session: AuthSession, secret: StaticSecret, version: Optional[str]
) -> SecretValue:
    backend = session.backend
    location = f"{secret.mount}/{secret.path}"

    if secret.engine is SecretEngine.KV1:
        if version:
            logger.info(
                "versions cannot be used with the KV1 secrets engine, and the input parameter "
                "will be ignored"
            )
        kv_secret = backend.read_kv1(secret.mount, secret.path)
        if kv_secret is None:
            raise BackendOperationFailed(
                f"failed to read secret at mount {secret.mount} and path {secret.path} "
                "from kv1 secrets engine",
                path=location,
            )
        metadata = SecretMetadata.from_raw(kv_secret.raw, version=KV1_VERSION)
        return SecretValue(data=dict(kv_secret.data or {}), metadata=metadata)

    if secret.engine is SecretEngine.KV2:
        version_int: Optional[int] = None
        if version:
            if not is_ordinal(version):
                logger.error(f"KV2 version must be an integer, and {version} was input instead")
                raise InvalidVersionFormat(version)
            version_int = int(version)

        kv_secret = backend.read_kv2(secret.mount, secret.path, version_int)
        if kv_secret is None and version_int is None:
            raise BackendOperationFailed(
                f"failed to read secret at mount {secret.mount} and path {secret.path} "
                "from kv2 secrets engine",
                path=location,
            )
        if kv_secret is None or kv_secret.data is None:
            # deleted, destroyed or never written: no data, tagged with the requested version
            # (or, for a deleted latest version, the version Vault reports)
            if not version and kv_secret is not None and kv_secret.version is not None:
                version = str(kv_secret.version)
            logger.warning(
                f"the input version {version or 'latest'} does not exist for the secret at mount "
                f"{secret.mount} and path {secret.path} from kv2 secrets engine"
            )
            raw_metadata = (
                SecretMetadata.from_raw(kv_secret.raw) if kv_secret is not None else SecretMetadata()
            )
            return SecretValue(data={}, metadata=replace(raw_metadata, version=version or ""))

        return SecretValue(data=dict(kv_secret.data), metadata=_kv2_metadata(kv_secret))

    raise InvalidSecretEngine(
        f"an invalid secret engine {secret.engine.value} was selected", value=secret.engine.value
    )


# --- write --------------------------------------------------------------------------------------


def write_secret(
    session: AuthSession,
    descriptor: SecretDescriptor,
    data: dict[str, Any],
    *,
    patch: bool = False,
) -> SecretMetadata:
    """Create or update a key-value secret and return its metadata.

    `patch` merges into the existing KV2 secret instead of replacing it.
    """
    if isinstance(descriptor, DynamicSecret):
        logger.error(
            f"the {descriptor.engine.value} secrets engine generates credentials and cannot be written"
        )
        raise InvalidSecretEngine(
            f"secrets cannot be written to the dynamic {descriptor.engine.value} secrets engine",
            value=descriptor.engine.value,
        )

    backend = session.backend
    if descriptor.engine is SecretEngine.KV1:
        if patch:
            logger.info("patch is not supported by the KV1 secrets engine; the secret is overwritten")
        backend.write_kv1(descriptor.mount, descriptor.path, data)
        return SecretMetadata(version=KV1_VERSION)

    if descriptor.engine is SecretEngine.KV2:
        if patch:
            kv_secret = backend.patch_kv2(descriptor.mount, descriptor.path, data)
        else:
            kv_secret = backend.write_kv2(descriptor.mount, descriptor.path, data)
        return _kv2_metadata(kv_secret)

    raise InvalidSecretEngine(
        f"an invalid secret engine {descriptor.engine.value} was selected",
        value=descriptor.engine.value,
    )


# --- renew --------------------------------------------------------------------------------------


def lease_id_for(secret: DynamicSecret, lease_id_suffix: str) -> str:
    return f"{secret.creds_path}/{lease_id_suffix}"


def renew_secret(
    session: AuthSession,
    descriptor: SecretDescriptor,
    lease_id_suffix: str,
    *,
    clock: Clock = _SYSTEM_CLOCK,
) -> SecretMetadata:
    """Renew the lease of a dynamic secret.

    Static secrets have no lease: empty metadata is returned and nothing is raised.
    """
    if not isinstance(descriptor, DynamicSecret):
        logger.info(
            f"the input secret with engine {descriptor.engine.value} at mount {descriptor.mount} "
            f"and path {descriptor.path} is not renewable"
        )
        return SecretMetadata()

    lease_id = lease_id_for(descriptor, lease_id_suffix)
    try:
        raw = session.backend.renew_lease(lease_id)
    except BackendOperationFailed as exc:
        logger.error(f"the secret with lease ID {lease_id} could not be renewed")
        if exc.lease_id == lease_id:
            raise
        raise BackendOperationFailed(str(exc), lease_id=lease_id, path=exc.path) from exc

    metadata = SecretMetadata.from_raw(raw)
    return replace(metadata, version=expiration_version(clock.now(), metadata.lease_duration))


# --- helpers ------------------------------------------------------------------------------------


def _kv2_metadata(kv_secret: KVSecret) -> SecretMetadata:
    version = str(kv_secret.version) if kv_secret.version is not None else ""
    return SecretMetadata.from_raw(kv_secret.raw, version=version)

