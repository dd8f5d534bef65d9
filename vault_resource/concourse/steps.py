"""
check, in and out step runners.

Each runner authenticates once, then processes its secrets sequentially.
The in and out steps keep going when a single secret fails and raise one
BatchOperationError after every secret has been attempted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from vault_resource.adapters.clock import SystemClock
from vault_resource.adapters.secrets_file import SecretsFileWriter
from vault_resource.concourse.models import (
    CheckRequest,
    CheckResponse,
    InRequest,
    OutRequest,
    ResourceResponse,
)
from vault_resource.config.configs import SourceConfig
from vault_resource.core.auth import AuthResolver, AuthSession
from vault_resource.core.operations import read_secret, write_secret
from vault_resource.core.reconciler import VersionReconciler
from vault_resource.core.secret import build_descriptor
from vault_resource.errors.errors import BatchOperationError, VaultResourceError
from vault_resource.ports.clock import Clock
from vault_resource.types.version import KV1_VERSION

logger = logging.getLogger(__name__)

SessionFactory = Callable[[SourceConfig], AuthSession]


def _default_session_factory(config: SourceConfig) -> AuthSession:
    return AuthResolver().resolve(config)


def run_check(
    request: CheckRequest,
    *,
    session_factory: SessionFactory = _default_session_factory,
    clock: Clock = SystemClock(),
) -> CheckResponse:
    secret = request.source.secret
    if secret is None or secret.is_empty:
        # nothing to track: answer with a placeholder version without contacting Vault
        return CheckResponse.from_versions([KV1_VERSION])

    descriptor = build_descriptor(secret.engine, secret.mount, secret.path)
    session = session_factory(request.source.to_config())

    try:
        current = read_secret(session, descriptor, clock=clock)
    except VaultResourceError:
        logger.error(
            f"version could not be retrieved for {secret.engine} engine, {descriptor.mount} mount, "
            f"and path {secret.path} secret"
        )
        raise

    versions = VersionReconciler(session, clock).reconcile(
        request.last_version,
        current.metadata.version,
        descriptor,
        secret.lease_id or None,
    )
    return CheckResponse.from_versions(versions)


def _read_targets(request: InRequest) -> Iterator[tuple[str, str, str, Optional[str]]]:
    """Yield (engine, mount, path, version) for every secret declared by the request."""
    secret = request.source.secret
    if request.source.has_secret and secret is not None:
        version = request.version.version if request.version else None
        yield secret.engine, secret.mount, secret.path, version or None
        return
    for mount, params in (request.params or {}).items():
        for path in params.paths:
            yield params.engine, mount, path, None


def run_in(
    request: InRequest,
    destination: Path | str,
    *,
    session_factory: SessionFactory = _default_session_factory,
    clock: Clock = SystemClock(),
) -> ResourceResponse:
    session = session_factory(request.source.to_config())
    response = ResourceResponse()
    secret_values: dict[str, dict[str, Any]] = {}
    errors: list[Exception] = []

    for engine, mount, path, version in _read_targets(request):
        try:
            descriptor = build_descriptor(engine, mount, path)
            value = read_secret(session, descriptor, version, clock=clock)
        except VaultResourceError as exc:
            logger.error(
                f"the secret with engine {engine} at mount {mount} and path {path} will not be read"
            )
            errors.append(exc)
            continue

        secret_values[descriptor.identifier] = value.data
        response.record(descriptor.identifier, value.metadata)

    if errors:
        logger.error("one or more attempted secret Read operations failed")
        raise BatchOperationError("one or more attempted secret Read operations failed", errors)

    SecretsFileWriter(destination).write(secret_values)
    return response


def run_out(
    request: OutRequest,
    *,
    session_factory: SessionFactory = _default_session_factory,
) -> ResourceResponse:
    session = session_factory(request.source.to_config())
    response = ResourceResponse()
    errors: list[Exception] = []

    for mount, params in (request.params or {}).items():
        for path, value in params.secrets.items():
            try:
                descriptor = build_descriptor(params.engine, mount, path)
                metadata = write_secret(session, descriptor, value, patch=params.patch)
            except VaultResourceError as exc:
                logger.error(
                    f"the secret with engine {params.engine} at mount {mount} and path {path} "
                    "will not be created or updated"
                )
                errors.append(exc)
                continue

            response.record(descriptor.identifier, metadata)

    if errors:
        logger.error("one or more attempted secret Create/Update operations failed")
        raise BatchOperationError(
            "one or more attempted secret Create/Update operations failed", errors
        )

    return response
