"""
Secret descriptors.

A descriptor is the validated identity of one secret. Static secrets (KV1,
KV2) are stored values; dynamic secrets are credentials generated on every
read and bound to a lease. The variant type carries `dynamic`, so it can never
disagree with the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import ClassVar, Union

from vault_resource.errors.errors import InvalidSecretEngine, MissingRequiredParam
from vault_resource.types.enums import SecretEngine, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaticSecret:
    engine: SecretEngine
    mount: str
    path: str

    dynamic: ClassVar[bool] = False

    def __post_init__(self) -> None:
        if self.engine.dynamic:
            raise InvalidSecretEngine(
                f"{self.engine.value} is not a static secrets engine", value=self.engine.value
            )

    @property
    def identifier(self) -> str:
        return f"{self.mount}-{self.path}"


@dataclass(frozen=True)
class DynamicSecret:
    engine: SecretEngine
    mount: str
    path: str

    dynamic: ClassVar[bool] = True

    def __post_init__(self) -> None:
        if not self.engine.dynamic:
            raise InvalidSecretEngine(
                f"{self.engine.value} is not a dynamic secrets engine", value=self.engine.value
            )

    @property
    def identifier(self) -> str:
        return f"{self.mount}-{self.path}"

    @property
    def creds_path(self) -> str:
        return f"{self.mount}/creds/{self.path}"


SecretDescriptor = Union[StaticSecret, DynamicSecret]


def build_descriptor(engine: str, mount: str, path: str) -> SecretDescriptor:
    """Validate caller input and construct the matching descriptor variant.

    Raises:
        MissingRequiredParam: engine or path is empty.
        InvalidSecretEngine: engine is not a supported secrets engine.
    """
    missing = [name for name, value in (("engine", engine), ("path", path)) if not value]
    if missing:
        logger.error("the secret engine and path parameters are mandatory")
        raise MissingRequiredParam(
            "the secret engine and path parameters are mandatory", params=missing
        )

    secret_engine = validate(engine, "secret")

    if not mount:
        mount = secret_engine.default_mount
        logger.debug(f"using default mount '{mount}' for the {secret_engine.value} secrets engine")

    if secret_engine.dynamic:
        return DynamicSecret(engine=secret_engine, mount=mount, path=path)
    return StaticSecret(engine=secret_engine, mount=mount, path=path)
