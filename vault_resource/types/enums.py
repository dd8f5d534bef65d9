"""
Closed sets of authentication methods and secrets engines.

Every string coming from a pipeline definition is parsed through `validate`
before it reaches dispatch logic.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Literal, Union, overload

from vault_resource.errors.errors import InvalidAuthMethod, InvalidSecretEngine

logger = logging.getLogger(__name__)

CatalogKind = Literal["auth", "secret"]


class AuthMethod(str, Enum):
    """Supported Vault authentication methods."""

    TOKEN = "token"
    AWS_IAM = "aws"
    KUBERNETES = "kubernetes"


class SecretEngine(str, Enum):
    """Supported Vault secrets engines."""

    # static secret storage
    KV1 = "kv1"
    KV2 = "kv2"
    # dynamic credential generators
    DATABASE = "database"
    AWS = "aws"
    AZURE = "azure"
    CONSUL = "consul"
    KUBERNETES = "kubernetes"
    NOMAD = "nomad"
    RABBITMQ = "rabbitmq"
    SSH = "ssh"
    TERRAFORM = "terraform"

    @property
    def dynamic(self) -> bool:
        """Whether every read of this engine generates a new lease."""
        return self not in (SecretEngine.KV1, SecretEngine.KV2)

    @property
    def default_mount(self) -> str:
        if self is SecretEngine.KV1:
            return "kv"
        if self is SecretEngine.KV2:
            return "secret"
        return self.value


@overload
def validate(candidate: str, kind: Literal["auth"]) -> AuthMethod: ...


@overload
def validate(candidate: str, kind: Literal["secret"]) -> SecretEngine: ...


def validate(candidate: str, kind: CatalogKind) -> Union[AuthMethod, SecretEngine]:
    """Convert `candidate` into a member of the `kind` catalog.

    Raises:
        InvalidAuthMethod: `kind` is "auth" and `candidate` is not an AuthMethod.
        InvalidSecretEngine: `kind` is "secret" and `candidate` is not a SecretEngine.
        ValueError: `kind` is neither "auth" nor "secret".
    """
    if kind == "auth":
        try:
            return AuthMethod(candidate)
        except ValueError:
            logger.warning(f"string {candidate} could not be converted to AuthMethod enum")
            raise InvalidAuthMethod(
                f"{candidate} is not a supported Vault authentication method",
                value=candidate,
            ) from None
    if kind == "secret":
        try:
            return SecretEngine(candidate)
        except ValueError:
            logger.warning(f"string {candidate} could not be converted to SecretEngine enum")
            raise InvalidSecretEngine(
                f"{candidate} is not a supported Vault secrets engine",
                value=candidate,
            ) from None
    raise ValueError(f"Unknown catalog kind: {kind!r}")
