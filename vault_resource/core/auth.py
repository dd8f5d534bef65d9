"""
Vault authentication.

AuthResolver turns a SourceConfig into an authenticated AuthSession. All
input validation (address, method, token format, required role) runs before
the backend client is built, so malformed configuration never reaches the
network. Backend unavailability and login failures are terminal: there are
no retries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable, Optional
from urllib.parse import urlparse

from vault_resource.adapters.hvac_backend import HvacBackend
from vault_resource.config.configs import (
    DEFAULT_ADDRESS,
    DEFAULT_AWS_MOUNT,
    DEFAULT_KUBERNETES_MOUNT,
    SourceConfig,
)
from vault_resource.errors.errors import (
    AmbiguousAuthMethod,
    BackendSealed,
    InvalidAddress,
    InvalidToken,
    NoAuthInfo,
    NoRoleSpecified,
)
from vault_resource.ports.secret_backend import SecretBackend
from vault_resource.types.enums import AuthMethod, validate

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"^[a-zA-Z0-9.]+$")

BackendFactory = Callable[..., SecretBackend]


@dataclass(frozen=True)
class AuthSession:
    """Authenticated handle for one process invocation."""

    method: AuthMethod
    backend: SecretBackend
    address: str


@dataclass(frozen=True)
class _LoginPlan:
    method: AuthMethod
    mount: str = ""
    role: Optional[str] = None
    token: str = ""


def normalize_address(config: SourceConfig) -> SourceConfig:
    """Apply the address default and the plaintext-implies-insecure rule."""
    if not config.address:
        config = replace(config, address=DEFAULT_ADDRESS)
    else:
        parsed = urlparse(config.address)
        if not parsed.scheme or not parsed.netloc:
            logger.error(f"{config.address} is not a valid Vault server address")
            raise InvalidAddress(config.address, component="auth")

    if not config.insecure and urlparse(config.address).scheme == "http":
        logger.info(
            "insecure input parameter was omitted or specified as false, and address protocol "
            "is http; insecure will be reset to value of true"
        )
        config = replace(config, insecure=True)
    return config


def determine_method(config: SourceConfig) -> AuthMethod:
    """Validate the explicit auth method, or deduce it from the supplied parameters."""
    if config.auth_method:
        return validate(config.auth_method, "auth")

    if config.token and config.has_aws_params:
        logger.error("a token and AWS authentication parameters were both specified")
        raise AmbiguousAuthMethod(
            "unable to deduce the authentication method: token and AWS mount/role are "
            "mutually exclusive",
            component="auth",
        )
    if config.token:
        logger.info("authentication method deduced as token")
        return AuthMethod.TOKEN
    logger.info("authentication method deduced as AWS IAM")
    return AuthMethod.AWS_IAM


def plan_login(config: SourceConfig, method: AuthMethod) -> _LoginPlan:
    if method is AuthMethod.TOKEN:
        if not _TOKEN_RE.match(config.token):
            logger.error("the specified Vault token is invalid")
            raise InvalidToken("invalid vault token", component="auth")
        return _LoginPlan(method=method, token=config.token)

    if method is AuthMethod.AWS_IAM:
        mount = config.aws_mount
        if not mount:
            logger.info(f"using default AWS authentication mount path at '{DEFAULT_AWS_MOUNT}'")
            mount = DEFAULT_AWS_MOUNT
        if config.aws_role:
            logger.info(f"using Vault AWS role {config.aws_role} for authentication")
        else:
            logger.info(
                "using the Vault role with the same name as the currently utilized AWS IAM role"
            )
        return _LoginPlan(method=method, mount=mount, role=config.aws_role or None)

    if method is AuthMethod.KUBERNETES:
        mount = config.kubernetes_mount
        if not mount:
            logger.info(
                f"using default Kubernetes authentication mount path at '{DEFAULT_KUBERNETES_MOUNT}'"
            )
            mount = DEFAULT_KUBERNETES_MOUNT
        if not config.kubernetes_role:
            logger.error("a Kubernetes Vault role must be specified for the Kubernetes auth method")
            raise NoRoleSpecified("no kubernetes vault role specified", component="auth")
        return _LoginPlan(method=method, mount=mount, role=config.kubernetes_role)

    raise ValueError(f"Unhandled authentication method: {method!r}")


class AuthResolver:
    """Build an authenticated session from source configuration."""

    def __init__(self, backend_factory: BackendFactory = HvacBackend) -> None:
        self._backend_factory = backend_factory

    def resolve(self, config: SourceConfig) -> AuthSession:
        config = normalize_address(config)
        method = determine_method(config)
        plan = plan_login(config, method)

        backend = self._backend_factory(config.address, verify=not config.insecure)

        if backend.seal_status():
            logger.error("the Vault server cluster is sealed and no operations can be executed")
            raise BackendSealed("vault sealed", component="auth", details={"address": config.address})

        if plan.method is AuthMethod.TOKEN:
            backend.set_token(plan.token)
        else:
            auth_info = backend.login(plan.method, mount=plan.mount, role=plan.role)
            if not auth_info:
                logger.error(f"unable to authenticate to Vault via the {plan.method.value} method")
                raise NoAuthInfo(
                    "no auth info was returned after login",
                    component="auth",
                    details={"method": plan.method.value, "mount": plan.mount},
                )

        logger.debug(
            "vault_client_authenticated",
            extra={"event": "vault_client_authenticated", "method": plan.method.value},
        )
        return AuthSession(method=plan.method, backend=backend, address=config.address)
