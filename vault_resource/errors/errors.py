"""
Custom exceptions for the Vault resource.

Exception hierarchy:
- VaultResourceError (base)
  - InvalidAddress: Vault server address cannot be parsed
  - BackendSealed: Vault cluster is sealed
  - InvalidEnum: value outside a closed set
    - InvalidAuthMethod
    - InvalidSecretEngine
  - AmbiguousAuthMethod: conflicting authentication signals
  - InvalidToken: malformed Vault token
  - NoRoleSpecified: role required by the auth method is missing
  - NoAuthInfo: login returned no auth information
  - MissingRequiredParam: mandatory secret parameter omitted
  - InvalidVersionFormat: KV2 version is not a nonnegative integer
  - BackendOperationFailed: transport/API failure, annotated with path or lease
  - InvalidRequest: malformed Concourse request
  - BatchOperationError: one or more secrets in a batch failed
"""

from __future__ import annotations

from typing import Any, Optional, Sequence


class VaultResourceError(Exception):
    """Base exception for all Vault resource errors."""

    def __init__(
        self,
        message: str,
        *,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.component = component
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.component:
            parts.append(f"[component={self.component}]")
        if self.details:
            parts.append(f"[details={self.details}]")
        return " ".join(parts)


# --- Client / authentication ---


class InvalidAddress(VaultResourceError):
    """Raised when the Vault server address lacks a scheme or host."""

    def __init__(self, address: str, *, component: Optional[str] = None) -> None:
        self.address = address
        super().__init__(
            f"{address} is not a valid Vault server address",
            component=component,
            details={"address": address},
        )


class BackendSealed(VaultResourceError):
    """Raised when the Vault cluster is sealed and no operation can run."""


class InvalidEnum(VaultResourceError):
    """Raised when a string is not a member of a closed enumeration."""

    def __init__(
        self,
        message: str,
        *,
        value: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.value = value
        details = details or {}
        if value is not None:
            details["value"] = value
        super().__init__(message, component=component, details=details)


class InvalidAuthMethod(InvalidEnum):
    """Raised for an unsupported authentication method."""


class InvalidSecretEngine(InvalidEnum):
    """Raised for an unsupported secrets engine, or an engine invalid for the operation."""


class AmbiguousAuthMethod(VaultResourceError):
    """Raised when a token and AWS parameters are both given without an explicit method."""


class InvalidToken(VaultResourceError):
    """Raised when the Vault token contains characters outside the allowed set."""


class NoRoleSpecified(VaultResourceError):
    """Raised when an auth method requiring a Vault role is given none."""


class NoAuthInfo(VaultResourceError):
    """Raised when a login handshake succeeds at transport level but returns no auth info."""


# --- Secrets ---


class MissingRequiredParam(VaultResourceError):
    """Raised when a mandatory secret parameter is empty."""

    def __init__(self, message: str, *, params: Sequence[str] = ()) -> None:
        self.params = list(params)
        super().__init__(message, details={"params": self.params} if self.params else None)


class InvalidVersionFormat(VaultResourceError):
    """Raised when a KV2 version is not a nonnegative integer."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(
            f"KV2 version must be a nonnegative integer, and {version} was input instead",
            details={"version": version},
        )


class BackendOperationFailed(VaultResourceError):
    """Raised when a call to the Vault API fails.

    The attempted path or lease id is attached so that the failure can be
    traced back to a specific secret.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        lease_id: Optional[str] = None,
        component: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.path = path
        self.lease_id = lease_id
        details = details or {}
        if path:
            details["path"] = path
        if lease_id:
            details["lease_id"] = lease_id
        super().__init__(message, component=component, details=details)


# --- Concourse ---


class InvalidRequest(VaultResourceError):
    """Raised when a check/in/out request is malformed or contradictory."""


class BatchOperationError(VaultResourceError):
    """Raised once after a batch completes if any secret operation failed."""

    def __init__(self, message: str, errors: Sequence[Exception]) -> None:
        self.errors = list(errors)
        super().__init__(message, details={"failures": len(self.errors)})

    def __str__(self) -> str:
        lines = [super().__str__()]
        lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)
