"""
Configuration types for Vault client construction.

Provides immutable configuration consumed by the AuthResolver. Wire-level
parsing lives in vault_resource.concourse.models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_ADDRESS = "http://127.0.0.1:8200"
DEFAULT_AWS_MOUNT = "aws"
DEFAULT_KUBERNETES_MOUNT = "kubernetes"


@dataclass(frozen=True)
class SourceConfig:
    """Semantic view of the resource `source` block relevant to authentication."""

    # Vault server
    address: str = ""
    insecure: bool = False

    # Authentication
    auth_method: Optional[str] = None  # deduced when omitted
    token: str = ""
    aws_mount: str = ""
    aws_role: str = ""
    kubernetes_mount: str = ""
    kubernetes_role: str = ""

    @property
    def has_aws_params(self) -> bool:
        return bool(self.aws_mount or self.aws_role)

    def __repr__(self) -> str:
        # never render the token
        token = "***REDACTED***" if self.token else "''"
        return (
            f"SourceConfig(address={self.address!r}, insecure={self.insecure}, "
            f"auth_method={self.auth_method!r}, token={token}, aws_mount={self.aws_mount!r}, "
            f"aws_role={self.aws_role!r}, kubernetes_mount={self.kubernetes_mount!r}, "
            f"kubernetes_role={self.kubernetes_role!r})"
        )
