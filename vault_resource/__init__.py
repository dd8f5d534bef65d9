"""
Concourse resource for HashiCorp Vault secrets.

This package lets a pipeline step read, write and track versions of Vault
secrets, both static key-value secrets (KV1, KV2) and dynamically generated,
lease-bound credentials (database, AWS, SSH, ...).

Components:
- AuthResolver: validates source configuration and authenticates a session
- build_descriptor: validated identity of one secret (StaticSecret | DynamicSecret)
- read_secret / write_secret / renew_secret: secret operations
- VersionReconciler / version_delta: version sequence reported by check

Usage:
    from vault_resource import AuthResolver, SourceConfig, build_descriptor, read_secret

    session = AuthResolver().resolve(SourceConfig(address="https://vault:8200", token="hvs.x"))
    secret = build_descriptor("kv2", "", "app/db")
    value = read_secret(session, secret)
"""

from vault_resource.config.configs import SourceConfig
from vault_resource.core.auth import AuthResolver, AuthSession
from vault_resource.core.operations import read_secret, renew_secret, write_secret
from vault_resource.core.reconciler import VersionReconciler, version_delta
from vault_resource.core.secret import (
    DynamicSecret,
    SecretDescriptor,
    StaticSecret,
    build_descriptor,
)
from vault_resource.errors.errors import VaultResourceError
from vault_resource.types.enums import AuthMethod, SecretEngine, validate
from vault_resource.types.types import SecretMetadata, SecretValue

__all__ = [
    # Authentication
    "AuthResolver",
    "AuthSession",
    "SourceConfig",
    # Secrets
    "build_descriptor",
    "SecretDescriptor",
    "StaticSecret",
    "DynamicSecret",
    "read_secret",
    "write_secret",
    "renew_secret",
    # Versions
    "VersionReconciler",
    "version_delta",
    # Types
    "AuthMethod",
    "SecretEngine",
    "SecretMetadata",
    "SecretValue",
    "validate",
    # Errors
    "VaultResourceError",
]
