"""
Concourse request and response models.

Requests arrive as one JSON document on stdin; responses leave as one JSON
document on stdout. Structural validation is done by pydantic, semantic
validation (contradictory or missing secret declarations) by the
`parse_*_request` constructors, which raise InvalidRequest.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError

from vault_resource.config.configs import SourceConfig
from vault_resource.errors.errors import InvalidRequest
from vault_resource.types.enums import SecretEngine
from vault_resource.types.types import SecretMetadata

logger = logging.getLogger(__name__)

# --- shared ---


class SecretSource(BaseModel):
    """A single secret declared in `source.secret`."""

    engine: str = ""
    mount: str = ""
    path: str = ""
    lease_id: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.engine or self.mount or self.path or self.lease_id)


class Source(BaseModel):
    model_config = ConfigDict(extra="ignore")

    address: str = ""
    insecure: bool = False
    auth_engine: Optional[str] = None
    token: str = ""
    aws_mount_path: str = ""
    aws_vault_role: str = ""
    kubernetes_mount_path: str = ""
    kubernetes_vault_role: str = ""
    secret: Optional[SecretSource] = None

    @property
    def has_secret(self) -> bool:
        return self.secret is not None and not self.secret.is_empty

    def to_config(self) -> SourceConfig:
        return SourceConfig(
            address=self.address,
            insecure=self.insecure,
            auth_method=self.auth_engine or None,
            token=self.token,
            aws_mount=self.aws_mount_path,
            aws_role=self.aws_vault_role,
            kubernetes_mount=self.kubernetes_mount_path,
            kubernetes_role=self.kubernetes_vault_role,
        )


class Version(BaseModel):
    version: str = ""


class MetadataEntry(BaseModel):
    name: str
    value: str


# --- check ---


class CheckRequest(BaseModel):
    source: Source = Field(default_factory=Source)
    version: Optional[Version] = None

    @property
    def last_version(self) -> Optional[str]:
        return self.version.version if self.version else None


class CheckResponse(RootModel[list[Version]]):
    @classmethod
    def from_versions(cls, versions: list[str]) -> "CheckResponse":
        return cls([Version(version=version) for version in versions])


# --- in/get ---


class SecretParams(BaseModel):
    """Secrets to read from one mount (the params key)."""

    engine: str = ""
    paths: list[str] = Field(default_factory=list)


class InRequest(BaseModel):
    source: Source = Field(default_factory=Source)
    params: Optional[dict[str, SecretParams]] = None
    version: Optional[Version] = None


# --- out/put ---


class SecretPutParams(BaseModel):
    """Secrets to write into one mount (the params key); `secrets` is keyed by path."""

    engine: str = ""
    patch: bool = False
    secrets: dict[str, dict[str, Any]] = Field(default_factory=dict)


class OutRequest(BaseModel):
    source: Source = Field(default_factory=Source)
    params: Optional[dict[str, SecretPutParams]] = None


class ResourceResponse(BaseModel):
    """Response of the in and out steps."""

    version: dict[str, str] = Field(default_factory=dict)
    metadata: list[MetadataEntry] = Field(default_factory=list)

    def record(self, identifier: str, metadata: SecretMetadata, *, with_metadata: bool = True) -> None:
        self.version[identifier] = metadata.version
        if with_metadata:
            self.metadata.extend(metadata_entries(identifier, metadata))


def format_duration(duration: timedelta) -> str:
    """Render whole seconds in Go duration notation: 768h0m0s, 1m30s, 45s, 0s."""
    seconds = int(duration.total_seconds())
    sign = "-" if seconds < 0 else ""
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def metadata_entries(prefix: str, metadata: SecretMetadata) -> list[MetadataEntry]:
    """Render lease information as Concourse metadata entries."""
    return [
        MetadataEntry(name=f"{prefix}-LeaseID", value=metadata.lease_id),
        MetadataEntry(name=f"{prefix}-LeaseDuration", value=format_duration(metadata.lease_duration)),
        MetadataEntry(name=f"{prefix}-Renewable", value=str(metadata.renewable).lower()),
    ]


# --- constructors ---


def _decode(model: type[BaseModel], payload: Union[str, bytes]) -> Any:
    try:
        return model.model_validate_json(payload)
    except ValidationError as exc:
        logger.error(f"error decoding pipeline input for {model.__name__} from JSON")
        raise InvalidRequest(
            f"malformed {model.__name__}: {exc.error_count()} validation error(s)",
            component="concourse",
            details={"errors": [err["msg"] for err in exc.errors()]},
        ) from exc


def parse_check_request(payload: Union[str, bytes]) -> CheckRequest:
    request: CheckRequest = _decode(CheckRequest, payload)

    secret = request.source.secret
    if (
        secret is not None
        and secret.engine == SecretEngine.KV1.value
        and request.last_version
    ):
        logger.error("version cannot be specified in conjunction with a kv version 1 engine secret")
        raise InvalidRequest("secret version specified with kv1", component="concourse")

    return request


def parse_in_request(payload: Union[str, bytes]) -> InRequest:
    request: InRequest = _decode(InRequest, payload)

    no_source_secret = not request.source.has_secret
    no_params_secret = not request.params

    if request.version is not None and request.version.version and not no_params_secret:
        logger.info(
            "version is ignored in the get step with params as it must be tied to a specific "
            "secret path"
        )

    if not no_source_secret and not no_params_secret:
        logger.error("secrets cannot be simultaneously specified in both source and params")
        raise InvalidRequest("dual secrets specified", component="concourse")
    if no_source_secret and no_params_secret:
        logger.error(
            "one secret must be specified in source, or one or more secrets in params, and "
            "neither was specified"
        )
        raise InvalidRequest("no secrets specified", component="concourse")

    return request


def parse_out_request(payload: Union[str, bytes]) -> OutRequest:
    request: OutRequest = _decode(OutRequest, payload)

    if request.source.has_secret:
        logger.info(
            "specifying a secret in source for a put step has no effect, and that value will "
            "be ignored during this step execution"
        )
    if not request.params:
        logger.error("no secret parameters were specified for this put step")
        raise InvalidRequest("empty params", component="concourse")

    return request
