"""
Unit tests for the hvac-backed SecretBackend adapter.

A MagicMock stands in for hvac.Client; the tests assert on the hvac calls made
and on how responses and failures are translated.
"""

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import requests
from hvac import exceptions as hvac_exceptions

from vault_resource.adapters import hvac_backend
from vault_resource.adapters.hvac_backend import HvacBackend, raw_secret_from_response
from vault_resource.errors.errors import BackendOperationFailed, InvalidAuthMethod
from vault_resource.types.enums import AuthMethod
from vault_resource.types.types import RawSecret

ADDRESS = "https://vault.example.com:8200"


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def adapter(client: MagicMock, tmp_path: Path) -> HvacBackend:
    return HvacBackend(ADDRESS, client=client, jwt_path=tmp_path / "token")


class TestResponseTranslation:
    """Tests for raw_secret_from_response."""

    def test_none_passes_through(self) -> None:
        assert raw_secret_from_response(None) is None

    def test_full_response(self) -> None:
        raw = raw_secret_from_response(
            {"data": {"a": "b"}, "lease_id": "x/y", "lease_duration": 60, "renewable": True}
        )
        assert raw == RawSecret(data={"a": "b"}, lease_id="x/y", lease_duration=60, renewable=True)

    def test_null_fields_default(self) -> None:
        raw = raw_secret_from_response({"data": None, "lease_id": None, "lease_duration": None})
        assert raw == RawSecret()


class TestClientConstruction:
    def test_builds_hvac_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client_cls = MagicMock()
        monkeypatch.setattr(hvac_backend.hvac, "Client", client_cls)

        HvacBackend("http://127.0.0.1:8200", verify=False)

        client_cls.assert_called_once_with(url="http://127.0.0.1:8200", verify=False)


class TestSystem:
    """Tests for seal status, token binding and lease renewal."""

    @pytest.mark.parametrize("sealed", [True, False])
    def test_seal_status(self, adapter: HvacBackend, client: MagicMock, sealed: bool) -> None:
        client.sys.read_seal_status.return_value = {"sealed": sealed, "initialized": True}
        assert adapter.seal_status() is sealed

    def test_set_token(self, adapter: HvacBackend, client: MagicMock) -> None:
        adapter.set_token("hvs.abc")
        assert client.token == "hvs.abc"

    def test_renew_lease(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.sys.renew_lease.return_value = {
            "lease_id": "database/creds/readonly/abc",
            "lease_duration": 7200,
            "renewable": True,
        }

        raw = adapter.renew_lease("database/creds/readonly/abc")

        client.sys.renew_lease.assert_called_once_with(
            lease_id="database/creds/readonly/abc", increment=None
        )
        assert raw.lease_duration == 7200
        assert raw.renewable is True

    def test_renew_lease_failure(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.sys.renew_lease.side_effect = hvac_exceptions.Forbidden("permission denied")

        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.renew_lease("database/creds/readonly/abc")

        assert exc_info.value.lease_id == "database/creds/readonly/abc"
        assert exc_info.value.component == "hvac"
        assert isinstance(exc_info.value.__cause__, hvac_exceptions.Forbidden)


class TestLogin:
    """Tests for the AWS IAM and Kubernetes login handshakes."""

    def test_token_has_no_handshake(self, adapter: HvacBackend) -> None:
        with pytest.raises(InvalidAuthMethod):
            adapter.login(AuthMethod.TOKEN, mount="", role=None)

    def test_kubernetes(self, adapter: HvacBackend, client: MagicMock, tmp_path: Path) -> None:
        (tmp_path / "token").write_text("jwt-value\n", encoding="utf-8")
        client.auth.kubernetes.login.return_value = {"auth": {"client_token": "hvs.k8s"}}

        auth = adapter.login(AuthMethod.KUBERNETES, mount="k8s", role="ci")

        client.auth.kubernetes.login.assert_called_once_with(
            role="ci", jwt="jwt-value", use_token=True, mount_point="k8s"
        )
        assert auth == {"client_token": "hvs.k8s"}

    def test_kubernetes_without_service_account(self, adapter: HvacBackend, client: MagicMock) -> None:
        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.login(AuthMethod.KUBERNETES, mount="kubernetes", role="ci")

        assert exc_info.value.path == "auth/kubernetes/login"
        client.auth.kubernetes.login.assert_not_called()

    def test_aws_iam(
        self, adapter: HvacBackend, client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        session = MagicMock()
        session.region_name = "eu-west-1"
        session.get_credentials.return_value.get_frozen_credentials.return_value = SimpleNamespace(
            access_key="AKIA", secret_key="secret", token="session"
        )
        monkeypatch.setattr(hvac_backend.boto3, "Session", MagicMock(return_value=session))
        client.auth.aws.iam_login.return_value = {"auth": {"client_token": "hvs.aws"}}

        auth = adapter.login(AuthMethod.AWS_IAM, mount="aws", role=None)

        client.auth.aws.iam_login.assert_called_once_with(
            access_key="AKIA",
            secret_key="secret",
            session_token="session",
            role="",
            use_token=True,
            region="eu-west-1",
            mount_point="aws",
        )
        assert auth == {"client_token": "hvs.aws"}

    def test_aws_iam_without_credentials(
        self, adapter: HvacBackend, client: MagicMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        session = MagicMock()
        session.get_credentials.return_value = None
        monkeypatch.setattr(hvac_backend.boto3, "Session", MagicMock(return_value=session))

        with pytest.raises(BackendOperationFailed):
            adapter.login(AuthMethod.AWS_IAM, mount="aws", role="deployer")
        client.auth.aws.iam_login.assert_not_called()

    def test_empty_login_response(self, adapter: HvacBackend, client: MagicMock, tmp_path: Path) -> None:
        (tmp_path / "token").write_text("jwt-value", encoding="utf-8")
        client.auth.kubernetes.login.return_value = None

        assert adapter.login(AuthMethod.KUBERNETES, mount="kubernetes", role="ci") is None


class TestDynamicCredentials:
    """Tests for generic reads and SSH credential generation."""

    def test_read(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.read.return_value = {
            "data": {"username": "u", "password": "p"},
            "lease_id": "database/creds/readonly/abc",
            "lease_duration": 3600,
            "renewable": True,
        }

        raw = adapter.read("database/creds/readonly")

        client.read.assert_called_once_with("database/creds/readonly")
        assert raw is not None
        assert raw.data == {"username": "u", "password": "p"}
        assert raw.lease_id == "database/creds/readonly/abc"

    def test_read_invalid_path(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.read.side_effect = hvac_exceptions.InvalidPath("no handler for route")

        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.read("database/creds/missing")
        assert exc_info.value.path == "database/creds/missing"

    def test_read_transport_failure(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.read.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.read("database/creds/readonly")
        assert "connection refused" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_generate_ssh_credential(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.write_data.return_value = {"data": {"key": "otp"}, "lease_duration": 600}

        raw = adapter.generate_ssh_credential("ssh", "otp_key_role")

        client.write_data.assert_called_once_with("ssh/creds/otp_key_role", data={})
        assert raw is not None
        assert raw.data == {"key": "otp"}


class TestKeyValue:
    """Tests for the KV1 and KV2 primitives."""

    def test_read_kv1(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v1.read_secret.return_value = {
            "data": {"password": "pw"},
            "lease_duration": 2764800,
        }

        kv_secret = adapter.read_kv1("kv", "app")

        client.secrets.kv.v1.read_secret.assert_called_once_with(path="app", mount_point="kv")
        assert kv_secret is not None
        assert kv_secret.data == {"password": "pw"}
        assert kv_secret.version is None

    def test_read_kv1_missing(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v1.read_secret.side_effect = hvac_exceptions.InvalidPath()
        assert adapter.read_kv1("kv", "missing") is None

    def test_read_kv2(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": {"k": "v"}, "metadata": {"version": 3}},
            "lease_duration": 0,
        }

        kv_secret = adapter.read_kv2("secret", "app", 3)

        client.secrets.kv.v2.read_secret_version.assert_called_once_with(
            path="app", version=3, mount_point="secret", raise_on_deleted_version=False
        )
        assert kv_secret is not None
        assert kv_secret.data == {"k": "v"}
        assert kv_secret.version == 3

    def test_read_kv2_deleted_version(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.read_secret_version.return_value = {
            "data": {"data": None, "metadata": {"version": 2, "deletion_time": "2024-05-01T00:00:00Z"}},
        }

        kv_secret = adapter.read_kv2("secret", "app", 2)

        assert kv_secret is not None
        assert kv_secret.data is None
        assert kv_secret.version == 2

    def test_read_kv2_missing(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.read_secret_version.side_effect = hvac_exceptions.InvalidPath()
        assert adapter.read_kv2("secret", "app", 9) is None

    def test_read_kv2_forbidden(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.read_secret_version.side_effect = hvac_exceptions.Forbidden()

        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.read_kv2("secret", "app")
        assert exc_info.value.path == "secret/app"

    def test_write_kv1(self, adapter: HvacBackend, client: MagicMock) -> None:
        adapter.write_kv1("kv", "app", {"a": "b"})

        client.secrets.kv.v1.create_or_update_secret.assert_called_once_with(
            path="app", secret={"a": "b"}, mount_point="kv"
        )

    def test_write_kv2(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.create_or_update_secret.return_value = {
            "data": {"version": 5, "created_time": "2024-05-01T12:00:00Z"},
        }

        kv_secret = adapter.write_kv2("secret", "app", {"a": "b"})

        client.secrets.kv.v2.create_or_update_secret.assert_called_once_with(
            path="app", secret={"a": "b"}, mount_point="secret"
        )
        assert kv_secret.version == 5
        assert kv_secret.data == {"a": "b"}

    def test_write_kv2_without_version(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.create_or_update_secret.return_value = {"data": {}}

        with pytest.raises(BackendOperationFailed) as exc_info:
            adapter.write_kv2("secret", "app", {"a": "b"})
        assert "no version metadata" in str(exc_info.value)

    def test_patch_kv2(self, adapter: HvacBackend, client: MagicMock) -> None:
        client.secrets.kv.v2.patch.return_value = {"data": {"version": 6}}

        kv_secret = adapter.patch_kv2("secret", "app", {"a": "c"})

        client.secrets.kv.v2.patch.assert_called_once_with(
            path="app", secret={"a": "c"}, mount_point="secret"
        )
        assert kv_secret.version == 6
