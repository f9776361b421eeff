"""Tests for docker endpoint materialization."""

import base64
import json
import os
from unittest.mock import MagicMock, patch

import pytest

from keymaterial.endpoints import (
    DockerServerEndpoint,
    DockerRegistryEndpoint,
    materialize_all,
    DOCKER_HUB_AUTH_KEY,
)
from keymaterial.errors import MaterializationError, ReleaseError
from keymaterial.material import NULL, EnvKeyMaterial, FileKeyMaterial


@pytest.mark.unit
class TestDockerServerEndpoint:
    """Tests for DockerServerEndpoint."""

    def test_nothing_configured_gives_null(self):
        """Test an empty endpoint materializes to NULL."""
        assert DockerServerEndpoint().materialize() is NULL

    def test_plain_uri_needs_no_files(self):
        """Test a daemon without TLS only sets DOCKER_HOST."""
        material = DockerServerEndpoint("tcp://h1:2375").materialize()

        assert isinstance(material, EnvKeyMaterial)
        assert material.environment() == {"DOCKER_HOST": "tcp://h1:2375"}

    def test_tls_writes_key_files(self, tmp_path):
        """Test TLS material is written and exposed through the environment."""
        endpoint = DockerServerEndpoint(
            "tcp://h1:2376",
            ca_cert="CA PEM",
            client_cert="CERT PEM",
            client_key="KEY PEM",
        )

        with endpoint.materialize(base_dir=str(tmp_path)) as material:
            env = material.environment()
            cert_path = env["DOCKER_CERT_PATH"]

            assert isinstance(material, FileKeyMaterial)
            assert env["DOCKER_HOST"] == "tcp://h1:2376"
            assert env["DOCKER_TLS_VERIFY"] == "1"
            assert os.path.dirname(cert_path) == str(tmp_path)
            for name, content in (("ca.pem", "CA PEM"),
                                  ("cert.pem", "CERT PEM"),
                                  ("key.pem", "KEY PEM")):
                with open(os.path.join(cert_path, name)) as f:
                    assert f.read() == content

        assert not os.path.exists(cert_path)

    def test_tls_without_uri_omits_host(self, tmp_path):
        """Test the default daemon address is kept when no uri is given."""
        endpoint = DockerServerEndpoint(ca_cert="CA PEM")

        with endpoint.materialize(base_dir=str(tmp_path)) as material:
            env = material.environment()

            assert "DOCKER_HOST" not in env
            assert os.listdir(env["DOCKER_CERT_PATH"]) == ["ca.pem"]

    def test_write_failure_removes_directory(self, tmp_path):
        """Test a partially written directory does not leak."""
        endpoint = DockerServerEndpoint("tcp://h1:2376", ca_cert="CA", client_key="KEY")

        with patch.object(FileKeyMaterial, "write_secret",
                          side_effect=MaterializationError("disk full")):
            with pytest.raises(MaterializationError, match="disk full"):
                endpoint.materialize(base_dir=str(tmp_path))

        assert os.listdir(tmp_path) == []

    def test_unexpected_write_error_removes_directory(self, tmp_path):
        """Test errors other than MaterializationError still remove the directory."""
        endpoint = DockerServerEndpoint("tcp://h1:2376", ca_cert="CA", client_key="KEY")

        with patch.object(FileKeyMaterial, "write_secret",
                          side_effect=OSError("device error")):
            with pytest.raises(OSError, match="device error"):
                endpoint.materialize(base_dir=str(tmp_path))

        assert os.listdir(tmp_path) == []

    def test_non_string_pem_removes_written_files(self, tmp_path):
        """Test a bad certificate value after a good one leaves nothing on disk."""
        endpoint = DockerServerEndpoint("tcp://h1:2376", ca_cert="CA PEM", client_cert=12345)

        with pytest.raises(TypeError):
            endpoint.materialize(base_dir=str(tmp_path))

        assert os.listdir(tmp_path) == []


@pytest.mark.unit
class TestDockerRegistryEndpoint:
    """Tests for DockerRegistryEndpoint."""

    def test_no_credentials_gives_null(self):
        """Test an anonymous registry needs no material."""
        assert DockerRegistryEndpoint("https://registry.example.com").materialize() is NULL

    @pytest.mark.parametrize("url,expected", [
        (None, DOCKER_HUB_AUTH_KEY),
        ("", DOCKER_HUB_AUTH_KEY),
        ("https://index.docker.io/v1/", DOCKER_HUB_AUTH_KEY),
        ("docker.io", DOCKER_HUB_AUTH_KEY),
        ("https://registry.example.com", "registry.example.com"),
        ("registry.example.com:5000", "registry.example.com:5000"),
        ("https://registry.example.com:5000/v2/", "registry.example.com:5000"),
    ])
    def test_auth_key(self, url, expected):
        """Test the config.json key derived from the registry url."""
        assert DockerRegistryEndpoint(url).auth_key == expected

    def test_writes_docker_config(self, tmp_path):
        """Test login credentials end up in DOCKER_CONFIG/config.json."""
        endpoint = DockerRegistryEndpoint("https://registry.example.com",
                                          username="ci", password="s3cret")

        with endpoint.materialize(base_dir=str(tmp_path)) as material:
            config_dir = material.environment()["DOCKER_CONFIG"]
            with open(os.path.join(config_dir, "config.json")) as f:
                config = json.load(f)

        auth = config["auths"]["registry.example.com"]["auth"]
        assert base64.b64decode(auth).decode() == "ci:s3cret"
        assert not os.path.exists(config_dir)


@pytest.mark.unit
class TestMaterializeAll:
    """Tests for materialize_all."""

    def test_no_endpoints_gives_null(self):
        """Test an empty endpoint list materializes to NULL."""
        assert materialize_all([]) is NULL

    def test_merges_server_and_registry(self, tmp_path):
        """Test the combined environment covers both endpoints."""
        endpoints = [
            DockerServerEndpoint("tcp://h1"),
            DockerRegistryEndpoint("registry.example.com", username="ci", password="pw"),
        ]

        with materialize_all(endpoints, base_dir=str(tmp_path)) as material:
            env = material.environment()
            config_dir = env["DOCKER_CONFIG"]

            assert env["DOCKER_HOST"] == "tcp://h1"
            assert os.path.isdir(config_dir)

        assert not os.path.exists(config_dir)

    def test_failure_releases_earlier_material(self, spy):
        """Test materials created before a failing endpoint are closed."""
        first = spy({"A": "1"})
        good = MagicMock()
        good.materialize.return_value = first
        bad = MagicMock()
        bad.materialize.side_effect = MaterializationError("boom")

        with pytest.raises(MaterializationError, match="boom"):
            materialize_all([good, bad])

        assert first.close_calls == 1

    def test_failure_records_release_error(self, spy):
        """Test a cleanup failure is attached to the original error."""
        release_error = ReleaseError("stuck")
        good = MagicMock()
        good.materialize.return_value = spy(fail=release_error)
        bad = MagicMock()
        bad.materialize.side_effect = MaterializationError("boom")

        with pytest.raises(MaterializationError) as exc_info:
            materialize_all([good, bad])

        assert exc_info.value.suppressed == [release_error]

    def test_unexpected_error_releases_earlier_material(self, tmp_path):
        """Test a later endpoint's TypeError still removes earlier key files."""
        endpoints = [
            DockerServerEndpoint("tcp://h1:2376", ca_cert="CA PEM"),
            DockerRegistryEndpoint(5000, username="ci"),
        ]

        with pytest.raises(TypeError):
            materialize_all(endpoints, base_dir=str(tmp_path))

        assert os.listdir(tmp_path) == []

    def test_foreign_error_propagates_unchanged(self, spy):
        """Test non-keymaterial errors propagate even when cleanup fails too."""
        first = spy(fail=ReleaseError("stuck"))
        good = MagicMock()
        good.materialize.return_value = first
        error = OSError("disk gone")
        bad = MagicMock()
        bad.materialize.side_effect = error

        with pytest.raises(OSError) as exc_info:
            materialize_all([good, bad])

        assert exc_info.value is error
        assert first.close_calls == 1

    def test_rollback_closes_every_leaf(self, spy):
        """Test a failure after several endpoints closes all of them once."""
        materials = [spy(name="a"), spy(name="b")]
        endpoints = []
        for material in materials:
            endpoint = MagicMock()
            endpoint.materialize.return_value = material
            endpoints.append(endpoint)
        bad = MagicMock()
        bad.materialize.side_effect = ValueError("bad endpoint")

        with pytest.raises(ValueError):
            materialize_all(endpoints + [bad])

        assert [m.close_calls for m in materials] == [1, 1]

    def test_passes_base_dir(self):
        """Test every endpoint receives the base directory."""
        endpoint = MagicMock()
        endpoint.materialize.return_value = NULL

        materialize_all([endpoint], base_dir="/srv/keys")

        endpoint.materialize.assert_called_once_with(base_dir="/srv/keys")
