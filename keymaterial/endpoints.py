"""
Docker Endpoints

Materializes already-resolved docker daemon and registry credentials into
key material that a docker client process can consume.
"""

import base64
import json
from typing import Optional, Iterable
from urllib.parse import urlparse

from .material import KeyMaterial, NULL, CompositeKeyMaterial, FileKeyMaterial, EnvKeyMaterial
from .errors import KeyMaterialError
from .loggingx import get_logger

logger = get_logger(__name__)

DOCKER_HUB_AUTH_KEY = "https://index.docker.io/v1/"


class DockerServerEndpoint:
    """Docker daemon address with optional client TLS credentials."""

    def __init__(self, uri: Optional[str] = None, ca_cert: Optional[str] = None,
                 client_cert: Optional[str] = None, client_key: Optional[str] = None):
        self.uri = uri
        self.ca_cert = ca_cert
        self.client_cert = client_cert
        self.client_key = client_key

    @property
    def has_tls(self) -> bool:
        return any((self.ca_cert, self.client_cert, self.client_key))

    def materialize(self, base_dir: Optional[str] = None) -> KeyMaterial:
        """
        Write the TLS files to a private directory and describe them via environment.

        Args:
            base_dir: Parent directory for the key files

        Returns:
            NULL if nothing is configured, environment-only material for a
            plain daemon address, otherwise file-backed material setting
            DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH

        Raises:
            MaterializationError: If the key files cannot be written
        """
        if not self.has_tls:
            if not self.uri:
                return NULL
            return EnvKeyMaterial({'DOCKER_HOST': self.uri})

        material = FileKeyMaterial.create(prefix="docker-server-", base_dir=base_dir)
        try:
            if self.ca_cert:
                material.write_secret('ca.pem', self.ca_cert)
            if self.client_cert:
                material.write_secret('cert.pem', self.client_cert)
            if self.client_key:
                material.write_secret('key.pem', self.client_key)
        except Exception:
            _discard(material)
            raise

        if self.uri:
            material.bind('DOCKER_HOST', self.uri)
        material.bind('DOCKER_TLS_VERIFY', '1')
        material.bind('DOCKER_CERT_PATH', material.directory)
        material.log_created()
        return material

    def __repr__(self) -> str:
        return f"DockerServerEndpoint(uri={self.uri!r}, tls={self.has_tls})"


class DockerRegistryEndpoint:
    """Docker registry address with optional login credentials."""

    def __init__(self, url: Optional[str] = None, username: Optional[str] = None,
                 password: Optional[str] = None):
        self.url = url
        self.username = username
        self.password = password

    @property
    def auth_key(self) -> str:
        """Key under which the registry appears in docker's ``config.json``."""
        if not self.url:
            return DOCKER_HUB_AUTH_KEY
        parsed = urlparse(self.url if "://" in self.url else f"https://{self.url}")
        host = parsed.netloc or parsed.path
        if host in ("docker.io", "index.docker.io", "registry-1.docker.io"):
            return DOCKER_HUB_AUTH_KEY
        return host

    def materialize(self, base_dir: Optional[str] = None) -> KeyMaterial:
        """
        Write a docker client configuration holding the registry login.

        Args:
            base_dir: Parent directory for the configuration

        Returns:
            NULL if no credentials are configured, otherwise file-backed
            material setting DOCKER_CONFIG

        Raises:
            MaterializationError: If the configuration cannot be written
        """
        if not self.username:
            return NULL

        token = base64.b64encode(
            f"{self.username}:{self.password or ''}".encode('utf-8')
        ).decode('ascii')
        config = {'auths': {self.auth_key: {'auth': token}}}

        material = FileKeyMaterial.create(prefix="docker-registry-", base_dir=base_dir)
        try:
            material.write_secret('config.json', json.dumps(config, indent=2))
        except Exception:
            _discard(material)
            raise

        material.bind('DOCKER_CONFIG', material.directory)
        material.log_created()
        return material

    def __repr__(self) -> str:
        return f"DockerRegistryEndpoint(url={self.url!r}, username={self.username!r})"


def materialize_all(endpoints: Iterable, base_dir: Optional[str] = None) -> KeyMaterial:
    """
    Materialize endpoints in order and merge the results.

    If one endpoint fails, everything materialized before it is closed
    before the error propagates.

    Args:
        endpoints: Objects with a ``materialize(base_dir)`` method
        base_dir: Parent directory for key files

    Returns:
        Merged key material, NULL when there are no endpoints
    """
    result: Optional[KeyMaterial] = None
    for endpoint in endpoints:
        try:
            material = endpoint.materialize(base_dir=base_dir)
        except Exception as e:
            if result is not None:
                _rollback(result, endpoint, e)
            raise
        result = material if result is None else result.plus(material)
    return NULL if result is None else result


def _rollback(material: KeyMaterial, endpoint, error: Exception) -> None:
    leaves = list(material.leaves()) if isinstance(material, CompositeKeyMaterial) else [material]
    logger.warning("Releasing key material after materialization error",
                   endpoint=repr(endpoint),
                   materials=[repr(leaf) for leaf in leaves],
                   error=str(error))
    try:
        material.close()
    except Exception as close_error:
        logger.error("Failed to release key material after materialization error",
                     endpoint=repr(endpoint),
                     error=str(close_error))
        if isinstance(error, KeyMaterialError):
            error.suppressed.append(close_error)


def _discard(material: FileKeyMaterial) -> None:
    try:
        material.close()
    except Exception as e:
        logger.error("Failed to remove partially written key material",
                     path=material.directory, error=str(e))


__all__ = [
    "DockerServerEndpoint",
    "DockerRegistryEndpoint",
    "materialize_all",
    "DOCKER_HUB_AUTH_KEY"
]
