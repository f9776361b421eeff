"""
Configuration Loading

Reads YAML files describing which docker endpoints to materialize.
"""

import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

from .endpoints import DockerServerEndpoint, DockerRegistryEndpoint
from .errors import ConfigurationError
from .loggingx import get_logger

logger = get_logger(__name__)

SERVER_TLS_FIELDS = ('ca_cert', 'client_cert', 'client_key')

_ENV_PLACEHOLDER = re.compile(r'\$\{([^}]+)\}')


def expand_environment(config: Any) -> Any:
    """
    Replace ${VAR} placeholders in every string of a parsed document.

    Unset variables are left as written.
    """
    if isinstance(config, dict):
        return {k: expand_environment(v) for k, v in config.items()}
    if isinstance(config, list):
        return [expand_environment(item) for item in config]
    if isinstance(config, str):
        return _ENV_PLACEHOLDER.sub(
            lambda match: os.environ.get(match.group(1), match.group(0)), config)
    return config


class MaterialConfig:
    """Parsed key material configuration."""

    def __init__(self, server: Optional[DockerServerEndpoint] = None,
                 registries: Optional[List[DockerRegistryEndpoint]] = None,
                 base_dir: Optional[str] = None):
        self.server = server
        self.registries = registries or []
        self.base_dir = base_dir

    def endpoints(self) -> List[Union[DockerServerEndpoint, DockerRegistryEndpoint]]:
        """Endpoints in materialization order: server first, then registries."""
        result: List[Union[DockerServerEndpoint, DockerRegistryEndpoint]] = []
        if self.server is not None:
            result.append(self.server)
        result.extend(self.registries)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  config_file: Optional[str] = None) -> "MaterialConfig":
        """
        Build configuration from a parsed mapping.

        Args:
            data: Configuration mapping
            config_file: Source file name, used in error context

        Returns:
            MaterialConfig

        Raises:
            ConfigurationError: If the structure is invalid
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping",
                                     config_file=config_file)

        data = expand_environment(data)

        server = None
        server_data = data.get('server')
        if server_data is not None:
            server = _parse_server(server_data, config_file)

        registries_data = data.get('registries') or []
        if not isinstance(registries_data, list):
            raise ConfigurationError("'registries' must be a list",
                                     config_file=config_file,
                                     config_path='registries')

        registries = [
            _parse_registry(entry, index, config_file)
            for index, entry in enumerate(registries_data)
        ]

        base_dir = _string(data, 'base_dir', 'base_dir', config_file)

        return cls(server=server, registries=registries, base_dir=base_dir)


def load_config(path: str) -> MaterialConfig:
    """
    Load key material configuration from a YAML file.

    Args:
        path: Configuration file path

    Returns:
        MaterialConfig

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration: {e}",
                                 config_file=path) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}",
                                 config_file=path) from e

    config = MaterialConfig.from_dict(data, config_file=path)
    logger.debug("Configuration loaded",
                 config_file=path,
                 server=config.server is not None,
                 registries=len(config.registries))
    return config


def _parse_server(data: Any, config_file: Optional[str]) -> DockerServerEndpoint:
    if not isinstance(data, dict):
        raise ConfigurationError("'server' must be a mapping",
                                 config_file=config_file,
                                 config_path='server')

    tls = {}
    for field in SERVER_TLS_FIELDS:
        tls[field] = _read_value(data, field, f"server.{field}", config_file)

    return DockerServerEndpoint(uri=_string(data, 'uri', 'server.uri', config_file),
                                **tls)


def _parse_registry(data: Any, index: int,
                    config_file: Optional[str]) -> DockerRegistryEndpoint:
    config_path = f"registries[{index}]"
    if not isinstance(data, dict):
        raise ConfigurationError("Registry entry must be a mapping",
                                 config_file=config_file,
                                 config_path=config_path)

    url = _string(data, 'url', f"{config_path}.url", config_file)
    username = _string(data, 'username', f"{config_path}.username", config_file)
    password = _read_value(data, 'password', f"{config_path}.password", config_file)
    if password and not username:
        raise ConfigurationError("Registry password given without username",
                                 config_file=config_file,
                                 config_path=config_path)

    return DockerRegistryEndpoint(url=url, username=username, password=password)


def _string(data: Dict[str, Any], field: str, config_path: str,
            config_file: Optional[str]) -> Optional[str]:
    value = data.get(field)
    if value is not None and not isinstance(value, str):
        raise ConfigurationError(f"'{field}' must be a string",
                                 config_file=config_file,
                                 config_path=config_path)
    return value


def _read_value(data: Dict[str, Any], field: str, config_path: str,
                config_file: Optional[str]) -> Optional[str]:
    """Return an inline value or the content of the file named by ``<field>_file``."""
    inline = _string(data, field, config_path, config_file)
    file_name = _string(data, f"{field}_file", f"{config_path}_file", config_file)

    if inline is not None and file_name is not None:
        raise ConfigurationError(f"Both '{field}' and '{field}_file' given",
                                 config_file=config_file,
                                 config_path=config_path)
    if file_name is None:
        return inline

    try:
        return Path(file_name).expanduser().read_text()
    except OSError as e:
        raise ConfigurationError(f"Cannot read '{file_name}': {e}",
                                 config_file=config_file,
                                 config_path=config_path) from e
