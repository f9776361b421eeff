"""
Keymaterial Package

Manages credentials that are temporarily extracted to local storage so an
external process can use them through environment variables, and removes
them once they are no longer needed.
"""

__version__ = "1.0.0"

from .material import (
    KeyMaterial,
    NullKeyMaterial,
    NULL,
    CompositeKeyMaterial,
    FileKeyMaterial,
    EnvKeyMaterial,
    merge
)
from .endpoints import DockerServerEndpoint, DockerRegistryEndpoint, materialize_all
from .errors import KeyMaterialError, ReleaseError, MaterializationError

__all__ = [
    "KeyMaterial",
    "NullKeyMaterial",
    "NULL",
    "CompositeKeyMaterial",
    "FileKeyMaterial",
    "EnvKeyMaterial",
    "merge",
    "DockerServerEndpoint",
    "DockerRegistryEndpoint",
    "materialize_all",
    "KeyMaterialError",
    "ReleaseError",
    "MaterializationError"
]
