"""
File-backed Key Material

Leaf materials: one owning a private directory of secret files, one owning
only environment bindings.
"""

import os
import shutil
import tempfile
from typing import Dict, Optional, Mapping
from .base import KeyMaterial
from ..errors import ReleaseError, MaterializationError
from ..loggingx import log_material_created, log_material_released


class FileKeyMaterial(KeyMaterial):
    """Key material stored in a private directory that is deleted on close."""

    def __init__(self, directory: str, env: Optional[Mapping[str, str]] = None):
        """
        Initialize with an existing directory.

        Args:
            directory: Directory owned by this material
            env: Environment bindings exposing the directory contents
        """
        self.directory = directory
        self.env: Dict[str, str] = dict(env or {})

    @classmethod
    def create(cls, prefix: str = "keymaterial-",
               base_dir: Optional[str] = None) -> "FileKeyMaterial":
        """
        Create material backed by a fresh directory only the current user can read.

        Args:
            prefix: Directory name prefix
            base_dir: Parent directory, system temp dir if not provided

        Returns:
            FileKeyMaterial with an empty environment

        Raises:
            MaterializationError: If the directory cannot be created
        """
        try:
            directory = tempfile.mkdtemp(prefix=prefix, dir=base_dir)
        except OSError as e:
            raise MaterializationError(
                f"Failed to create key material directory: {e}",
                path=base_dir
            ) from e
        return cls(directory)

    def environment(self) -> Dict[str, str]:
        return dict(self.env)

    def bind(self, name: str, value: str) -> None:
        """Add an environment binding."""
        self.env[name] = value

    def write_secret(self, name: str, content: str) -> str:
        """
        Write a secret file readable only by the current user.

        Args:
            name: File name inside the material directory
            content: File content

        Returns:
            Absolute path of the written file

        Raises:
            MaterializationError: If the file cannot be written
        """
        path = os.path.join(self.directory, name)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, 'w') as f:
                f.write(content)
        except OSError as e:
            raise MaterializationError(
                f"Failed to write secret file '{name}': {e}",
                path=path
            ) from e
        return path

    def close(self) -> None:
        try:
            shutil.rmtree(self.directory)
        except OSError as e:
            raise ReleaseError(
                f"Failed to delete key material: {e}",
                path=self.directory,
                material=self.__class__.__name__
            ) from e
        log_material_released(self.__class__.__name__, path=self.directory,
                              logger=self.logger)

    def log_created(self) -> None:
        log_material_created(self.__class__.__name__, self.env.keys(),
                             path=self.directory, logger=self.logger)

    def __repr__(self) -> str:
        return f"FileKeyMaterial({self.directory!r})"


class EnvKeyMaterial(KeyMaterial):
    """Key material consisting of environment bindings only; nothing to delete."""

    def __init__(self, env: Mapping[str, str]):
        self.env: Dict[str, str] = dict(env)
        log_material_created(self.__class__.__name__, self.env.keys(),
                             logger=self.logger)

    def environment(self) -> Dict[str, str]:
        return dict(self.env)

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"EnvKeyMaterial({sorted(self.env)!r})"
