"""
Base Key Material

Abstract base class for locally extracted credentials.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import structlog


class KeyMaterial(ABC):
    """
    Credentials extracted to local storage plus the environment needed to use them.

    Whenever a process that needs the credentials is forked, use
    ``environment()`` to set up its environment variables. When done,
    call ``close()`` exactly once so sensitive files are removed from
    the disk. Using the material as a context manager guarantees that.
    """

    logger = structlog.get_logger(__name__)

    @abstractmethod
    def environment(self) -> Dict[str, str]:
        """
        Build the environment variables a process needs to use this material.

        Returns:
            Mapping of variable name to value. Safe to call repeatedly
            before ``close()``; undefined afterwards.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Delete the key material from local storage.

        Raises:
            ReleaseError: If the underlying storage cannot be removed
        """
        pass

    def plus(self, other: Optional["KeyMaterial"]) -> "KeyMaterial":
        """
        Merge two key materials into one.

        Args:
            other: Material to overlay on this one, or None

        Returns:
            This very object if ``other`` is None, otherwise a composite
            owning both. Variables bound by ``other`` win on collision.
        """
        if other is None:
            return self

        from .composite import CompositeKeyMaterial
        return CompositeKeyMaterial(self, other)

    def __add__(self, other: Optional["KeyMaterial"]) -> "KeyMaterial":
        if other is not None and not isinstance(other, KeyMaterial):
            return NotImplemented
        return self.plus(other)

    def __enter__(self) -> "KeyMaterial":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        if exc_type is None:
            self.close()
            return False

        # The body failed; that error is the one the caller needs to see
        try:
            self.close()
        except Exception as e:
            self.logger.error("Key material release failed during error handling",
                              material=self.__class__.__name__,
                              error=str(e))
        return False
