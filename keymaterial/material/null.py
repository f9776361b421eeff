"""
Null Key Material

Key material that holds nothing and does nothing.
"""

from typing import Dict
from .base import KeyMaterial


class NullKeyMaterial(KeyMaterial):
    """Represents "no credentials" so callers need not special-case absence."""

    def environment(self) -> Dict[str, str]:
        return {}

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return "NULL"


NULL = NullKeyMaterial()
