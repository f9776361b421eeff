"""
Key Material Package

Locally extracted credentials and the rules for combining and releasing them.
"""

from typing import Optional
from .base import KeyMaterial
from .null import NullKeyMaterial, NULL
from .composite import CompositeKeyMaterial
from .files import FileKeyMaterial, EnvKeyMaterial


def merge(*materials: Optional[KeyMaterial]) -> KeyMaterial:
    """
    Merge any number of key materials, left to right.

    None entries are skipped. Later materials win on variable collisions.

    Returns:
        NULL if nothing was supplied, the material itself if only one was,
        otherwise a composite owning all of them
    """
    result: Optional[KeyMaterial] = None
    for material in materials:
        if material is None:
            continue
        result = material if result is None else result.plus(material)
    return NULL if result is None else result


__all__ = [
    "KeyMaterial",
    "NullKeyMaterial",
    "NULL",
    "CompositeKeyMaterial",
    "FileKeyMaterial",
    "EnvKeyMaterial",
    "merge"
]
