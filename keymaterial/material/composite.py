"""
Composite Key Material

Presents two key materials as one.
"""

from typing import Dict, Iterator, Optional
from .base import KeyMaterial
from ..errors import KeyMaterialError


class CompositeKeyMaterial(KeyMaterial):
    """
    Key material owning a left and a right child.

    Built by ``KeyMaterial.plus``. Closing the composite is the only way its
    children get closed; each receives exactly one ``close()`` call, left
    first, even when the left one fails.
    """

    def __init__(self, left: KeyMaterial, right: KeyMaterial):
        if left is None or right is None:
            raise ValueError("Composite key material requires two materials")
        self.left = left
        self.right = right

    def environment(self) -> Dict[str, str]:
        env = dict(self.left.environment())
        env.update(self.right.environment())
        return env

    def close(self) -> None:
        """
        Close the left child, then the right child.

        Raises:
            The left child's error if it failed, else the right child's.
            When both fail the right error is logged and recorded in the
            left error's ``suppressed`` list.
        """
        failure: Optional[Exception] = None

        for child in (self.left, self.right):
            try:
                child.close()
            except Exception as e:
                self.logger.error("Key material release failed",
                                  material=child.__class__.__name__,
                                  error=str(e))
                if failure is None:
                    failure = e
                elif isinstance(failure, KeyMaterialError):
                    failure.suppressed.append(e)

        if failure is not None:
            raise failure

    def leaves(self) -> Iterator[KeyMaterial]:
        """
        Iterate over the non-composite materials, left to right.

        Yields:
            Leaf key materials in merge order
        """
        for child in (self.left, self.right):
            if isinstance(child, CompositeKeyMaterial):
                yield from child.leaves()
            else:
                yield child

    def __repr__(self) -> str:
        return f"CompositeKeyMaterial({self.left!r}, {self.right!r})"
