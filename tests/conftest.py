"""Shared pytest fixtures for keymaterial tests."""

from typing import Dict, List, Optional

import pytest

from keymaterial.material import KeyMaterial


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")


class SpyKeyMaterial(KeyMaterial):
    """Leaf material that records close calls and can be told to fail."""

    def __init__(self, env: Optional[Dict[str, str]] = None,
                 fail: Optional[Exception] = None,
                 journal: Optional[List["SpyKeyMaterial"]] = None,
                 name: str = "spy"):
        self.env = dict(env or {})
        self.fail = fail
        self.journal = journal
        self.name = name
        self.close_calls = 0

    def environment(self) -> Dict[str, str]:
        return dict(self.env)

    def close(self) -> None:
        self.close_calls += 1
        if self.journal is not None:
            self.journal.append(self)
        if self.fail is not None:
            raise self.fail

    def __repr__(self) -> str:
        return f"SpyKeyMaterial({self.name!r})"


@pytest.fixture
def spy():
    """Factory for spy key materials."""
    return SpyKeyMaterial


@pytest.fixture
def journal() -> List[SpyKeyMaterial]:
    """Shared list recording the order in which spies were closed."""
    return []
