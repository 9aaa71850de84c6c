"""
Integration test fixtures — real filesystem, multiple threads.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: exercises the store end to end on disk")


@pytest.fixture
def shared_root(tmp_path):
    """Store root shared by several independent VersionLog instances."""
    root = tmp_path / "shared"
    root.mkdir()
    return root
