"""
Shared fixtures for the ArticleScope test-suite.
"""

from typing import Callable

import pytest

from articlescope.config import DebugDumpConfig


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


@pytest.fixture
def dump_config(tmp_path) -> Callable[..., DebugDumpConfig]:
    """Factory for a dataset dump pointed into the test's temp dir."""

    def _factory(top_n: int = 5, add_url: bool = False, name: str = "dataset.csv") -> DebugDumpConfig:
        return DebugDumpConfig(path=tmp_path / name, top_n=top_n, add_url=add_url)

    return _factory
