"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from enginevu.core.models.context import InstallContext


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Return a temporary install root."""
    return tmp_path / "root"


@pytest.fixture
def context(install_root: Path) -> InstallContext:
    """Linux x64 context with a dummy GitHub token."""
    return InstallContext(platform="linux-x64", root=install_root, github_token="test-token")
