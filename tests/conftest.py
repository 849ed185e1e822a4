"""
Pytest configuration and shared fixtures for bunkit tests.
"""

import pytest

# ruff: noqa: F401
from tests.fixtures.archives import (
    linux_zip_bytes,
    install_root,
    package_dir,
)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


@pytest.fixture(autouse=True)
def _isolate_bunkit_env(monkeypatch):
    """Keep BUNKIT_* variables from the developer's shell out of tests."""
    for name in ("BUNKIT_VERSION", "BUNKIT_PLATFORM", "BUNKIT_HOME"):
        monkeypatch.delenv(name, raising=False)
