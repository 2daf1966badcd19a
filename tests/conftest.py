"""
Configuration file for pytest.

This file defines shared fixtures for the test suite.
Fixtures defined here are automatically available to all tests.
"""

import os
import pathlib
import tempfile

import pytest

# Keep the user's own config.toml out of the tests; set before radarfetch is imported
os.environ["RADARFETCH_CONFIG_FILE"] = str(pathlib.Path(tempfile.gettempdir()) / "radarfetch-tests-absent.toml")

from radarfetch.utils import config  # noqa: E402

from tests.utils.mocks import GIF_BYTES, FakeArchiveStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the config loader at a per-test path that does not exist yet."""
    config_path = tmp_path / "config.toml"
    monkeypatch.setenv("RADARFETCH_CONFIG_FILE", str(config_path))
    config._load_config.cache_clear()  # noqa: SLF001
    yield config_path
    config._load_config.cache_clear()  # noqa: SLF001


@pytest.fixture(scope="function")
def temp_dir():
    """
    Pytest fixture to create a temporary directory for a test function.

    Yields:
        pathlib.Path: The path to the created temporary directory.
    """
    with tempfile.TemporaryDirectory(prefix="radarfetch_test_") as tmpdir:
        yield pathlib.Path(tmpdir)


@pytest.fixture
def gif_bytes():
    return GIF_BYTES


@pytest.fixture
def fake_store():
    """A FakeArchiveStore that serves a small GIF for every hour."""
    return FakeArchiveStore()
