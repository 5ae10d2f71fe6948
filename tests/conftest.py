"""Pytest configuration and shared fixtures."""

import sys
from datetime import date
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todotxt_cli.config import Config  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached configuration between tests."""
    Config._instance = None
    yield
    Config._instance = None


@pytest.fixture
def base():
    """A Thursday."""
    return date(2020, 7, 9)
