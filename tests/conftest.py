"""Shared fixtures for the orbis test suite."""

import pytest

from orbis import config


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts and ends with default package configuration."""
    config.reset()
    yield
    config.reset()
