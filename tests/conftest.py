"""Shared pytest fixtures for mcp-conclusions tests."""

import logging
import tempfile
from pathlib import Path

import pytest

from mcp_conclusions.config import StoreConfig
from mcp_conclusions.engine import ConclusionStore


@pytest.fixture
def temp_project():
    """Create a temporary project directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_project):
    """Create a test configuration."""
    return StoreConfig(
        project_name="test-project",
        project_root=temp_project,
    )


@pytest.fixture
def store(config):
    """Create a test store with its own logger."""
    return ConclusionStore(config, log=logging.getLogger("mcp_conclusions.tests"))


@pytest.fixture
def conclusion_file(temp_project, config):
    """Path the store writes conclusions to for temp_project."""
    return temp_project.resolve() / config.data_dir / config.conclusion_file
