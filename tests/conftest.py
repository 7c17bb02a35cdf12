"""
Pytest configuration and shared fixtures for layerscan tests.
"""

import logging

import pytest

from layerscan.config import ProbeConfig
from layerscan.core.pipeline import PipelineDriver

from .fakes import healthy_capabilities, offline_capabilities

# Configure logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@pytest.fixture
def probe_config(tmp_path):
    """Default configuration writing reports under a temp directory."""
    return ProbeConfig(output_root=tmp_path / "reports")


@pytest.fixture
def healthy():
    return healthy_capabilities()


@pytest.fixture
def offline():
    return offline_capabilities()


@pytest.fixture
def healthy_pipeline(healthy, probe_config):
    return PipelineDriver(healthy, probe_config)


@pytest.fixture
def offline_pipeline(offline, probe_config):
    return PipelineDriver(offline, probe_config)
