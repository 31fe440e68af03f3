import logging
from pathlib import Path

import pytest


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@pytest.fixture
def data_dir() -> Path:
    """Directory holding the NEXUS test fixtures."""
    return Path(__file__).parent / "data"
