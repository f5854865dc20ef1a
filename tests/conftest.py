# tests/conftest.py
from __future__ import annotations

import pytest
from loguru import logger

from world3.lookup.tables import load_world_tables
from world3.model.params import bau


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture(scope="session")
def tables():
    return load_world_tables()


@pytest.fixture
def short_bau():
    """BAU truncated to 1900-1950 (fast enough for most tests)."""
    return bau().with_overrides(end_year=1950.0)
