# tests/parallel/conftest.py
import multiprocessing

import pytest


@pytest.fixture(scope="session", autouse=True)
def _set_start_method():
    multiprocessing.set_start_method("spawn", force=True)
