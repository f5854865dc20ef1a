from __future__ import annotations

import pytest

from world3.api.app import STORE, app


@pytest.fixture
def client():
    """
    Flask test client (no real server).
    """
    # 每个 test 前重置 store（只保留 presets）
    STORE.clear()
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client
