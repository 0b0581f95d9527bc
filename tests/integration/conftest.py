"""Integration test fixtures.

Provides a fully wired AppState over a real httpx client. Upstream traffic is
intercepted with respx in each test; HTML pages and Jikan record builders come
from tests/conftest.py.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from kitsuneid.config import Settings
from kitsuneid.state import create_app_state, shutdown_app_state

if TYPE_CHECKING:
    from kitsuneid.state import AppState

BASE_URL = "https://otakudesu.cloud"
JIKAN_URL = "https://api.jikan.moe/v4"
AJAX_URL = f"{BASE_URL}/wp-admin/admin-ajax.php"


@pytest.fixture()
def settings() -> Settings:
    """Defaults, except that Jikan pacing is fast enough for test runs."""
    return Settings(
        otakudesu={"base_url": BASE_URL},
        jikan={"base_url": JIKAN_URL, "requests_per_second": 1000},
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AppState:
    """Full AppState wired for integration tests."""
    async with httpx.AsyncClient() as client:
        state = create_app_state(settings, client)
        yield state
        await shutdown_app_state(state)
