"""Integration test fixtures.

Provides a fully wired AppState over in-memory SQLite. HTTP is mocked per
test with respx, which patches the transport of the already-built client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pkgdoc.state import open_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from pkgdoc.config import Settings
    from pkgdoc.state import AppState


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    async with open_app_state(settings) as state:
        yield state
