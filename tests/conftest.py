"""
Pytest fixtures for the lucky money server tests.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from lixi_server.create_sqlite_engine import create_sqlite_engine
from lixi_server.errors import StoreUnavailableError
from lixi_server.models.dc_models import GameSettings
from lixi_server.services.game_state_db import GameStateStore
from lixi_server.services.session_engine import SessionEngine


class FlakyStore(GameStateStore):
    """Store whose saves can be switched off to simulate an outage."""

    def __init__(self, engine):
        super().__init__(engine)
        self.fail_saves = False
        self.fail_loads = False

    async def save(self, game_state):
        if self.fail_saves:
            raise StoreUnavailableError("Unable to save game state")
        await super().save(game_state)

    async def load(self):
        if self.fail_loads:
            raise StoreUnavailableError("Unable to load game state")
        return await super().load()


class TickingClock:
    """Clock advancing one second per call."""

    def __init__(self):
        self.now = datetime(2026, 1, 29, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def settings() -> GameSettings:
    return GameSettings(total_money=500_000, total_envelopes=10, max_players=10)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'game_state.sqlite3'}"


@pytest_asyncio.fixture
async def store(database_url):
    store = FlakyStore(create_sqlite_engine(database_url))
    await store.create_table()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def engine(store, settings) -> SessionEngine:
    engine = SessionEngine(
        store, settings, rng=random.Random(2024), clock=TickingClock()
    )
    await engine.initialize()
    return engine
