"""DB service layer for the game state.

- The session engine calls this module, never the CRUD helpers directly.
- This layer owns session/transaction boundaries.
- Failures surface as StoreUnavailableError.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from lixi_server.crud import CreateData, ReadData, UpdateData
from lixi_server.db import create_session_factory
from lixi_server.errors import StoreUnavailableError
from lixi_server.models.schema_models import SessionSchema


class GameStateStore:
    """Durable single-record storage of the session."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.Session = create_session_factory(engine)

    async def create_table(self) -> None:
        if not await CreateData.create_table(self.engine):
            raise StoreUnavailableError("Unable to create game_state table")

    async def load(self) -> SessionSchema | None:
        async with self.Session() as session:
            return await ReadData.read_game_state(session)

    async def save(self, game_state: SessionSchema) -> None:
        async with self.Session() as session:
            success = await UpdateData.save_game_state(game_state, session)
        if not success:
            raise StoreUnavailableError("Unable to save game state")
        logging.debug(f"Saved game state {game_state.session_id}")

    async def dispose(self) -> None:
        await self.engine.dispose()
