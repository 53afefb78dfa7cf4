import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from lixi_server.errors import StoreUnavailableError
from lixi_server.models.schema_models import SessionSchema
from lixi_server.models.schemas import GAME_STATE_ROW_ID, Base, GameState


class CreateData:
    @staticmethod
    async def create_table(engine: AsyncEngine) -> bool:
        """Create the game_state table if it does not exist"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            return True
        except SQLAlchemyError as e:
            logging.error(f"Failed to create game_state table: {e}")
            return False


class ReadData:
    @staticmethod
    async def read_game_state(session: AsyncSession) -> SessionSchema | None:
        """Read the stored session document

        Args:
            session (AsyncSession): Database session

        Returns:
            SessionSchema | None: Stored session, None if nothing was stored yet

        Raises:
            StoreUnavailableError: The database could not be read or the
                stored document is invalid
        """
        async with session:
            try:
                stmt = select(GameState).where(
                    GameState.game_state_id == GAME_STATE_ROW_ID
                )
                result = await session.execute(stmt)
                result = result.scalars().first()
            except SQLAlchemyError as e:
                logging.error(f"Failed to read game state: {e}")
                raise StoreUnavailableError("Unable to load game state") from e

        if result is None:
            return None
        try:
            return SessionSchema.model_validate(result.data)
        except ValidationError as e:
            logging.error(f"Stored game state is unreadable: {e}")
            raise StoreUnavailableError("Stored game state is unreadable") from e


class UpdateData:
    @staticmethod
    async def save_game_state(game_state: SessionSchema, session: AsyncSession) -> bool:
        """Insert or replace the stored session document in one transaction

        Args:
            game_state (SessionSchema): Session to persist
            session (AsyncSession): Database session

        Returns:
            bool: True if the transaction committed
        """
        async with session:
            try:
                async with session.begin():
                    stmt = select(GameState).where(
                        GameState.game_state_id == GAME_STATE_ROW_ID
                    )
                    result = await session.execute(stmt)
                    row = result.scalars().first()
                    if row is None:
                        session.add(
                            GameState(
                                game_state_id=GAME_STATE_ROW_ID,
                                data=game_state.to_document(),
                            )
                        )
                    else:
                        row.data = game_state.to_document()
                return True
            except SQLAlchemyError as e:
                logging.error(f"Failed to save game state: {e}")
                return False
