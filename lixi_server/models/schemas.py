from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import JSON, DateTime, Integer

GAME_STATE_ROW_ID = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class GameState(Base):
    """Single-row table holding the live session as a JSON document."""

    __tablename__ = "game_state"
    game_state_id = Column(Integer, primary_key=True, default=GAME_STATE_ROW_ID)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
