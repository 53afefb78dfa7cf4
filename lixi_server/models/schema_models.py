from datetime import datetime
from typing import List

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class PlayerSchema(BaseModel):
    id: str
    name: str
    joined_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class OpenedEnvelopeSchema(BaseModel):
    player_id: str
    player_name: str | None = None
    amount: int
    opened_at: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


class SessionSchema(BaseModel):
    """The single live lucky money session, stored as one JSON document."""

    session_id: str
    total_money: int
    remaining_money: int
    total_envelopes: int
    remaining_envelopes: int
    max_players: int
    players: List[PlayerSchema] = []
    opened_by: List[OpenedEnvelopeSchema] = []
    is_active: bool = True
    created_at: datetime
    last_activity: datetime

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True

    def find_player(self, player_id: str) -> PlayerSchema | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def has_opened(self, player_id: str) -> bool:
        return any(entry.player_id == player_id for entry in self.opened_by)

    def to_document(self) -> dict:
        """JSON-compatible dict with camelCase keys, as persisted."""
        return self.model_dump(mode="json", by_alias=True)
