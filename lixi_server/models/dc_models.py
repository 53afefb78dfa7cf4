from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from lixi_server.models.schema_models import OpenedEnvelopeSchema


class SessionPhase(str, Enum):
    active = "active"
    finished = "finished"


class EventName(str, Enum):
    player_joined = "playerJoined"
    envelope_opened = "envelopeOpened"
    game_reset = "gameReset"
    game_status = "gameStatus"
    request_game_status = "requestGameStatus"


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class GameSettings(BaseModel):
    total_money: int = 500_000
    total_envelopes: int = 10
    max_players: int = 10
    share_url_base: str = "https://clawdaily.blog/lixi"

    def share_url(self, session_id: str) -> str:
        return f"{self.share_url_base}?session={session_id}"


# ==== Requests ===============================================================


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class RequestBodyModel(CamelModel):
    """Request body read leniently so bad input reaches the engine's checks.

    A missing or non-object body counts as empty, numbers become strings
    and any other value counts as missing.
    """

    @classmethod
    def from_body(cls, body: Any):
        if not isinstance(body, dict):
            return cls()
        fields = {}
        for name, field in cls.model_fields.items():
            value = body[field.alias] if field.alias in body else body.get(name)
            fields[name] = _as_text(value)
        return cls(**fields)


class JoinRequestModel(RequestBodyModel):
    player_name: Optional[str] = None
    player_id: Optional[str] = None


class OpenRequestModel(RequestBodyModel):
    player_id: Optional[str] = None
    player_name: Optional[str] = None


# ==== Responses ==============================================================


class StatusModel(CamelModel):
    session_id: str
    total_money: int
    remaining_money: int
    remaining_envelopes: int
    max_players: int
    current_players: int
    is_active: bool
    opened_by: List[OpenedEnvelopeSchema]


class GameStatusModel(CamelModel):
    """Status pushed to a single websocket subscriber on request."""

    total_money: int
    remaining_money: int
    remaining_envelopes: int
    current_players: int
    max_players: int
    is_active: bool
    opened_by: List[OpenedEnvelopeSchema]


class JoinResponseModel(CamelModel):
    success: bool = True
    message: str
    already_joined: bool = False
    current_players: int


class OpenResponseModel(CamelModel):
    success: bool = True
    amount: int
    remaining_money: int
    remaining_envelopes: int
    is_game_finished: bool


class ResetResponseModel(CamelModel):
    success: bool = True
    message: str = "Game reset successfully"
    session_id: str
    share_url: str


class HealthModel(CamelModel):
    status: str = "ok"
    phase: SessionPhase


# ==== Events =================================================================


class PlayerJoinedModel(CamelModel):
    player_id: str
    player_name: str
    current_players: int


class EnvelopeOpenedModel(CamelModel):
    player_id: str
    player_name: Optional[str] = None
    amount: int
    remaining_money: int
    remaining_envelopes: int
    is_game_finished: bool


class EventModel(BaseModel):
    """Frame sent to websocket subscribers."""

    event: EventName
    data: Dict[str, Any]

    @classmethod
    def build(cls, event: EventName, payload: BaseModel) -> "EventModel":
        return cls(event=event, data=payload.model_dump(mode="json", by_alias=True))

    def to_message(self) -> dict:
        return self.model_dump(mode="json")
