from lixi_server.models.dc_models import (
    EventModel,
    EventName,
    GameStatusModel,
    StatusModel,
)
from lixi_server.models.schema_models import SessionSchema


class DataConverter:
    """This class is used to convert the stored session into client views."""

    def convert_session_to_status(self, state: SessionSchema) -> StatusModel:
        """Convert the SessionSchema to the StatusModel returned by GET /status

        Args:
            state (SessionSchema): Committed session

        Returns:
            StatusModel: Public status of the session
        """
        return StatusModel(
            session_id=state.session_id,
            total_money=state.total_money,
            remaining_money=state.remaining_money,
            remaining_envelopes=state.remaining_envelopes,
            max_players=state.max_players,
            current_players=len(state.players),
            is_active=state.is_active,
            opened_by=state.opened_by,
        )

    def convert_session_to_game_status(self, state: SessionSchema) -> EventModel:
        """Build the gameStatus frame pushed to one websocket subscriber"""
        status = GameStatusModel(
            total_money=state.total_money,
            remaining_money=state.remaining_money,
            remaining_envelopes=state.remaining_envelopes,
            current_players=len(state.players),
            max_players=state.max_players,
            is_active=state.is_active,
            opened_by=state.opened_by,
        )
        return EventModel.build(EventName.game_status, status)

    def convert_session_to_admin_stats(self, state: SessionSchema, share_url: str) -> dict:
        """Full session document plus the share URL"""
        stats = state.to_document()
        stats["shareUrl"] = share_url
        return stats
