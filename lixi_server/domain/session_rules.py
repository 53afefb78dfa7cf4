"""Session state transitions.

Each function takes the current session and returns a new one; the input
is never modified, so a caller can drop the result if persisting fails.
The clock is passed in as `now`.
"""

import random
from datetime import datetime

from lixi_server.domain.envelope_rules import allocate
from lixi_server.errors import (
    AlreadyOpenedError,
    CapacityExceededError,
    InvariantViolationError,
    SessionInactiveError,
)
from lixi_server.models.dc_models import GameSettings, SessionPhase
from lixi_server.models.schema_models import (
    OpenedEnvelopeSchema,
    PlayerSchema,
    SessionSchema,
)


def new_session(settings: GameSettings, session_id: str, now: datetime) -> SessionSchema:
    """Build a fresh session with the full pool and no players."""
    return SessionSchema(
        session_id=session_id,
        total_money=settings.total_money,
        remaining_money=settings.total_money,
        total_envelopes=settings.total_envelopes,
        remaining_envelopes=settings.total_envelopes,
        max_players=settings.max_players,
        players=[],
        opened_by=[],
        is_active=True,
        created_at=now,
        last_activity=now,
    )


def session_phase(state: SessionSchema) -> SessionPhase:
    if state.is_active and state.remaining_envelopes > 0:
        return SessionPhase.active
    return SessionPhase.finished


def apply_join(
    state: SessionSchema, player_id: str, player_name: str, now: datetime
) -> tuple[SessionSchema, bool]:
    """Add a player to the session.

    Checks run in this order: already joined, capacity, active.

    Returns:
        tuple[SessionSchema, bool]: New state and whether the player was added.
            An already joined player returns the input state unchanged.
    """
    if state.find_player(player_id) is not None:
        return state, False

    if len(state.players) >= state.max_players:
        raise CapacityExceededError(f"Game is full ({state.max_players} players)")

    if not state.is_active:
        raise SessionInactiveError("Game is not active")

    new_state = state.model_copy(deep=True)
    new_state.players.append(
        PlayerSchema(id=player_id, name=player_name, joined_at=now)
    )
    new_state.last_activity = now
    return new_state, True


def apply_open(
    state: SessionSchema,
    player_id: str,
    player_name: str | None,
    now: datetime,
    rng: random.Random | None = None,
) -> tuple[SessionSchema, int]:
    """Open one envelope for a player.

    Returns:
        tuple[SessionSchema, int]: New state and the amount drawn
    """
    if not state.is_active or state.remaining_envelopes <= 0:
        raise SessionInactiveError("Game is not active or no envelopes remaining")

    if state.has_opened(player_id):
        raise AlreadyOpenedError("Player already opened an envelope")

    amount = allocate(state.remaining_money, state.remaining_envelopes, rng)

    new_state = state.model_copy(deep=True)
    new_state.remaining_money -= amount
    new_state.remaining_envelopes -= 1
    new_state.opened_by.append(
        OpenedEnvelopeSchema(
            player_id=player_id,
            player_name=player_name,
            amount=amount,
            opened_at=now,
        )
    )
    if new_state.remaining_envelopes <= 0:
        new_state.is_active = False
    new_state.last_activity = now
    return new_state, amount


def check_invariants(state: SessionSchema) -> None:
    """Raise InvariantViolationError if the session is inconsistent."""
    opened_total = sum(entry.amount for entry in state.opened_by)
    opened_ids = [entry.player_id for entry in state.opened_by]
    player_ids = [player.id for player in state.players]

    problems = []
    if state.remaining_envelopes != state.total_envelopes - len(state.opened_by):
        problems.append("remaining_envelopes does not match opened envelopes")
    if state.remaining_money != state.total_money - opened_total:
        problems.append("remaining_money does not match opened amounts")
    if not 0 <= state.remaining_money <= state.total_money:
        problems.append("remaining_money out of range")
    if len(set(opened_ids)) != len(opened_ids):
        problems.append("a player opened more than one envelope")
    if len(set(player_ids)) != len(player_ids):
        problems.append("duplicate player id")
    if state.remaining_envelopes == 0 and state.is_active:
        problems.append("session with no envelopes left is still active")
    if len(state.players) > state.max_players:
        problems.append("more players than max_players")

    if problems:
        raise InvariantViolationError("; ".join(problems))
