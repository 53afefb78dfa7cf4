"""Session engine: the only component allowed to mutate the live session.

Every mutation runs under one asyncio.Lock: load, compute, save. The new
state is built on a copy and becomes the committed state only once the
save succeeded, so readers never see a half-applied mutation and a failed
save leaves nothing behind. Events are returned to the caller, who
publishes them after the call returns.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List

from uuid6 import uuid7

from lixi_server.domain.envelope_rules import validate_pool
from lixi_server.domain.session_rules import (
    apply_join,
    apply_open,
    check_invariants,
    new_session,
    session_phase,
)
from lixi_server.errors import MissingFieldsError, MissingPlayerIdError
from lixi_server.models.dc_models import (
    EnvelopeOpenedModel,
    EventModel,
    EventName,
    GameSettings,
    PlayerJoinedModel,
    SessionPhase,
)
from lixi_server.models.schema_models import SessionSchema
from lixi_server.services.game_state_db import GameStateStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class JoinResult:
    already_joined: bool
    current_players: int
    events: List[EventModel] = field(default_factory=list)


@dataclass
class OpenResult:
    amount: int
    remaining_money: int
    remaining_envelopes: int
    is_game_finished: bool
    events: List[EventModel] = field(default_factory=list)


@dataclass
class ResetResult:
    session_id: str
    share_url: str
    state: SessionSchema
    events: List[EventModel] = field(default_factory=list)


class SessionEngine:
    def __init__(
        self,
        store: GameStateStore,
        settings: GameSettings,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: str(uuid7()),
    ):
        validate_pool(settings.total_money, settings.total_envelopes)
        self.store = store
        self.settings = settings
        self.rng = rng or random.Random()
        self.clock = clock
        self.id_factory = id_factory
        self._lock = asyncio.Lock()
        self._state: SessionSchema | None = None

    async def initialize(self) -> SessionSchema:
        """Load the stored session, creating a fresh one on first boot."""
        async with self._lock:
            await self.store.create_table()
            state = await self.store.load()
            if state is None:
                state = new_session(self.settings, self.id_factory(), self.clock())
                await self.store.save(state)
                logging.info(f"Created initial session {state.session_id}")
            else:
                logging.info(f"Loaded session {state.session_id}")
            self._state = state
            return state.model_copy(deep=True)

    async def _current(self) -> SessionSchema:
        if self._state is None:
            state = await self.store.load()
            if state is None:
                state = new_session(self.settings, self.id_factory(), self.clock())
                await self.store.save(state)
            self._state = state
        return self._state

    async def _commit(self, new_state: SessionSchema) -> None:
        check_invariants(new_state)
        await self.store.save(new_state)
        self._state = new_state

    async def snapshot(self) -> SessionSchema:
        """Read-only copy of the committed session."""
        if self._state is None:
            async with self._lock:
                state = await self._current()
        else:
            state = self._state
        return state.model_copy(deep=True)

    async def phase(self) -> SessionPhase:
        return session_phase(await self.snapshot())

    def share_url(self, session_id: str) -> str:
        return self.settings.share_url(session_id)

    async def join(self, player_id: str | None, player_name: str | None) -> JoinResult:
        """Add a player to the session.

        Joining twice with the same id succeeds without a second record.

        Raises:
            MissingFieldsError: player_id or player_name is empty
            CapacityExceededError: The session is full
            SessionInactiveError: The session is finished
            StoreUnavailableError: The store could not be read or written
        """
        if not player_id or not player_name:
            raise MissingFieldsError("Player name and ID required")

        async with self._lock:
            state = await self._current()
            new_state, added = apply_join(state, player_id, player_name, self.clock())
            if not added:
                logging.info(f"Player {player_id} already joined")
                return JoinResult(
                    already_joined=True, current_players=len(state.players)
                )

            await self._commit(new_state)

        current_players = len(new_state.players)
        logging.info(f"Player {player_id} joined ({current_players} players)")
        event = EventModel.build(
            EventName.player_joined,
            PlayerJoinedModel(
                player_id=player_id,
                player_name=player_name,
                current_players=current_players,
            ),
        )
        return JoinResult(
            already_joined=False, current_players=current_players, events=[event]
        )

    async def open_envelope(
        self, player_id: str | None, player_name: str | None = None
    ) -> OpenResult:
        """Open one envelope for a player.

        Raises:
            MissingPlayerIdError: player_id is empty
            SessionInactiveError: The session is finished
            AlreadyOpenedError: The player already opened an envelope
            StoreUnavailableError: The store could not be read or written
        """
        if not player_id:
            raise MissingPlayerIdError("Player ID required")

        async with self._lock:
            state = await self._current()
            new_state, amount = apply_open(
                state, player_id, player_name, self.clock(), self.rng
            )
            await self._commit(new_state)

        is_game_finished = not new_state.is_active
        logging.info(
            f"Player {player_id} opened {amount}, "
            f"{new_state.remaining_envelopes} envelopes left"
        )
        if is_game_finished:
            logging.info(f"Session {new_state.session_id} finished")

        event = EventModel.build(
            EventName.envelope_opened,
            EnvelopeOpenedModel(
                player_id=player_id,
                player_name=player_name,
                amount=amount,
                remaining_money=new_state.remaining_money,
                remaining_envelopes=new_state.remaining_envelopes,
                is_game_finished=is_game_finished,
            ),
        )
        return OpenResult(
            amount=amount,
            remaining_money=new_state.remaining_money,
            remaining_envelopes=new_state.remaining_envelopes,
            is_game_finished=is_game_finished,
            events=[event],
        )

    async def reset(self) -> ResetResult:
        """Replace the session with a fresh one under a new session id.

        Raises:
            StoreUnavailableError: The store could not be written
        """
        async with self._lock:
            new_state = new_session(self.settings, self.id_factory(), self.clock())
            await self._commit(new_state)

        logging.info(f"Session reset, new session {new_state.session_id}")
        event = EventModel.build(EventName.game_reset, new_state)
        return ResetResult(
            session_id=new_state.session_id,
            share_url=self.share_url(new_state.session_id),
            state=new_state.model_copy(deep=True),
            events=[event],
        )
