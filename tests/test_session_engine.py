"""
Tests for the session engine.

Tests:
- Join / open / reset transitions against a real SQLite store
- Invariants after every step
- Store outages
- Concurrent opens
"""

import asyncio
import random

import pytest

from lixi_server.domain.session_rules import check_invariants
from lixi_server.errors import (
    AllocationError,
    AlreadyOpenedError,
    CapacityExceededError,
    MissingFieldsError,
    MissingPlayerIdError,
    SessionInactiveError,
    StoreUnavailableError,
)
from lixi_server.models.dc_models import EventName, GameSettings, SessionPhase
from lixi_server.services.session_engine import SessionEngine


class TestJoin:
    @pytest.mark.asyncio
    async def test_join_adds_player_and_emits_event(self, engine):
        result = await engine.join("p1", "Alice")

        assert not result.already_joined
        assert result.current_players == 1
        assert [e.event for e in result.events] == [EventName.player_joined]
        assert result.events[0].data == {
            "playerId": "p1",
            "playerName": "Alice",
            "currentPlayers": 1,
        }

    @pytest.mark.asyncio
    async def test_join_is_idempotent(self, engine):
        first = await engine.join("p1", "Alice")
        second = await engine.join("p1", "Alice")

        assert not first.already_joined
        assert second.already_joined
        assert second.events == []
        state = await engine.snapshot()
        assert [p.id for p in state.players] == ["p1"]

    @pytest.mark.asyncio
    async def test_eleventh_player_rejected(self, engine):
        for i in range(10):
            await engine.join(f"p{i}", f"Player {i}")

        with pytest.raises(CapacityExceededError):
            await engine.join("p10", "Player 10")
        state = await engine.snapshot()
        assert len(state.players) == 10

    @pytest.mark.asyncio
    async def test_joined_player_can_rejoin_full_session(self, engine):
        for i in range(10):
            await engine.join(f"p{i}", f"Player {i}")
        result = await engine.join("p3", "Player 3")
        assert result.already_joined

    @pytest.mark.asyncio
    @pytest.mark.parametrize("player_id, player_name", [("", "Alice"), ("p1", ""), (None, None)])
    async def test_missing_fields(self, engine, player_id, player_name):
        with pytest.raises(MissingFieldsError):
            await engine.join(player_id, player_name)


class TestOpen:
    @pytest.mark.asyncio
    async def test_open_draws_amount(self, engine):
        result = await engine.open_envelope("p1", "Alice")

        assert 10_000 <= result.amount <= 100_000
        assert result.remaining_money == 500_000 - result.amount
        assert result.remaining_envelopes == 9
        assert not result.is_game_finished
        event = result.events[0]
        assert event.event == EventName.envelope_opened
        assert event.data["amount"] == result.amount
        assert event.data["isGameFinished"] is False

    @pytest.mark.asyncio
    async def test_open_without_join_is_allowed(self, engine):
        await engine.open_envelope("stranger", "Stranger")
        state = await engine.snapshot()
        assert state.players == []
        assert state.opened_by[0].player_id == "stranger"

    @pytest.mark.asyncio
    async def test_second_open_rejected_without_mutation(self, engine):
        await engine.open_envelope("p1", "Alice")
        before = await engine.snapshot()

        with pytest.raises(AlreadyOpenedError):
            await engine.open_envelope("p1", "Alice")

        after = await engine.snapshot()
        assert after.remaining_money == before.remaining_money
        assert after.remaining_envelopes == before.remaining_envelopes

    @pytest.mark.asyncio
    async def test_missing_player_id(self, engine):
        with pytest.raises(MissingPlayerIdError):
            await engine.open_envelope("", "Alice")

    @pytest.mark.asyncio
    async def test_full_session(self, engine):
        results = []
        for i in range(10):
            await engine.join(f"p{i}", f"Player {i}")
            results.append(await engine.open_envelope(f"p{i}", f"Player {i}"))
            check_invariants(await engine.snapshot())

        state = await engine.snapshot()
        assert sum(r.amount for r in results) == 500_000
        assert sum(e.amount for e in state.opened_by) == state.total_money
        assert state.remaining_money == 0
        assert state.remaining_envelopes == 0
        assert not state.is_active
        assert results[-1].is_game_finished
        assert await engine.phase() == SessionPhase.finished

        with pytest.raises(SessionInactiveError):
            await engine.open_envelope("late", "Late")
        with pytest.raises(CapacityExceededError):
            await engine.join("late", "Late")


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_gives_fresh_session(self, engine):
        before = await engine.snapshot()
        await engine.join("p1", "Alice")
        await engine.open_envelope("p1", "Alice")

        result = await engine.reset()

        state = await engine.snapshot()
        assert state.session_id != before.session_id
        assert result.session_id == state.session_id
        assert result.share_url == f"https://clawdaily.blog/lixi?session={state.session_id}"
        assert state.remaining_money == state.total_money
        assert state.remaining_envelopes == state.total_envelopes
        assert state.players == [] and state.opened_by == []
        assert state.is_active
        assert result.events[0].event == EventName.game_reset
        assert result.events[0].data["sessionId"] == state.session_id

    @pytest.mark.asyncio
    async def test_reset_reopens_finished_session(self, engine):
        for i in range(10):
            await engine.open_envelope(f"p{i}", f"Player {i}")
        assert await engine.phase() == SessionPhase.finished

        await engine.reset()
        assert await engine.phase() == SessionPhase.active
        await engine.open_envelope("p0", "Player 0")


class TestPersistence:
    @pytest.mark.asyncio
    async def test_state_survives_restart(self, engine, store, settings):
        await engine.join("p1", "Alice")
        opened = await engine.open_envelope("p1", "Alice")
        session_id = (await engine.snapshot()).session_id

        restarted = SessionEngine(store, settings)
        state = await restarted.initialize()

        assert state.session_id == session_id
        assert state.remaining_money == 500_000 - opened.amount
        assert [p.name for p in state.players] == ["Alice"]
        with pytest.raises(AlreadyOpenedError):
            await restarted.open_envelope("p1", "Alice")

    @pytest.mark.asyncio
    async def test_failed_save_discards_mutation(self, engine, store):
        await engine.join("p1", "Alice")
        before = await engine.snapshot()

        store.fail_saves = True
        with pytest.raises(StoreUnavailableError) as excinfo:
            await engine.open_envelope("p1", "Alice")
        assert excinfo.value.retryable
        with pytest.raises(StoreUnavailableError):
            await engine.join("p2", "Bob")
        with pytest.raises(StoreUnavailableError):
            await engine.reset()

        assert await engine.snapshot() == before
        assert await store.load() == before

        store.fail_saves = False
        result = await engine.open_envelope("p1", "Alice")
        assert result.remaining_envelopes == 9

    @pytest.mark.asyncio
    async def test_initialize_reports_store_outage(self, store, settings):
        store.fail_loads = True
        engine = SessionEngine(store, settings)
        with pytest.raises(StoreUnavailableError):
            await engine.initialize()

    def test_invalid_pool_rejected_at_construction(self, store):
        with pytest.raises(AllocationError):
            SessionEngine(store, GameSettings(total_money=50_000, total_envelopes=10))


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_race_for_last_envelope(self, engine):
        for i in range(9):
            await engine.open_envelope(f"p{i}", f"Player {i}")

        results = await asyncio.gather(
            engine.open_envelope("a", "A"),
            engine.open_envelope("b", "B"),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], SessionInactiveError)
        state = await engine.snapshot()
        assert state.remaining_money == 0
        check_invariants(state)

    @pytest.mark.asyncio
    async def test_same_player_opens_concurrently(self, engine):
        results = await asyncio.gather(
            *[engine.open_envelope("p1", "Alice") for _ in range(5)],
            return_exceptions=True,
        )
        assert sum(not isinstance(r, Exception) for r in results) == 1
        assert all(
            isinstance(r, AlreadyOpenedError) for r in results if isinstance(r, Exception)
        )
        state = await engine.snapshot()
        assert len(state.opened_by) == 1

    @pytest.mark.asyncio
    async def test_concurrent_joins_respect_capacity(self, engine):
        results = await asyncio.gather(
            *[engine.join(f"p{i}", f"Player {i}") for i in range(15)],
            return_exceptions=True,
        )
        assert sum(isinstance(r, CapacityExceededError) for r in results) == 5
        state = await engine.snapshot()
        assert len(state.players) == 10
        check_invariants(state)

    @pytest.mark.asyncio
    async def test_random_sequence_keeps_invariants(self, engine):
        rng = random.Random(11)
        for _ in range(60):
            player = f"p{rng.randint(0, 14)}"
            action = rng.choice(["join", "open"])
            try:
                if action == "join":
                    await engine.join(player, player.upper())
                else:
                    await engine.open_envelope(player, player.upper())
            except (CapacityExceededError, SessionInactiveError, AlreadyOpenedError):
                pass
            check_invariants(await engine.snapshot())
