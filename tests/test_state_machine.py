"""
Tests for SessionStateMachine.

Tests cover:
- First selection, re-selection of the same tile, matches and mismatches
- The lock window after a mismatch
- Win detection and clock shutdown
- Expiry, including the 6-pair difficulty timing
- The reveal power-up
"""

import asyncio

import pytest
import pytest_asyncio

from config import get_time_limit
from models import SessionStatus, TileState
from sessions.clock import Clock
from sessions.state_machine import SelectionResult, SessionStateMachine, UpdateKind
from tests.fakes import make_tiles

MISMATCH_DELAY = 0.01


@pytest.fixture
def updates():
    return []


@pytest_asyncio.fixture
async def machine(updates):
    """3-pair session; tiles 0/1, 2/3 and 4/5 are pairs. Clock is ticked by hand."""
    machine = SessionStateMachine(
        make_tiles(3),
        time_limit=60,
        on_update=updates.append,
        clock=Clock(tick_seconds=3600),
        mismatch_delay=MISMATCH_DELAY,
        power_up_duration=0.05,
    )
    machine.start()
    yield machine
    machine.dispose()


async def wait_for_lock_window():
    await asyncio.sleep(MISMATCH_DELAY * 5)


class TestConstruction:
    """Deck validation at construction time."""

    def test_rejects_odd_deck(self):
        with pytest.raises(ValueError):
            SessionStateMachine(make_tiles(2)[:3], time_limit=60)

    def test_rejects_empty_deck(self):
        with pytest.raises(ValueError):
            SessionStateMachine([], time_limit=60)

    def test_rejects_duplicate_ids(self):
        tiles = make_tiles(2)
        tiles[3].id = tiles[0].id
        with pytest.raises(ValueError):
            SessionStateMachine(tiles, time_limit=60)

    @pytest.mark.asyncio
    async def test_start_announces_board(self, machine, updates):
        assert updates == [UpdateKind.BOARD]
        assert machine.session.status is SessionStatus.ACTIVE
        assert machine.session.time_remaining == 60
        assert machine.clock.running


class TestSelection:
    """Test select_tile."""

    @pytest.mark.asyncio
    async def test_first_selection_reveals_tile(self, machine):
        assert machine.select_tile(0) is SelectionResult.FIRST
        assert machine.get_tile(0).state is TileState.REVEALED
        assert machine.session.selection == [0]
        assert machine.session.clicks == 1

    @pytest.mark.asyncio
    async def test_reselecting_selected_tile_is_noop(self, machine):
        machine.select_tile(0)

        assert machine.select_tile(0) is SelectionResult.IGNORED
        assert machine.session.clicks == 1
        assert machine.session.selection == [0]
        assert not machine.session.locked

    @pytest.mark.asyncio
    async def test_unknown_tile_is_ignored(self, machine):
        assert machine.select_tile(99) is SelectionResult.IGNORED
        assert machine.session.clicks == 0

    @pytest.mark.asyncio
    async def test_match(self, machine):
        machine.select_tile(0)

        assert machine.select_tile(1) is SelectionResult.MATCH

        session = machine.session
        assert session.matched_pairs == 1
        assert session.clicks == 2
        assert session.selection == []
        assert machine.get_tile(0).state is TileState.MATCHED
        assert machine.get_tile(1).state is TileState.MATCHED

    @pytest.mark.asyncio
    async def test_matched_tiles_are_unselectable(self, machine):
        machine.select_tile(0)
        machine.select_tile(1)

        assert machine.select_tile(0) is SelectionResult.IGNORED
        assert machine.select_tile(1) is SelectionResult.IGNORED
        assert machine.session.clicks == 2
        assert machine.session.matched_pairs == 1

    @pytest.mark.asyncio
    async def test_mismatch_locks_then_reverts(self, machine):
        machine.select_tile(0)

        assert machine.select_tile(2) is SelectionResult.MISMATCH
        assert machine.session.locked
        assert machine.get_tile(0).state is TileState.REVEALED
        assert machine.get_tile(2).state is TileState.REVEALED

        await wait_for_lock_window()

        session = machine.session
        assert not session.locked
        assert session.selection == []
        assert session.matched_pairs == 0
        assert machine.get_tile(0).state is TileState.HIDDEN
        assert machine.get_tile(2).state is TileState.HIDDEN

    @pytest.mark.asyncio
    async def test_selection_ignored_while_locked(self, machine):
        machine.select_tile(0)
        machine.select_tile(2)

        assert machine.select_tile(4) is SelectionResult.IGNORED
        assert machine.get_tile(4).state is TileState.HIDDEN
        assert machine.session.clicks == 2
        assert len(machine.session.selection) == 2

        await wait_for_lock_window()
        assert machine.select_tile(4) is SelectionResult.FIRST


class TestWin:
    """Win detection."""

    @pytest.mark.asyncio
    async def test_matching_all_pairs_wins_and_stops_clock(self, machine, updates):
        for first, second in [(0, 1), (2, 3), (4, 5)]:
            machine.select_tile(first)
            machine.select_tile(second)

        assert machine.session.status is SessionStatus.WON
        assert machine.session.pairs_left == 0
        assert not machine.clock.running
        assert updates[-1] is UpdateKind.OUTCOME

        remaining = machine.session.time_remaining
        machine.clock.tick()
        machine.on_clock_expire()
        assert machine.session.status is SessionStatus.WON
        assert machine.session.time_remaining == remaining

    @pytest.mark.asyncio
    async def test_no_selection_after_win(self, machine):
        for first, second in [(0, 1), (2, 3), (4, 5)]:
            machine.select_tile(first)
            machine.select_tile(second)
        clicks = machine.session.clicks

        assert machine.select_tile(0) is SelectionResult.IGNORED
        assert machine.session.clicks == clicks


class TestExpiry:
    """Clock-driven expiry."""

    @pytest.mark.asyncio
    async def test_six_pairs_expire_after_46_ticks(self):
        updates = []
        limit = get_time_limit(6)
        machine = SessionStateMachine(
            make_tiles(6),
            time_limit=limit,
            on_update=updates.append,
            clock=Clock(tick_seconds=3600),
        )
        machine.start()

        assert limit == 45
        for _ in range(45):
            machine.clock.tick()
        assert machine.session.status is SessionStatus.ACTIVE
        assert machine.session.time_remaining == 0

        machine.clock.tick()
        assert machine.session.status is SessionStatus.EXPIRED
        assert updates.count(UpdateKind.TIMER) == 45
        assert updates[-1] is UpdateKind.OUTCOME
        machine.dispose()

    @pytest.mark.asyncio
    async def test_selection_is_noop_after_expiry(self, machine):
        machine.on_clock_expire()

        assert machine.select_tile(0) is SelectionResult.IGNORED
        assert machine.session.clicks == 0
        assert machine.get_tile(0).state is TileState.HIDDEN

    @pytest.mark.asyncio
    async def test_tick_updates_time_remaining(self, machine, updates):
        machine.clock.tick()

        assert machine.session.time_remaining == 59
        assert updates[-1] is UpdateKind.TIMER

    @pytest.mark.asyncio
    async def test_pending_mismatch_reverts_after_expiry(self, machine):
        machine.select_tile(0)
        machine.select_tile(2)
        machine.on_clock_expire()

        await wait_for_lock_window()

        assert machine.session.status is SessionStatus.EXPIRED
        assert machine.get_tile(0).state is TileState.HIDDEN
        assert not machine.session.locked


class TestPowerUp:
    """Reveal power-up through the state machine."""

    @pytest.mark.asyncio
    async def test_reveals_unmatched_tiles_only(self, machine):
        machine.select_tile(0)
        machine.select_tile(1)

        assert machine.activate_power_up() is True

        overlays = {tile.id: tile.power_up_reveal for tile in machine.session.tiles}
        assert overlays == {0: False, 1: False, 2: True, 3: True, 4: True, 5: True}
        assert machine.snapshot()["power_up_available"] is False

        await asyncio.sleep(0.1)
        assert not any(tile.power_up_reveal for tile in machine.session.tiles)

    @pytest.mark.asyncio
    async def test_only_once_per_session(self, machine):
        assert machine.activate_power_up() is True
        assert machine.activate_power_up() is False

    @pytest.mark.asyncio
    async def test_matching_continues_during_reveal(self, machine):
        machine.activate_power_up()

        assert machine.select_tile(0) is SelectionResult.FIRST
        assert machine.select_tile(1) is SelectionResult.MATCH

    @pytest.mark.asyncio
    async def test_dispose_silences_updates(self, machine, updates):
        machine.activate_power_up()
        machine.dispose()
        count = len(updates)

        await asyncio.sleep(0.1)
        machine.clock.tick()

        assert len(updates) == count
