"""Tests for arena/store.py - arena lifecycle and per-arena invariants."""

import pytest

from ragebait.config import EngineConfig
from ragebait.errors import (
    ArenaClosed,
    ArenaNotFound,
    EntryNotFound,
    InsufficientStake,
    InvalidAmount,
)
from ragebait.models import ArenaStatus
from ragebait.resolution import resolve_arena


# ======================================================================
# Creation
# ======================================================================


class TestCreateArena:
    def test_create_sets_deadline(self, store, alice, clock):
        arena = store.create_arena(alice, "cereal is soup")
        assert arena.created_at == clock.now
        assert arena.deadline == clock.now + 300
        assert arena.status is ArenaStatus.ACTIVE
        assert arena.entries == []
        assert arena.originator_stake == pytest.approx(0.05)

    def test_ids_are_unique(self, store, alice):
        a1 = store.create_arena(alice, "one")
        a2 = store.create_arena(alice, "two")
        assert a1.id != a2.id

    def test_logs_activity(self, store, activity, alice):
        store.create_arena(alice, "cereal is soup")
        assert activity.recent(1)[0].message == "@alice dropped a new arena"

    def test_low_balance_rejected(self, store, activity, alice):
        with pytest.raises(InsufficientStake):
            store.create_arena(alice, "cereal is soup", balance=0.01)
        assert len(store) == 0
        assert len(activity) == 0

    def test_exact_balance_accepted(self, store, alice):
        arena = store.create_arena(alice, "cereal is soup", balance=0.05)
        assert arena.is_active

    def test_custom_duration(self, activity, clock, alice):
        from arena.store import ArenaStore

        short = ArenaStore(activity, EngineConfig(arena_duration_seconds=10), now=clock)
        arena = short.create_arena(alice, "quick one")
        assert arena.deadline - arena.created_at == 10


# ======================================================================
# Entries
# ======================================================================


class TestSubmitEntry:
    def test_submit_appends(self, store, alice, bob):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "so is your opinion: soggy")
        assert entry.backed_total == 0
        assert entry.entry_stake == pytest.approx(0.01)
        assert store.get(arena.id).entries == [entry]

    def test_insertion_order_preserved(self, store, alice, bob, carol):
        arena = store.create_arena(alice, "cereal is soup")
        e1 = store.submit_entry(arena.id, bob, "first")
        e2 = store.submit_entry(arena.id, carol, "second")
        assert [e.id for e in arena.entries] == [e1.id, e2.id]

    def test_unknown_arena(self, store, bob):
        with pytest.raises(ArenaNotFound):
            store.submit_entry("nope", bob, "hello?")

    def test_rejected_after_resolution(self, store, alice, bob, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(300)
        store.mark_resolved(arena.id, resolve_arena(arena))

        with pytest.raises(ArenaClosed):
            store.submit_entry(arena.id, bob, "too late")
        assert arena.entries == []

    def test_rejected_past_deadline_before_tick(self, store, alice, bob, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(300)
        with pytest.raises(ArenaClosed):
            store.submit_entry(arena.id, bob, "sneaky")
        assert arena.is_active
        assert arena.entries == []

    def test_logs_activity(self, store, activity, alice, bob):
        arena = store.create_arena(alice, "cereal is soup")
        store.submit_entry(arena.id, bob, "roast")
        assert activity.recent(1)[0].message == "Bob entered the arena with a roast."


# ======================================================================
# Backing
# ======================================================================


class TestAddBacking:
    def test_default_unit(self, store, alice, bob, carol):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "roast")
        store.add_backing(arena.id, entry.id, carol)
        assert entry.backed_total == pytest.approx(0.05)
        assert entry.contribution_of(carol.id) == pytest.approx(0.05)

    def test_arbitrary_amount(self, store, alice, bob, carol):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "roast")
        store.add_backing(arena.id, entry.id, carol, 0.07)
        store.add_backing(arena.id, entry.id, alice, 0.03)
        assert entry.backed_total == pytest.approx(0.10)
        assert entry.contribution_of(carol.id) == pytest.approx(0.07)
        assert entry.contribution_of(alice.id) == pytest.approx(0.03)

    def test_unknown_arena(self, store, carol):
        with pytest.raises(ArenaNotFound):
            store.add_backing("nope", "nope", carol)

    def test_unknown_entry(self, store, alice, carol):
        arena = store.create_arena(alice, "cereal is soup")
        with pytest.raises(EntryNotFound):
            store.add_backing(arena.id, "nope", carol)

    @pytest.mark.parametrize("amount", [0, -0.05, float("nan"), float("inf"), float("-inf")])
    def test_non_positive_or_non_finite_amount(self, store, alice, bob, carol, amount):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "roast")
        with pytest.raises(InvalidAmount):
            store.add_backing(arena.id, entry.id, carol, amount)
        assert entry.backed_total == 0
        assert entry.backings == []

    def test_rejected_after_resolution(self, store, activity, alice, bob, carol, clock):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "roast")
        clock.advance(301)
        store.mark_resolved(arena.id, resolve_arena(arena))
        logged = len(activity)

        with pytest.raises(ArenaClosed):
            store.add_backing(arena.id, entry.id, carol)
        assert entry.backed_total == 0
        assert len(activity) == logged

    def test_logs_activity(self, store, activity, alice, bob, carol):
        arena = store.create_arena(alice, "cereal is soup")
        entry = store.submit_entry(arena.id, bob, "roast")
        store.add_backing(arena.id, entry.id, carol)
        assert activity.recent(1)[0].message == "@carol staked 0.05 MND on a roast!"


# ======================================================================
# Resolution
# ======================================================================


class TestMarkResolved:
    def test_sets_winner_and_status(self, store, alice, bob, carol, clock):
        arena = store.create_arena(alice, "cereal is soup")
        a = store.submit_entry(arena.id, bob, "a")
        b = store.submit_entry(arena.id, carol, "b")
        store.add_backing(arena.id, b.id, alice)
        clock.advance(300)

        store.mark_resolved(arena.id, resolve_arena(arena))
        assert arena.status is ArenaStatus.RESOLVED
        assert arena.winning_entry_id == b.id
        assert arena.resolved_at == clock.now
        assert a.id != arena.winning_entry_id

    def test_resolves_only_once(self, store, alice, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(300)
        resolution = resolve_arena(arena)
        store.mark_resolved(arena.id, resolution)

        with pytest.raises(ArenaClosed):
            store.mark_resolved(arena.id, resolution)
        assert arena.status is ArenaStatus.RESOLVED

    def test_resolved_at_uses_given_time(self, store, alice, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(400)
        store.mark_resolved(arena.id, resolve_arena(arena), arena.deadline)
        assert arena.resolved_at == arena.deadline

    def test_resolved_at_defaults_to_now(self, store, alice, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(300)
        store.mark_resolved(arena.id, resolve_arena(arena))
        assert arena.resolved_at == clock.now

    def test_empty_arena_logs_closure(self, store, activity, alice, clock):
        arena = store.create_arena(alice, "cereal is soup")
        clock.advance(300)
        store.mark_resolved(arena.id, resolve_arena(arena))
        assert arena.winning_entry_id is None
        assert activity.recent(1)[0].message == "Arena by @alice closed with no entries."

    def test_winner_logged(self, store, activity, alice, bob, clock):
        arena = store.create_arena(alice, "cereal is soup")
        store.submit_entry(arena.id, bob, "a")
        clock.advance(300)
        store.mark_resolved(arena.id, resolve_arena(arena))
        assert activity.recent(1)[0].message == "Bob won the pool!"


# ======================================================================
# Views
# ======================================================================


class TestViews:
    def test_most_recent_first(self, store, alice, clock):
        a1 = store.create_arena(alice, "one")
        clock.advance(1)
        a2 = store.create_arena(alice, "two")
        assert [a.id for a in store.list_active()] == [a2.id, a1.id]
        assert [a.id for a in store.all()] == [a2.id, a1.id]

    def test_resolved_stays_addressable(self, store, alice, clock):
        old = store.create_arena(alice, "old")
        clock.advance(300)
        store.mark_resolved(old.id, resolve_arena(old))
        fresh = store.create_arena(alice, "fresh")

        assert [a.id for a in store.list_active()] == [fresh.id]
        assert [a.id for a in store.list_resolved()] == [old.id]
        assert store.get(old.id) is old

    def test_due(self, store, alice, clock):
        early = store.create_arena(alice, "early")
        clock.advance(100)
        late = store.create_arena(alice, "late")

        assert store.due(clock.now) == []
        assert store.due(early.deadline) == [early]
        assert store.due(late.deadline) == [early, late]

    def test_get_unknown(self, store):
        with pytest.raises(ArenaNotFound):
            store.get("nope")

    def test_failed_command_touches_nothing_else(self, store, alice, bob):
        healthy = store.create_arena(alice, "fine")
        entry = store.submit_entry(healthy.id, bob, "roast")
        with pytest.raises(EntryNotFound):
            store.add_backing(healthy.id, "missing", bob)
        assert entry.backed_total == 0
        assert len(healthy.entries) == 1
