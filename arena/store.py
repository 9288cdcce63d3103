"""
arena/store.py - Authoritative in-memory arena storage.

All arena mutation goes through ArenaStore. One instance per engine
lifetime; state is lost when the process exits.

Every mutating method validates completely before it touches anything, so a
raised ArenaError always leaves the store exactly as it was. Each successful
mutation records one activity entry.
"""

import logging
import math
import time
import uuid
from typing import Callable

from ragebait.activity import ActivityLog
from ragebait.config import EngineConfig
from ragebait.errors import ArenaClosed, ArenaNotFound, EntryNotFound, InsufficientStake, InvalidAmount
from ragebait.models import Arena, ArenaStatus, Entry, Identity
from ragebait.resolution import Resolution

logger = logging.getLogger(__name__)


class ArenaStore:
    """Arena id -> Arena, plus the rules for changing them."""

    def __init__(
        self,
        activity: ActivityLog,
        config: EngineConfig | None = None,
        now: Callable[[], float] = time.time,
    ):
        self.activity = activity
        self.config = config or EngineConfig()
        self._now = now
        # Insertion order is creation order
        self._arenas: dict[str, Arena] = {}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_arena(
        self, originator: Identity, statement: str, balance: float | None = None
    ) -> Arena:
        """Open a new arena. Its deadline is fixed here and never changes.

        `balance` is the originator's advisory balance when the caller knows
        it; a balance below the creation stake is rejected.
        """
        stake = self.config.creation_stake
        if balance is not None and balance < stake:
            raise InsufficientStake(stake, balance)

        now = self._now()
        arena = Arena(
            id=str(uuid.uuid4()),
            originator=originator,
            statement=statement,
            originator_stake=stake,
            created_at=now,
            deadline=now + self.config.arena_duration_seconds,
        )
        self._arenas[arena.id] = arena
        logger.info(f"Arena {arena.id} created by {originator.handle}")
        self.activity.record(f"{originator.handle} dropped a new arena")
        return arena

    def submit_entry(self, arena_id: str, author: Identity, content: str) -> Entry:
        arena = self.open_arena(arena_id)
        entry = Entry(
            id=str(uuid.uuid4()),
            author=author,
            content=content,
            entry_stake=self.config.entry_fee,
            created_at=self._now(),
        )
        arena.entries.append(entry)
        logger.info(f"Entry {entry.id} by {author.handle} in arena {arena_id}")
        self.activity.record(f"{author.name} entered the arena with a roast.")
        return entry

    def add_backing(
        self,
        arena_id: str,
        entry_id: str,
        backer: Identity,
        amount: float | None = None,
    ) -> Entry:
        """Stake `amount` (default: one backing unit) on an entry."""
        if amount is None:
            amount = self.config.backing_unit
        entry = self.check_backing(arena_id, entry_id, amount)

        entry.apply_backing(backer, amount)
        logger.info(
            f"{backer.handle} backed entry {entry_id} with {amount} "
            f"(total {entry.backed_total:.4f})"
        )
        self.activity.record(f"{backer.handle} staked {amount} MND on a roast!")
        return entry

    def mark_resolved(
        self, arena_id: str, resolution: Resolution, now: float | None = None
    ) -> Arena:
        """Apply a resolution. The only path from ACTIVE to RESOLVED.

        `now` is the settling tick's time and becomes `resolved_at`.
        """
        arena = self.get(arena_id)
        if not arena.is_active:
            raise ArenaClosed(arena_id)
        winner = None
        if resolution.winning_entry_id is not None:
            winner = arena.find_entry(resolution.winning_entry_id)
            if winner is None:
                raise EntryNotFound(arena_id, resolution.winning_entry_id)

        arena.status = ArenaStatus.RESOLVED
        arena.winning_entry_id = resolution.winning_entry_id
        arena.resolved_at = now if now is not None else self._now()

        if winner is None:
            logger.info(f"Arena {arena_id} closed with no entries")
            self.activity.record(f"Arena by {arena.originator.handle} closed with no entries.")
        else:
            logger.info(f"Arena {arena_id} resolved, winner {winner.id} ({winner.author.handle})")
            self.activity.record(f"{winner.author.name} won the pool!")
        return arena

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, arena_id: str) -> Arena:
        arena = self._arenas.get(arena_id)
        if arena is None:
            raise ArenaNotFound(arena_id)
        return arena

    def all(self) -> list[Arena]:
        """Every arena, most recent first."""
        return list(reversed(self._arenas.values()))

    def list_active(self) -> list[Arena]:
        return [a for a in self.all() if a.is_active]

    def list_resolved(self) -> list[Arena]:
        return [a for a in self.all() if not a.is_active]

    def due(self, now: float | None = None) -> list[Arena]:
        """Active arenas whose deadline has passed, oldest first."""
        if now is None:
            now = self._now()
        return [a for a in self._arenas.values() if a.is_active and a.is_expired(now)]

    def __len__(self) -> int:
        return len(self._arenas)

    # ------------------------------------------------------------------
    # Validation (no side effects)
    # ------------------------------------------------------------------

    def check_backing(self, arena_id: str, entry_id: str, amount: float) -> Entry:
        """Return the entry a backing of `amount` would land on, or raise.

        Target errors come before amount errors.
        """
        arena = self.open_arena(arena_id)
        entry = arena.find_entry(entry_id)
        if entry is None:
            raise EntryNotFound(arena_id, entry_id)
        if not math.isfinite(amount) or amount <= 0:
            raise InvalidAmount(amount)
        return entry

    def open_arena(self, arena_id: str) -> Arena:
        """Fetch an arena that still accepts entries and backing.

        An arena past its deadline is closed even before the clock gets
        around to resolving it.
        """
        arena = self.get(arena_id)
        if not arena.is_active or arena.is_expired(self._now()):
            raise ArenaClosed(arena_id)
        return arena
