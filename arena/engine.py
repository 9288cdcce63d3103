"""
arena/engine.py - Owns one running game: store, activity feed, balances, clock.

The gateway builds one ArenaEngine at startup and drops it at shutdown.
Commands here validate their target first, then check advisory balances,
and charge them only after the store accepted the change.
"""

import logging
import time
from typing import Callable

from ragebait.activity import ActivityLog
from ragebait.balances import BalanceBook
from ragebait.config import EngineConfig
from ragebait.models import ActivityEntry, Arena, Entry, Identity
from ragebait.resolution import Resolution

from .clock import SettlementClock
from .store import ArenaStore

logger = logging.getLogger(__name__)


class ArenaEngine:
    """Single authoritative game state plus the commands that change it."""

    def __init__(self, config: EngineConfig | None = None, now: Callable[[], float] = time.time):
        self.config = config or EngineConfig()
        self.activity = ActivityLog(self.config.activity_log_size, now=now)
        self.store = ArenaStore(self.activity, self.config, now=now)
        self.balances = BalanceBook(self.config.starting_balance)
        self.clock = SettlementClock(
            self.store,
            interval=self.config.tick_interval_seconds,
            now=now,
            on_resolution=self.balances.apply_resolution,
        )
        # Activity recorded since the gateway last flushed
        self._pending: list[ActivityEntry] = []
        self.activity.subscribe(self._pending.append)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def join(self, identity: Identity) -> float:
        """Announce an observer. Returns its advisory balance."""
        balance = self.balances.register(identity)
        self.activity.record(f"{identity.handle} joined the room.")
        return balance

    def create_arena(self, originator: Identity, statement: str) -> Arena:
        balance = self.balances.register(originator)
        arena = self.store.create_arena(originator, statement, balance=balance)
        self.balances.debit(originator, arena.originator_stake)
        return arena

    def submit_entry(self, arena_id: str, author: Identity, content: str) -> Entry:
        # A missing or closed arena outranks a short balance
        self.store.open_arena(arena_id)
        self.balances.require(author, self.config.entry_fee)
        entry = self.store.submit_entry(arena_id, author, content)
        self.balances.debit(author, entry.entry_stake)
        return entry

    def add_backing(
        self, arena_id: str, entry_id: str, backer: Identity, amount: float | None = None
    ) -> Entry:
        if amount is None:
            amount = self.config.backing_unit
        self.store.check_backing(arena_id, entry_id, amount)
        self.balances.require(backer, amount)
        entry = self.store.add_backing(arena_id, entry_id, backer, amount)
        self.balances.debit(backer, amount)
        return entry

    def settle_due(self, now: float | None = None) -> list[Resolution]:
        """Run one settlement tick by hand."""
        return self.clock.tick(now)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def drain_activity(self) -> list[ActivityEntry]:
        """Activity recorded since the last drain, oldest first."""
        pending = list(self._pending)
        self._pending.clear()
        return pending

    def backlog(self) -> list[ActivityEntry]:
        """Replay for a newly connected observer, oldest first."""
        return list(reversed(self.activity.recent(self.config.activity_replay)))

    def balance_of(self, identity_id: str) -> float | None:
        return self.balances.balance_of(identity_id)
