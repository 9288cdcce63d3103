"""
ragebait/models.py - Arena, entry and activity records.

Plain data. The only behavior here is bookkeeping that keeps an entry's
backed total in step with its per-backer contributions. Who may mutate what,
and when, is decided by arena.store.ArenaStore.
"""

from dataclasses import dataclass, field
from enum import Enum


class ArenaStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Identity:
    """Self-asserted participant identity. Nothing here is verified."""

    id: str
    name: str
    handle: str

    def __post_init__(self):
        # Same normalization the web client applies at login
        if not self.handle.startswith("@"):
            object.__setattr__(self, "handle", f"@{self.handle}")


@dataclass
class Backing:
    """One backer's cumulative stake on one entry."""

    backer: Identity
    amount: float = 0.0


@dataclass
class Entry:
    """A competing submission within an arena."""

    id: str
    author: Identity
    content: str
    entry_stake: float
    created_at: float
    backed_total: float = 0.0
    # backer identity id -> Backing, insertion ordered
    contributions: dict[str, Backing] = field(default_factory=dict)

    @property
    def backings(self) -> list[Backing]:
        return list(self.contributions.values())

    def contribution_of(self, identity_id: str) -> float:
        backing = self.contributions.get(identity_id)
        return backing.amount if backing else 0.0

    def apply_backing(self, backer: Identity, amount: float) -> None:
        backing = self.contributions.get(backer.id)
        if backing is None:
            backing = Backing(backer=backer)
            self.contributions[backer.id] = backing
        backing.amount += amount
        self.backed_total += amount


@dataclass
class Arena:
    """One time-boxed contest instance."""

    id: str
    originator: Identity
    statement: str
    originator_stake: float
    created_at: float
    deadline: float
    status: ArenaStatus = ArenaStatus.ACTIVE
    winning_entry_id: str | None = None
    resolved_at: float | None = None
    entries: list[Entry] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status is ArenaStatus.ACTIVE

    def is_expired(self, now: float) -> bool:
        return now >= self.deadline

    def find_entry(self, entry_id: str) -> Entry | None:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def total_backed(self) -> float:
        return sum(e.backed_total for e in self.entries)

    @property
    def total_value_locked(self) -> float:
        """Creation stake + entry fees + all backing (the client's "TLV")."""
        return self.originator_stake + sum(
            e.entry_stake + e.backed_total for e in self.entries
        )


@dataclass(frozen=True)
class ActivityEntry:
    """Human-readable event line. Immutable once created."""

    id: str
    message: str
    timestamp: float
