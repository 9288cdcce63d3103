"""
ragebait/resolution.py - Winner selection and payout math for expired arenas.

Pure functions: nothing here mutates an arena. arena.store.ArenaStore applies
the result.

Payout shares, with L = losing pool and W = winning entry's backed total:

    backer of the winner:  c + (c / W) * 0.9 * L
    winning entrant:       0.7 * originator_stake + 0.7 * (entries - 1) * entry_stake
    originator:            0.05 * (L + W)

The three roles are computed independently. One identity can collect under
several roles, and the shares do not sum to the arena's total stake.
"""

import logging
from dataclasses import dataclass, field

from .models import Arena, Entry

logger = logging.getLogger(__name__)

LOSING_POOL_CUT = 0.9
ENTRANT_SHARE = 0.7
ORIGINATOR_CUT = 0.05

ROLE_BACKER = "backer"
ROLE_ENTRANT = "entrant"
ROLE_ORIGINATOR = "originator"


@dataclass(frozen=True)
class Payout:
    """Advisory instruction: increase `identity_id`'s balance by `amount`."""

    identity_id: str
    handle: str
    role: str
    amount: float


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one arena."""

    arena_id: str
    winning_entry_id: str | None = None
    losing_pool: float = 0.0
    winning_pool: float = 0.0
    payouts: list[Payout] = field(default_factory=list)

    @property
    def has_winner(self) -> bool:
        return self.winning_entry_id is not None

    def total_for(self, identity_id: str) -> float:
        return sum(p.amount for p in self.payouts if p.identity_id == identity_id)


def select_winner(entries: list[Entry]) -> Entry | None:
    """Entry with the strictly greatest backed total.

    Only a strictly greater total replaces the current leader, so ties go
    to the earliest submitted entry.
    """
    winner = None
    for entry in entries:
        if winner is None or entry.backed_total > winner.backed_total:
            winner = entry
    return winner


def compute_payouts(arena: Arena, winner: Entry) -> list[Payout]:
    """Payout instructions for the winner's backers, its author and the originator."""
    winning_pool = winner.backed_total
    losing_pool = sum(e.backed_total for e in arena.entries if e.id != winner.id)
    payouts = []

    for backing in winner.backings:
        share = backing.amount
        if winning_pool > 0:
            share += (backing.amount / winning_pool) * LOSING_POOL_CUT * losing_pool
        payouts.append(Payout(backing.backer.id, backing.backer.handle, ROLE_BACKER, share))

    entrant_reward = ENTRANT_SHARE * arena.originator_stake + ENTRANT_SHARE * (
        len(arena.entries) - 1
    ) * winner.entry_stake
    payouts.append(Payout(winner.author.id, winner.author.handle, ROLE_ENTRANT, entrant_reward))

    originator_reward = ORIGINATOR_CUT * (losing_pool + winning_pool)
    payouts.append(
        Payout(arena.originator.id, arena.originator.handle, ROLE_ORIGINATOR, originator_reward)
    )

    return [p for p in payouts if p.amount > 0]


def resolve_arena(arena: Arena) -> Resolution:
    """Pick the winner of an expired arena and compute its payouts.

    An arena without entries has no winner and pays nothing.
    """
    winner = select_winner(arena.entries)
    if winner is None:
        return Resolution(arena_id=arena.id)

    payouts = compute_payouts(arena, winner)
    losing_pool = sum(e.backed_total for e in arena.entries if e.id != winner.id)
    logger.debug(
        f"Arena {arena.id}: winner {winner.id} (W={winner.backed_total}, L={losing_pool}), "
        f"{len(payouts)} payouts"
    )
    return Resolution(
        arena_id=arena.id,
        winning_entry_id=winner.id,
        losing_pool=losing_pool,
        winning_pool=winner.backed_total,
        payouts=payouts,
    )
