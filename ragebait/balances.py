"""
ragebait/balances.py - Advisory balances per identity.

Nothing here moves real funds. Every identity starts with the airdrop the
first time it is seen, pays the fixed costs of creating, entering and
backing, and is credited with settlement payouts.
"""

import logging

from .errors import InsufficientStake
from .models import Identity
from .resolution import Resolution

logger = logging.getLogger(__name__)


class BalanceBook:
    """In-memory advisory balances, keyed by identity id."""

    def __init__(self, starting_balance: float = 10.0):
        self.starting_balance = starting_balance
        self._balances: dict[str, float] = {}

    def register(self, identity: Identity) -> float:
        """Seed a first-time identity with the starting balance. Returns its balance."""
        if identity.id not in self._balances:
            self._balances[identity.id] = self.starting_balance
            logger.info(f"Airdropped {self.starting_balance} MND to {identity.handle}")
        return self._balances[identity.id]

    def balance_of(self, identity_id: str) -> float | None:
        """Recorded balance, or None for an identity never seen."""
        return self._balances.get(identity_id)

    def require(self, identity: Identity, amount: float) -> None:
        """Raise InsufficientStake if `identity` cannot cover `amount`."""
        available = self.register(identity)
        if available < amount:
            raise InsufficientStake(amount, available)

    def debit(self, identity: Identity, amount: float) -> float:
        self.require(identity, amount)
        self._balances[identity.id] -= amount
        return self._balances[identity.id]

    def credit(self, identity_id: str, amount: float) -> float:
        balance = self._balances.get(identity_id, self.starting_balance) + amount
        self._balances[identity_id] = balance
        return balance

    def apply_resolution(self, resolution: Resolution) -> None:
        """Credit every payout of a settled arena."""
        for payout in resolution.payouts:
            self.credit(payout.identity_id, payout.amount)
            logger.info(
                f"Paid {payout.amount:.4f} MND to {payout.handle} "
                f"({payout.role}, arena {resolution.arena_id})"
            )

    def __len__(self) -> int:
        return len(self._balances)
