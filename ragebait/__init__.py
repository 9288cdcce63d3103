"""
Ragebait - Five-minute roast arenas

Post a hot take, stake on the best roast, and split the pool when the
timer runs out.
"""

__version__ = "0.1.0"

from .activity import ActivityLog
from .balances import BalanceBook
from .errors import (
    ArenaError,
    ArenaNotFound,
    EntryNotFound,
    ArenaClosed,
    InsufficientStake,
    InvalidAmount,
)
from .models import (
    ActivityEntry,
    Arena,
    ArenaStatus,
    Backing,
    Entry,
    Identity,
)
from .resolution import (
    Payout,
    Resolution,
    compute_payouts,
    resolve_arena,
    select_winner,
)

__all__ = [
    # Version
    "__version__",
    # Data types
    "ActivityEntry",
    "Arena",
    "ArenaStatus",
    "Backing",
    "Entry",
    "Identity",
    # Errors
    "ArenaError",
    "ArenaNotFound",
    "EntryNotFound",
    "ArenaClosed",
    "InsufficientStake",
    "InvalidAmount",
    # Resolution
    "Payout",
    "Resolution",
    "compute_payouts",
    "resolve_arena",
    "select_winner",
    # Bookkeeping
    "ActivityLog",
    "BalanceBook",
]
