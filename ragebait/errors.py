"""
ragebait/errors.py - Typed failures for arena commands.

Every failure is recoverable at the command boundary: the store is left
unchanged and only the observer that sent the command hears about it.
"""


class ArenaError(Exception):
    """Base class for rejected arena commands."""

    code = "arena_error"
    status_code = 400


class ArenaNotFound(ArenaError):
    """No arena with the given id."""

    code = "arena_not_found"
    status_code = 404

    def __init__(self, arena_id: str):
        super().__init__(f"Arena not found: {arena_id}")
        self.arena_id = arena_id


class EntryNotFound(ArenaError):
    """The arena exists but has no entry with the given id."""

    code = "entry_not_found"
    status_code = 404

    def __init__(self, arena_id: str, entry_id: str):
        super().__init__(f"Entry {entry_id} not found in arena {arena_id}")
        self.arena_id = arena_id
        self.entry_id = entry_id


class ArenaClosed(ArenaError):
    """Mutation attempted against an arena that is resolved or past its deadline."""

    code = "arena_closed"
    status_code = 409

    def __init__(self, arena_id: str):
        super().__init__(f"Arena {arena_id} is closed")
        self.arena_id = arena_id


class InsufficientStake(ArenaError):
    """Advisory balance is below the cost of the action."""

    code = "insufficient_stake"
    status_code = 402

    def __init__(self, required: float, available: float):
        super().__init__(f"Need {required} MND, have {available:.4f}")
        self.required = required
        self.available = available


class InvalidAmount(ArenaError):
    """Backing amount must be positive."""

    code = "invalid_amount"
    status_code = 422

    def __init__(self, amount: float):
        super().__init__(f"Backing amount must be positive, got {amount}")
        self.amount = amount
