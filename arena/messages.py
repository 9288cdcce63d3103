"""
arena/messages.py - Wire format for the gateway.

Inbound commands and outbound events are closed sets of pydantic models,
discriminated on the `type` field. Snapshot models read straight from the
ragebait.models dataclasses.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ragebait.models import ActivityEntry, Arena, ArenaStatus, Identity
from ragebait.resolution import Resolution


# ======================================================================
# Snapshots
# ======================================================================


class IdentityModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    handle: str = Field(min_length=1)

    def to_identity(self) -> Identity:
        return Identity(id=self.id, name=self.name, handle=self.handle)


class BackingModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    backer: IdentityModel
    amount: float


class EntryModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    author: IdentityModel
    content: str
    entry_stake: float
    backed_total: float
    created_at: float
    backings: list[BackingModel]


class ArenaModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    originator: IdentityModel
    statement: str
    originator_stake: float
    created_at: float
    deadline: float
    status: ArenaStatus
    winning_entry_id: str | None
    resolved_at: float | None
    total_value_locked: float
    entries: list[EntryModel]


class ActivityModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    timestamp: float


class PayoutModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    identity_id: str
    handle: str
    role: str
    amount: float


# ======================================================================
# Inbound commands
# ======================================================================


class JoinCommand(BaseModel):
    type: Literal["join"]
    identity: IdentityModel


class CreateArenaCommand(BaseModel):
    type: Literal["create-arena"]
    originator: IdentityModel
    statement: str = Field(min_length=1)


class SubmitEntryCommand(BaseModel):
    type: Literal["submit-entry"]
    arena_id: str
    author: IdentityModel
    content: str = Field(min_length=1)


class AddBackingCommand(BaseModel):
    type: Literal["add-backing"]
    arena_id: str
    entry_id: str
    backer: IdentityModel
    # None = one backing unit
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)


Command = Annotated[
    Union[JoinCommand, CreateArenaCommand, SubmitEntryCommand, AddBackingCommand],
    Field(discriminator="type"),
]

command_adapter = TypeAdapter(Command)


def parse_command(data: object) -> JoinCommand | CreateArenaCommand | SubmitEntryCommand | AddBackingCommand:
    """Validate a raw JSON payload. Raises pydantic.ValidationError."""
    return command_adapter.validate_python(data)


# ======================================================================
# Outbound events
# ======================================================================


class StateUpdate(BaseModel):
    type: Literal["state-update"] = "state-update"
    arenas: list[ArenaModel]

    @classmethod
    def of(cls, arenas: list[Arena]) -> "StateUpdate":
        return cls(arenas=[ArenaModel.model_validate(a) for a in arenas])


class ActivityUpdate(BaseModel):
    type: Literal["activity-update"] = "activity-update"
    entry: ActivityModel

    @classmethod
    def of(cls, entry: ActivityEntry) -> "ActivityUpdate":
        return cls(entry=ActivityModel.model_validate(entry))


class SettlementEvent(BaseModel):
    type: Literal["settlement"] = "settlement"
    arena_id: str
    winning_entry_id: str | None
    losing_pool: float
    winning_pool: float
    payouts: list[PayoutModel]

    @classmethod
    def of(cls, resolution: Resolution) -> "SettlementEvent":
        return cls(
            arena_id=resolution.arena_id,
            winning_entry_id=resolution.winning_entry_id,
            losing_pool=resolution.losing_pool,
            winning_pool=resolution.winning_pool,
            payouts=[PayoutModel.model_validate(p) for p in resolution.payouts],
        )


class BalanceUpdate(BaseModel):
    type: Literal["balance-update"] = "balance-update"
    identity_id: str
    balance: float


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: str
