"""
arena/server.py - FastAPI gateway for Ragebait arenas.

Endpoints:
    GET    /health                                   Server health check
    GET    /arenas                                   All arenas, most recent first
    GET    /arenas/active                            Live arenas
    GET    /arenas/resolved                          Resolved arenas
    GET    /arenas/{id}                              One arena
    POST   /arenas                                   Create an arena
    POST   /arenas/{id}/entries                      Submit an entry
    POST   /arenas/{id}/entries/{entry_id}/backing   Back an entry
    GET    /activity                                 Recent activity, newest first
    GET    /balances/{identity_id}                   Advisory balance

Live updates:
    WS     /ws                                       Commands in, state/activity out

Every mutation runs on the event loop without awaiting in between, then the
full arena collection is broadcast to every connected observer. Rejected
commands are reported to the caller only.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager, suppress
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError
from starlette.middleware.cors import CORSMiddleware

from ragebait.config import RagebaitConfig
from ragebait.errors import ArenaError
from ragebait.models import Identity
from ragebait.resolution import Resolution

from .engine import ArenaEngine
from .messages import (
    ActivityModel,
    ActivityUpdate,
    AddBackingCommand,
    ArenaModel,
    BalanceUpdate,
    CreateArenaCommand,
    EntryModel,
    ErrorEvent,
    IdentityModel,
    JoinCommand,
    SettlementEvent,
    StateUpdate,
    SubmitEntryCommand,
    parse_command,
)

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 30.0

# Engine instance, set during lifespan
_engine: ArenaEngine | None = None


def get_engine() -> ArenaEngine:
    assert _engine is not None, "Engine not initialized"
    return _engine


# ======================================================================
# Observer connections
# ======================================================================


class ConnectionManager:
    """Tracks connected observers and fans events out to them."""

    def __init__(self):
        self.observers: list[WebSocket] = []

    async def connect(self, websocket: WebSocket, engine: ArenaEngine):
        await websocket.accept()
        self.observers.append(websocket)
        logger.info(f"Observer connected ({len(self.observers)} total)")

        # Late joiners get the full state and a slice of the feed
        await self.send(websocket, StateUpdate.of(engine.store.all()))
        for entry in engine.backlog():
            await self.send(websocket, ActivityUpdate.of(entry))

    def disconnect(self, websocket: WebSocket):
        if websocket in self.observers:
            self.observers.remove(websocket)
            logger.info(f"Observer disconnected ({len(self.observers)} remaining)")

    async def send(self, websocket: WebSocket, message: BaseModel) -> bool:
        """Send to one observer. Returns False if the socket is dead."""
        try:
            await websocket.send_json(message.model_dump(mode="json"))
            return True
        except Exception as e:
            logger.debug(f"Send failed: {e}")
            return False

    async def broadcast(self, message: BaseModel):
        """Send to every observer, dropping any that fail."""
        payload = message.model_dump(mode="json")
        dead = []
        for ws in list(self.observers):
            try:
                await ws.send_json(payload)
            except Exception:
                dead.append(ws)

        for ws in dead:
            self.disconnect(ws)

    def observer_count(self) -> int:
        return len(self.observers)


# Global connection manager
_manager = ConnectionManager()


async def _publish(engine: ArenaEngine, state: bool = True):
    """Flush pending activity, then the full arena collection."""
    for entry in engine.drain_activity():
        await _manager.broadcast(ActivityUpdate.of(entry))
    if state:
        await _manager.broadcast(StateUpdate.of(engine.store.all()))


async def _on_settled(resolutions: list[Resolution]):
    """Settlement clock callback: one state broadcast per productive tick."""
    engine = get_engine()
    await _publish(engine)
    for resolution in resolutions:
        await _manager.broadcast(SettlementEvent.of(resolution))


# ======================================================================
# Lifespan
# ======================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _engine
    config = getattr(app.state, "config", None) or RagebaitConfig()
    _engine = ArenaEngine(config.engine)
    _log_startup_config(config)

    clock_task = asyncio.create_task(_engine.clock.run(_on_settled))
    yield
    clock_task.cancel()
    with suppress(asyncio.CancelledError):
        await clock_task
    _engine = None


def _log_startup_config(config: RagebaitConfig):
    """Log the effective rules so operators can verify their config file."""
    engine = config.engine
    logger.info("=" * 50)
    logger.info("Arena startup config:")
    logger.info(f"  Arena duration: {engine.arena_duration_seconds:.0f}s")
    logger.info(
        f"  Creation stake: {engine.creation_stake} | Entry fee: {engine.entry_fee} "
        f"| Backing unit: {engine.backing_unit}"
    )
    logger.info(f"  Settlement tick: every {engine.tick_interval_seconds}s")
    logger.info(
        f"  Activity log: {engine.activity_log_size} kept, {engine.activity_replay} replayed"
    )
    logger.info(f"  Starting balance: {engine.starting_balance}")
    logger.info(f"  CORS origins: {', '.join(config.server.cors_origins) or '(none)'}")
    logger.info("=" * 50)


# ======================================================================
# Request/Response Models
# ======================================================================


class CreateArenaRequest(BaseModel):
    originator: IdentityModel
    statement: str = Field(min_length=1)


class SubmitEntryRequest(BaseModel):
    author: IdentityModel
    content: str = Field(min_length=1)


class BackingRequest(BaseModel):
    backer: IdentityModel
    amount: float | None = Field(default=None, gt=0, allow_inf_nan=False)


class BalanceResponse(BaseModel):
    identity_id: str
    balance: float


class HealthResponse(BaseModel):
    status: str
    active_arenas: int
    resolved_arenas: int
    observers: int
    ticks: int


def _http_error(e: ArenaError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail={"code": e.code, "message": str(e)})


# Handlers are async def so store access stays on the event loop, never the threadpool.
router = APIRouter()


# ======================================================================
# Queries
# ======================================================================


@router.get("/health", response_model=HealthResponse)
async def health() -> dict[str, Any]:
    engine = get_engine()
    return {
        "status": "ok",
        "active_arenas": len(engine.store.list_active()),
        "resolved_arenas": len(engine.store.list_resolved()),
        "observers": _manager.observer_count(),
        "ticks": engine.clock.ticks,
    }


@router.get("/arenas", response_model=list[ArenaModel])
async def list_arenas() -> list[Any]:
    return [ArenaModel.model_validate(a) for a in get_engine().store.all()]


@router.get("/arenas/active", response_model=list[ArenaModel])
async def list_active_arenas() -> list[Any]:
    return [ArenaModel.model_validate(a) for a in get_engine().store.list_active()]


@router.get("/arenas/resolved", response_model=list[ArenaModel])
async def list_resolved_arenas() -> list[Any]:
    return [ArenaModel.model_validate(a) for a in get_engine().store.list_resolved()]


@router.get("/arenas/{arena_id}", response_model=ArenaModel)
async def get_arena(arena_id: str) -> Any:
    try:
        arena = get_engine().store.get(arena_id)
    except ArenaError as e:
        raise _http_error(e)
    return ArenaModel.model_validate(arena)


@router.get("/activity", response_model=list[ActivityModel])
async def recent_activity(limit: int | None = Query(default=None, ge=0)) -> list[Any]:
    return [ActivityModel.model_validate(e) for e in get_engine().activity.recent(limit)]


@router.get("/balances/{identity_id}", response_model=BalanceResponse)
async def get_balance(identity_id: str) -> dict[str, Any]:
    balance = get_engine().balance_of(identity_id)
    if balance is None:
        raise HTTPException(status_code=404, detail="Unknown identity")
    return {"identity_id": identity_id, "balance": balance}


# ======================================================================
# Commands
# ======================================================================


@router.post("/arenas", response_model=ArenaModel)
async def create_arena(req: CreateArenaRequest) -> Any:
    engine = get_engine()
    try:
        arena = engine.create_arena(req.originator.to_identity(), req.statement)
    except ArenaError as e:
        logger.info(f"create_arena rejected: {e}")
        raise _http_error(e)
    await _publish(engine)
    return ArenaModel.model_validate(arena)


@router.post("/arenas/{arena_id}/entries", response_model=EntryModel)
async def submit_entry(arena_id: str, req: SubmitEntryRequest) -> Any:
    engine = get_engine()
    try:
        entry = engine.submit_entry(arena_id, req.author.to_identity(), req.content)
    except ArenaError as e:
        logger.info(f"submit_entry rejected: {e}")
        raise _http_error(e)
    await _publish(engine)
    return EntryModel.model_validate(entry)


@router.post("/arenas/{arena_id}/entries/{entry_id}/backing", response_model=EntryModel)
async def add_backing(arena_id: str, entry_id: str, req: BackingRequest) -> Any:
    engine = get_engine()
    try:
        entry = engine.add_backing(arena_id, entry_id, req.backer.to_identity(), req.amount)
    except ArenaError as e:
        logger.info(f"add_backing rejected: {e}")
        raise _http_error(e)
    await _publish(engine)
    return EntryModel.model_validate(entry)


# ======================================================================
# Live Observers
# ======================================================================


def _execute(engine: ArenaEngine, command) -> Identity:
    """Apply one command to the engine. Returns the acting identity."""
    if isinstance(command, JoinCommand):
        identity = command.identity.to_identity()
        engine.join(identity)
    elif isinstance(command, CreateArenaCommand):
        identity = command.originator.to_identity()
        engine.create_arena(identity, command.statement)
    elif isinstance(command, SubmitEntryCommand):
        identity = command.author.to_identity()
        engine.submit_entry(command.arena_id, identity, command.content)
    elif isinstance(command, AddBackingCommand):
        identity = command.backer.to_identity()
        engine.add_backing(command.arena_id, command.entry_id, identity, command.amount)
    else:
        raise TypeError(f"Unhandled command: {type(command).__name__}")
    return identity


async def _handle_message(websocket: WebSocket, raw: str):
    engine = get_engine()
    try:
        command = parse_command(json.loads(raw))
    except (ValueError, ValidationError) as e:
        await _manager.send(websocket, ErrorEvent(code="invalid_message", message=str(e)))
        return

    try:
        identity = _execute(engine, command)
    except ArenaError as e:
        logger.info(f"[ws] {command.type} rejected: {e}")
        await _manager.send(websocket, ErrorEvent(code=e.code, message=str(e)))
        return

    # join touches no arena, so only the feed goes out
    await _publish(engine, state=not isinstance(command, JoinCommand))
    await _manager.send(
        websocket,
        BalanceUpdate(identity_id=identity.id, balance=engine.balance_of(identity.id)),
    )


@router.websocket("/ws")
async def websocket_observer(websocket: WebSocket):
    """WebSocket endpoint for observers.

    Message types (client -> server):
        {"type": "join", "identity": {...}}
        {"type": "create-arena", "originator": {...}, "statement": str}
        {"type": "submit-entry", "arena_id": str, "author": {...}, "content": str}
        {"type": "add-backing", "arena_id": str, "entry_id": str, "backer": {...}, "amount": float}
    """
    engine = get_engine()
    await _manager.connect(websocket, engine)

    try:
        while True:
            try:
                raw = await asyncio.wait_for(websocket.receive_text(), timeout=KEEPALIVE_SECONDS)
            except asyncio.TimeoutError:
                # Send ping to keep connection alive
                try:
                    await websocket.send_json({"type": "ping"})
                except Exception:
                    break
                continue
            await _handle_message(websocket, raw)
    except WebSocketDisconnect:
        pass
    finally:
        _manager.disconnect(websocket)


# ======================================================================
# App
# ======================================================================


def create_app(config: RagebaitConfig | None = None) -> FastAPI:
    config = config or RagebaitConfig()
    application = FastAPI(title="Ragebait Arena", lifespan=lifespan)
    application.state.config = config
    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)
    return application


app = create_app()
