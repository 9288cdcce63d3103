"""
arena - Live gateway and settlement engine for Ragebait

Holds the authoritative arena state, resolves expired arenas on a fixed
tick and pushes every change to connected observers over WebSocket.
"""

from .engine import ArenaEngine
from .server import app, create_app
from .store import ArenaStore

__all__ = ["app", "create_app", "ArenaEngine", "ArenaStore"]
