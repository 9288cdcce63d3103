"""
ragebait/config.py - Local configuration management

Reads config from a platform-appropriate config directory:
  - macOS/Linux: ~/.ragebait/config.toml
  - Windows: %APPDATA%\\ragebait\\config.toml

Every value has a default matching the live game rules, so a missing file
is a normal setup.

Example:
    [engine]
    arena_duration_seconds = 300
    creation_stake = 0.05
    entry_fee = 0.01
    backing_unit = 0.05
    tick_interval_seconds = 1.0
    activity_log_size = 15
    activity_replay = 10
    starting_balance = 10.0

    [server]
    host = "0.0.0.0"
    port = 3001
    cors_origins = ["http://localhost:5173"]
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "ragebait"
    return Path.home() / ".ragebait"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_PORT = 3001


# ============================================================================
# Data Types
# ============================================================================

@dataclass
class EngineConfig:
    """Game rules. Amounts are in MND."""

    arena_duration_seconds: float = 5 * 60
    creation_stake: float = 0.05
    entry_fee: float = 0.01
    backing_unit: float = 0.05
    tick_interval_seconds: float = 1.0
    activity_log_size: int = 15
    activity_replay: int = 10  # backlog sent to a newly connected observer
    starting_balance: float = 10.0  # airdrop for first-time identities


@dataclass
class ServerConfig:
    """Where the gateway listens and who may call it from a browser."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])


@dataclass
class RagebaitConfig:
    """Top-level configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# ============================================================================
# Parsing
# ============================================================================

def _parse_section(cls, data: dict):
    """Build a config dataclass from a TOML table, keeping defaults for missing keys."""
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")
    return cls(**{k: v for k, v in data.items() if k in known})


def _validate_engine(engine: EngineConfig) -> None:
    if engine.arena_duration_seconds <= 0:
        raise ValueError("arena_duration_seconds must be positive")
    if engine.tick_interval_seconds <= 0:
        raise ValueError("tick_interval_seconds must be positive")
    if engine.activity_log_size < 1:
        raise ValueError("activity_log_size must be at least 1")
    if engine.activity_replay > engine.activity_log_size:
        raise ValueError("activity_replay cannot exceed activity_log_size")
    for name in ("creation_stake", "entry_fee", "backing_unit"):
        if getattr(engine, name) <= 0:
            raise ValueError(f"{name} must be positive")


def load_config(path: Path | None = None) -> RagebaitConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.ragebait/config.toml)

    Returns:
        RagebaitConfig. Missing file, bad TOML or invalid values return defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return RagebaitConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return RagebaitConfig()

    try:
        engine_data = raw.get("engine", {})
        engine = (
            _parse_section(EngineConfig, engine_data)
            if isinstance(engine_data, dict)
            else EngineConfig()
        )
        _validate_engine(engine)

        server_data = raw.get("server", {})
        server = (
            _parse_section(ServerConfig, server_data)
            if isinstance(server_data, dict)
            else ServerConfig()
        )
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid config in {config_path}: {e}")
        return RagebaitConfig()

    return RagebaitConfig(engine=engine, server=server)
