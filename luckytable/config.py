"""Configuration loader for the Lucky Table bot."""
from __future__ import annotations

import os
from dataclasses import dataclass

from .wallet import DAILY_BONUS, HISTORY_LIMIT, STARTING_BALANCE


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer") from None
    if value < 0:
        raise RuntimeError(f"{name} must not be negative")
    return value


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        raise RuntimeError(f"{name} must be a number") from None


@dataclass
class Settings:
    token: str
    database_path: str = "data/lucky_table.db"
    guild_whitelist: set[str] | None = None
    starting_balance: int = STARTING_BALANCE
    daily_bonus: int = DAILY_BONUS
    history_limit: int = HISTORY_LIMIT
    strict_ledger: bool = False
    reveal_delay: float = 1.5
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Expected variables:
            DISCORD_TOKEN: bot token
            DATABASE_PATH: optional path to the SQLite key-value store
            GUILD_WHITELIST: optional comma-separated guild IDs
            STARTING_BALANCE, DAILY_BONUS, HISTORY_LIMIT: optional wallet overrides
            STRICT_LEDGER: reject over-debits instead of clamping at zero
            REVEAL_DELAY: seconds to wait before showing a resolved round
            LOG_LEVEL: logging level name
        """

        token = os.environ.get("DISCORD_TOKEN")
        if not token:
            raise RuntimeError("DISCORD_TOKEN is required")

        database_path = os.environ.get("DATABASE_PATH", "data/lucky_table.db")
        guilds = os.environ.get("GUILD_WHITELIST")
        whitelist = {g.strip() for g in guilds.split(",") if g.strip()} if guilds else None

        history_limit = _int_env("HISTORY_LIMIT", HISTORY_LIMIT)
        if history_limit == 0:
            raise RuntimeError("HISTORY_LIMIT must be at least 1")

        return cls(
            token=token,
            database_path=database_path,
            guild_whitelist=whitelist,
            starting_balance=_int_env("STARTING_BALANCE", STARTING_BALANCE),
            daily_bonus=_int_env("DAILY_BONUS", DAILY_BONUS),
            history_limit=history_limit,
            strict_ledger=os.environ.get("STRICT_LEDGER", "").strip().lower() in ("1", "true", "yes", "on"),
            reveal_delay=_float_env("REVEAL_DELAY", 1.5),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
