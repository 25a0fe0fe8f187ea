"""Runtime settings read from ``MARUBATSU_*`` environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_DATABASE_URL = "sqlite:///game_stats.db"
DEFAULT_AI_DELAY = 0.5
DEFAULT_MAX_GAMES = 256


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    ai_delay: float = DEFAULT_AI_DELAY
    ai_seed: Optional[int] = None
    max_games: int = DEFAULT_MAX_GAMES
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Raises ``ValueError`` naming the variable when a value does not parse."""
        return cls(
            database_url=os.getenv("MARUBATSU_DATABASE_URL", DEFAULT_DATABASE_URL),
            ai_delay=max(0.0, _parse("MARUBATSU_AI_DELAY", float, DEFAULT_AI_DELAY)),
            ai_seed=_parse("MARUBATSU_AI_SEED", int, None),
            max_games=max(1, _parse("MARUBATSU_MAX_GAMES", int, DEFAULT_MAX_GAMES)),
            log_level=os.getenv("MARUBATSU_LOG_LEVEL", "INFO").upper(),
        )


def _parse(name: str, kind, default):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ValueError(f"{name} must be {kind.__name__}, got {raw!r}") from None
