"""Runtime settings read from the environment."""

import os
from typing import Optional

ENV_PREFIX = "MERGE2048_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def grid_size() -> int:
    return int(_env("GRID_SIZE", "4"))


def start_tiles() -> int:
    return int(_env("START_TILES", "2"))


def ai_delay() -> float:
    return float(_env("AI_DELAY", "0.05"))


def strategy_name() -> str:
    return _env("STRATEGY", "score")


def state_path() -> Optional[str]:
    path = _env("STATE_PATH")
    return os.path.abspath(path) if path else None


def allowed_origins() -> str:
    return _env("ALLOWED_ORIGINS", "*")


def log_level() -> str:
    return _env("LOG_LEVEL", "INFO").upper()


def port() -> int:
    return int(os.environ.get("PORT", 5050))


def flask_debug() -> bool:
    return bool(os.environ.get("FLASK_DEBUG"))
