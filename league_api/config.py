# league_api/config.py
from __future__ import annotations

import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _get_env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, str(default))
    try:
        return float(raw)
    except ValueError:
        return default


# -------------------------
# Scoring defaults (limited-overs standard)
# -------------------------
DEFAULT_OVERS_PER_MATCH: float = _get_env_float("DEFAULT_OVERS_PER_MATCH", 20.0)

DEFAULT_POINTS_FOR_WIN: int = _get_env_int("DEFAULT_POINTS_FOR_WIN", 2)
DEFAULT_POINTS_FOR_DRAW: int = _get_env_int("DEFAULT_POINTS_FOR_DRAW", 1)
DEFAULT_POINTS_FOR_LOSS: int = _get_env_int("DEFAULT_POINTS_FOR_LOSS", 0)


# -------------------------
# Commentary service config (OPTIONAL)
# -------------------------
COMMENTARY_API_URL: str = _get_env("COMMENTARY_API_URL")
COMMENTARY_API_KEY: str = _get_env("COMMENTARY_API_KEY")

# If 0, standings work without any commentary backend
COMMENTARY_ENABLED: bool = _get_env("COMMENTARY_ENABLED", "0") == "1"

COMMENTARY_TIMEOUT_SECONDS: int = _get_env_int("COMMENTARY_TIMEOUT_SECONDS", 30)


# -------------------------
# Logging
# -------------------------
LEAGUE_LOG_LEVEL: str = _get_env("LEAGUE_LOG_LEVEL", "INFO").upper()

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_config() -> None:
    if DEFAULT_OVERS_PER_MATCH <= 0:
        raise RuntimeError("DEFAULT_OVERS_PER_MATCH must be positive")

    if DEFAULT_POINTS_FOR_WIN < DEFAULT_POINTS_FOR_LOSS:
        raise RuntimeError("DEFAULT_POINTS_FOR_WIN must not be lower than DEFAULT_POINTS_FOR_LOSS")

    # If enabled, enforce endpoint
    if COMMENTARY_ENABLED:
        if not COMMENTARY_API_URL.startswith("http"):
            raise RuntimeError("COMMENTARY_API_URL must start with http/https when COMMENTARY_ENABLED=1")
        if not COMMENTARY_API_KEY or COMMENTARY_API_KEY in {"DUMMY_KEY", "PASTE_YOUR_KEY_HERE"}:
            raise RuntimeError("COMMENTARY_API_KEY missing/placeholder but COMMENTARY_ENABLED=1")

    if COMMENTARY_TIMEOUT_SECONDS <= 0:
        raise RuntimeError("COMMENTARY_TIMEOUT_SECONDS must be positive")

    if LEAGUE_LOG_LEVEL not in _LOG_LEVELS:
        raise RuntimeError(f"LEAGUE_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}")
