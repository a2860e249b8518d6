"""Runtime settings (timeouts, headers, retry caps, paths).

Centralizes environment-driven defaults so the adapters carry no embedded
magic numbers. Callers can construct their own FetchConfig to override any of
them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv(override=False)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
DEFAULT_PREFERENCES_PATH = Path.home() / ".config" / "masonry-catalog" / "preferences.json"

# Vocabulary fetches stop after this many attempts per process.
FACET_MAX_ATTEMPTS = 3


def _env_int(name: str, default: int = 0) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_bool(name: str, default: str = "0") -> bool:
    raw = os.getenv(name, default)
    return str(raw).strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class FetchConfig:
    """Configuration parameters for the HTTP transport."""

    timeout: float = 20.0
    max_attempts: int = 1
    backoff_initial: float = 0.8
    backoff_max: float = 6.0
    user_agent: str = DEFAULT_USER_AGENT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    follow_redirects: bool = True


def load_fetch_config(*, follow_redirects: Optional[bool] = None) -> FetchConfig:
    """Build a FetchConfig from MASONRY_* environment variables."""

    redirects = follow_redirects
    if redirects is None:
        redirects = _env_bool("MASONRY_FOLLOW_REDIRECTS", "1")
    return FetchConfig(
        timeout=max(1.0, _env_float("MASONRY_TIMEOUT", 20.0)),
        max_attempts=max(1, _env_int("MASONRY_MAX_ATTEMPTS", 1)),
        backoff_initial=max(0.0, _env_float("MASONRY_BACKOFF_INITIAL", 0.8)),
        backoff_max=max(0.0, _env_float("MASONRY_BACKOFF_MAX", 6.0)),
        user_agent=os.getenv("MASONRY_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
        accept_language=os.getenv("MASONRY_ACCEPT_LANGUAGE", "").strip() or DEFAULT_ACCEPT_LANGUAGE,
        follow_redirects=redirects,
    )


def facet_max_attempts() -> int:
    return max(1, _env_int("MASONRY_FACET_MAX_ATTEMPTS", FACET_MAX_ATTEMPTS))


def preferences_path() -> Path:
    raw = os.getenv("MASONRY_PREFERENCES_PATH", "").strip()
    return Path(raw).expanduser() if raw else DEFAULT_PREFERENCES_PATH


def log_level(default: str = "WARNING") -> str:
    return (os.getenv("MASONRY_LOG_LEVEL", "") or default).strip().upper()


__all__ = [
    "DEFAULT_USER_AGENT",
    "DEFAULT_ACCEPT_LANGUAGE",
    "DEFAULT_PREFERENCES_PATH",
    "FACET_MAX_ATTEMPTS",
    "FetchConfig",
    "load_fetch_config",
    "facet_max_attempts",
    "preferences_path",
    "log_level",
]
