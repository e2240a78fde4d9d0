from __future__ import annotations

import logging
import os
from pathlib import Path

# Settings are read from the environment on each call so a running app (and the
# test suite) picks up changes without re-importing modules.

DEFAULT_SESSION_TTL_SEC = 24 * 60 * 60


def secret() -> str:
    return (os.environ.get("PAGESHELL_SECRET") or "").strip()


def users_file() -> Path:
    return Path(os.environ.get("PAGESHELL_USERS_FILE", "users.yaml")).expanduser()


def session_ttl_sec() -> int:
    try:
        ttl = int(os.environ.get("PAGESHELL_SESSION_TTL", "") or DEFAULT_SESSION_TTL_SEC)
    except ValueError:
        ttl = DEFAULT_SESSION_TTL_SEC
    return max(ttl, 60)


def log_level() -> str:
    return (os.environ.get("PAGESHELL_LOG_LEVEL") or "INFO").strip().upper()


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for the server process."""
    level = logging.DEBUG if verbose else getattr(logging, log_level(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
