# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from authapi.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_USERS_PATH = BASE_DIR / "data" / "users.yml"

USER_STORE_KINDS = {"yaml", "memory"}


def _get_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(detail=f"{name} must be an integer, got {raw!r}") from None


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(detail=f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    secret_key: Optional[str] = None
    session_salt: str = "authapi.session.v1"
    cookie_name: str = "sid"
    cookie_secure: bool = False
    session_ttl: int = 60  # seconds, from last write
    user_store: str = "yaml"
    users_path: Path = DEFAULT_USERS_PATH
    hash_time_cost: int = 3
    hash_memory_cost: int = 65536  # KiB
    hash_parallelism: int = 4
    store_timeout: float = 5.0
    hash_timeout: float = 5.0

    @property
    def is_production(self) -> bool:
        return self.env.strip().lower() == "production"


def load_settings() -> Settings:
    """Build settings from ``AUTH_*`` environment variables."""
    return Settings(
        env=os.getenv("AUTH_ENV", "development"),
        secret_key=os.getenv("SECRET_KEY") or os.getenv("AUTH_SECRET_KEY") or None,
        session_salt=os.getenv("AUTH_SESSION_SALT", "authapi.session.v1"),
        cookie_name=os.getenv("AUTH_COOKIE_NAME", "sid"),
        cookie_secure=_get_bool(os.getenv("AUTH_COOKIE_SECURE"), default=False),
        session_ttl=_get_int("AUTH_SESSION_TTL", 60),
        user_store=os.getenv("AUTH_USER_STORE", "yaml").strip().lower(),
        users_path=Path(os.getenv("AUTH_USERS_PATH", str(DEFAULT_USERS_PATH))).resolve(),
        hash_time_cost=_get_int("AUTH_HASH_TIME_COST", 3),
        hash_memory_cost=_get_int("AUTH_HASH_MEMORY_COST", 65536),
        hash_parallelism=_get_int("AUTH_HASH_PARALLELISM", 4),
        store_timeout=_get_float("AUTH_STORE_TIMEOUT", 5.0),
        hash_timeout=_get_float("AUTH_HASH_TIMEOUT", 5.0),
    )


def validate_settings(settings: Settings) -> Settings:
    """Check settings before serving traffic.

    Returns the settings to use, which may carry a generated development
    secret. Raises ``ConfigurationError`` on anything that must abort startup.
    """
    if settings.user_store not in USER_STORE_KINDS:
        raise ConfigurationError(
            detail=f"AUTH_USER_STORE must be one of {sorted(USER_STORE_KINDS)}, got {settings.user_store!r}"
        )
    if settings.session_ttl <= 0:
        raise ConfigurationError(detail="AUTH_SESSION_TTL must be positive")
    if settings.store_timeout <= 0 or settings.hash_timeout <= 0:
        raise ConfigurationError(detail="AUTH_STORE_TIMEOUT and AUTH_HASH_TIMEOUT must be positive")

    if not settings.secret_key:
        if settings.is_production:
            raise ConfigurationError(detail="SECRET_KEY (or AUTH_SECRET_KEY) must be set in production")
        logger.warning("No SECRET_KEY set; using a random per-process key. Sessions will not survive restarts.")
        settings = replace(settings, secret_key=secrets.token_urlsafe(32))
    return settings
