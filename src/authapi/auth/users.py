# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import tempfile
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from authapi.config import Settings
from authapi.errors import ConfigurationError, DuplicateEmailError, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "user"


@dataclass(frozen=True)
class UserRecord:
    id: str
    name: str
    email: str
    password_hash: str
    role: str = DEFAULT_ROLE
    created_at: str = ""

    def public(self) -> Dict[str, Any]:
        """User fields safe to send to a client."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at,
        }


def _new_record(name: str, email: str, password_hash: str, role: str) -> UserRecord:
    if not password_hash:
        raise PersistenceError(detail="refusing to store a user without a password hash")
    return UserRecord(
        id=uuid.uuid4().hex,
        name=name,
        email=email,
        password_hash=password_hash,
        role=(role or DEFAULT_ROLE).strip().lower(),
        created_at=datetime.now(timezone.utc).isoformat(),
    )


class MemoryUserStore:
    """Users kept in a dict. Check-and-insert runs under one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._by_email: Dict[str, UserRecord] = {}

    def check(self) -> None:
        return None

    def create_user(self, name: str, email: str, password_hash: str, role: str = DEFAULT_ROLE) -> UserRecord:
        with self._lock:
            if email in self._by_email:
                raise DuplicateEmailError(email)
            rec = _new_record(name, email, password_hash, role)
            self._by_email[email] = rec
            return rec

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        if not email:
            return None
        return self._by_email.get(email)


class YamlUserStore:
    """Users kept in a YAML document keyed by email.

    File layout::

        version: 1
        users:
          jane@doe.com: {id: ..., name: ..., password_hash: ..., role: user, created_at: ...}
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Tuple[float, Dict[str, UserRecord]] = (0.0, {})

    def _read(self) -> Dict[str, UserRecord]:
        try:
            mtime = self.path.stat().st_mtime if self.path.exists() else 0.0
        except OSError as exc:
            raise PersistenceError(detail=str(exc)) from exc

        cached_mtime, cached_users = self._cache
        if mtime and mtime == cached_mtime:
            return cached_users
        if not mtime:
            return {}

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise PersistenceError(detail=f"cannot read {self.path}: {exc}") from exc

        users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
        out: Dict[str, UserRecord] = {}
        for email, udata in users.items():
            if not isinstance(udata, dict):
                continue
            email = str(email).strip()
            if not email:
                continue
            out[email] = UserRecord(
                id=str(udata.get("id") or ""),
                name=str(udata.get("name") or ""),
                email=email,
                password_hash=str(udata.get("password_hash") or ""),
                role=str(udata.get("role") or DEFAULT_ROLE).strip().lower(),
                created_at=str(udata.get("created_at") or ""),
            )
        self._cache = (mtime, out)
        return out

    def _write(self, users: Dict[str, UserRecord]) -> None:
        doc = {"version": 1, "users": {}}
        for email, rec in users.items():
            data = asdict(rec)
            data.pop("email")
            doc["users"][email] = data
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".users-", suffix=".yml", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    yaml.safe_dump(doc, fh, sort_keys=False, allow_unicode=True)
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            raise PersistenceError(detail=f"cannot write {self.path}: {exc}") from exc

    def check(self) -> None:
        """Fail fast if the document cannot be read or its directory created."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(detail=f"user store directory not usable: {exc}") from exc
        try:
            self._read()
        except PersistenceError as exc:
            raise ConfigurationError(detail=exc.detail) from exc

    def create_user(self, name: str, email: str, password_hash: str, role: str = DEFAULT_ROLE) -> UserRecord:
        with self._lock:
            users = dict(self._read())
            if email in users:
                raise DuplicateEmailError(email)
            rec = _new_record(name, email, password_hash, role)
            users[email] = rec
            self._write(users)
            # Drop the cache so the next read picks the new file up even on coarse mtimes.
            self._cache = (0.0, {})
            return rec

    def find_user_by_email(self, email: str) -> Optional[UserRecord]:
        if not email:
            return None
        with self._lock:
            return self._read().get(email)


def build_user_store(settings: Settings):
    if settings.user_store == "memory":
        return MemoryUserStore()
    if settings.user_store == "yaml":
        return YamlUserStore(settings.users_path)
    raise ConfigurationError(detail=f"unknown user store {settings.user_store!r}")
