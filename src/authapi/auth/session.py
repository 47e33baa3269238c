# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side sessions bound to a signed cookie.

The cookie only carries the session id, signed with itsdangerous. The session
record itself (``{"userId": ...}`` plus its expiry) lives in a session store.

State machine::

    ANONYMOUS --authenticate--> AUTHENTICATED --destroy/expiry--> DESTROYED
"""

from __future__ import annotations

import enum
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from authapi.config import Settings
from authapi.errors import NotAuthenticatedError, SessionDestroyError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class SessionState(enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    DESTROYED = "destroyed"


@dataclass
class Session:
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    state: SessionState = SessionState.ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and bool(self.user_id)


class MemorySessionStore:
    """Thread-safe session records with a TTL counted from the last write."""

    def __init__(self, ttl: int, *, clock: Clock = time.time):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._records: Dict[str, Tuple[dict, float]] = {}

    def get(self, session_id: str) -> Optional[dict]:
        with self._lock:
            entry = self._records.get(session_id)
            if entry is None:
                return None
            data, expires_at = entry
            if expires_at <= self._clock():
                del self._records[session_id]
                return None
            return dict(data)

    def set(self, session_id: str, data: dict) -> None:
        now = self._clock()
        with self._lock:
            self._purge_locked(now)
            self._records[session_id] = (dict(data), now + self.ttl)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._records.pop(session_id, None) is not None

    def _purge_locked(self, now: float) -> None:
        # Sweep on write so ids whose clients never return do not pile up.
        expired = [sid for sid, (_, exp) in self._records.items() if exp <= now]
        for sid in expired:
            del self._records[sid]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SessionManager:
    def __init__(self, store: MemorySessionStore, *, secret_key: str, salt: str = "authapi.session.v1"):
        if not secret_key:
            raise RuntimeError("SessionManager needs a secret key")
        self.store = store
        self._serializer = URLSafeTimedSerializer(secret_key=secret_key, salt=salt)

    @classmethod
    def from_settings(cls, settings: Settings, *, clock: Clock = time.time) -> "SessionManager":
        return cls(
            MemorySessionStore(settings.session_ttl, clock=clock),
            secret_key=settings.secret_key or "",
            salt=settings.session_salt,
        )

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps({"sid": session_id})

    def _unsign(self, token: str) -> Optional[str]:
        try:
            data = self._serializer.loads(token, max_age=self.store.ttl)
        except (BadSignature, BadTimeSignature):
            return None
        sid = str((data or {}).get("sid") or "").strip() if isinstance(data, dict) else ""
        return sid or None

    def load(self, token: Optional[str]) -> Session:
        """Resolve a cookie value to a session. Anything unusable is anonymous."""
        if not token:
            return Session()
        sid = self._unsign(token)
        if not sid:
            return Session()
        record = self.store.get(sid)
        user_id = (record or {}).get("userId")
        if not user_id:
            return Session()
        return Session(session_id=sid, user_id=str(user_id), state=SessionState.AUTHENTICATED)

    def authenticate(self, session: Session, user_id: str) -> str:
        """Bind ``user_id`` to a fresh session id and return the signed cookie value."""
        if session.state is SessionState.DESTROYED:
            raise RuntimeError("Cannot reuse a destroyed session")
        if session.session_id:
            self.store.delete(session.session_id)
        sid = secrets.token_urlsafe(32)
        self.store.set(sid, {"userId": user_id})
        session.session_id = sid
        session.user_id = user_id
        session.state = SessionState.AUTHENTICATED
        return self.sign(sid)

    def destroy(self, session: Session) -> None:
        if not session.is_authenticated or not session.session_id:
            raise NotAuthenticatedError()
        self.store.delete(session.session_id)
        if self.store.get(session.session_id) is not None:
            logger.error("Session %s still present after delete", session.session_id[:8])
            raise SessionDestroyError()
        session.user_id = None
        session.state = SessionState.DESTROYED
