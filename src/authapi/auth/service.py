# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Register / login / logout flows.

Store and hash calls are blocking; they run in worker threads and are bounded
by the configured timeouts. A timed-out call is abandoned, not interrupted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from authapi.auth.passwords import Hasher
from authapi.auth.session import Session, SessionManager
from authapi.auth.users import UserRecord
from authapi.auth.validators import validate_registration
from authapi.errors import (
    AuthError,
    AuthMismatchError,
    HashError,
    HashTimeoutError,
    MissingCredentialsError,
    PersistenceError,
    PersistenceTimeoutError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _bounded(
    fn: Callable[..., T],
    *args: Any,
    timeout: float,
    timeout_error: Type[AuthError],
    failure_error: Type[AuthError],
) -> T:
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout)
    except asyncio.TimeoutError:
        raise timeout_error(detail=f"{getattr(fn, '__name__', 'call')} exceeded {timeout}s") from None
    except AuthError:
        raise
    except Exception as exc:
        raise failure_error(detail=str(exc)) from exc


class AuthService:
    def __init__(
        self,
        store,
        hasher: Hasher,
        sessions: SessionManager,
        *,
        store_timeout: float = 5.0,
        hash_timeout: float = 5.0,
    ):
        self.store = store
        self.hasher = hasher
        self.sessions = sessions
        self.store_timeout = store_timeout
        self.hash_timeout = hash_timeout

    async def _store_call(self, fn: Callable[..., T], *args: Any) -> T:
        return await _bounded(
            fn,
            *args,
            timeout=self.store_timeout,
            timeout_error=PersistenceTimeoutError,
            failure_error=PersistenceError,
        )

    async def _hash_call(self, fn: Callable[..., T], *args: Any) -> T:
        return await _bounded(
            fn,
            *args,
            timeout=self.hash_timeout,
            timeout_error=HashTimeoutError,
            failure_error=HashError,
        )

    async def register(self, session: Session, name: Any, email: Any, password: Any) -> Tuple[UserRecord, str]:
        """Create the user and authenticate ``session``.

        Returns the new record and the signed session cookie value.
        """
        results = validate_registration(name, email, password)
        if not all(r.valid for r in results.values()):
            raise ValidationError(results)

        password_hash = await self._hash_call(self.hasher.hash_password, password)
        try:
            user = await self._store_call(self.store.create_user, name, email, password_hash)
        except PersistenceTimeoutError:
            # The abandoned write may still have landed; our hash identifies our record.
            user = await self._store_call(self.store.find_user_by_email, email)
            if user is None or user.password_hash != password_hash:
                raise PersistenceTimeoutError(
                    "User store timed out; the account may still be created",
                    detail=f"create_user exceeded {self.store_timeout}s",
                ) from None
            logger.warning("create_user timed out but the record was written: %s", user.id)
        token = self.sessions.authenticate(session, user.id)
        logger.info("User registered: %s", user.id)
        return user, token

    async def login(self, session: Session, email: Any, password: Any) -> Tuple[UserRecord, str]:
        if not email or not password or not isinstance(email, str) or not isinstance(password, str):
            raise MissingCredentialsError()

        user: Optional[UserRecord] = await self._store_call(self.store.find_user_by_email, email)
        if user is None:
            await self._hash_call(self.hasher.dummy_verify, password)
            logger.info("Login failed: unknown email")
            raise UserNotFoundError(email)

        ok = await self._hash_call(self.hasher.verify_password, user.password_hash, password)
        if not ok:
            logger.info("Login failed: password mismatch for user %s", user.id)
            raise AuthMismatchError(email)

        token = self.sessions.authenticate(session, user.id)
        logger.info("User logged in: %s", user.id)
        return user, token

    def logout(self, session: Session) -> None:
        user_id = session.user_id
        self.sessions.destroy(session)
        logger.info("User logged out: %s", user_id)
