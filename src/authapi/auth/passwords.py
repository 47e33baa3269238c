# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from authapi.config import Settings
from authapi.errors import HashError


class Hasher:
    """argon2id hashing with a fresh random salt on every call."""

    def __init__(self, *, time_cost: int = 3, memory_cost: int = 65536, parallelism: int = 4):
        self._ph = PasswordHasher(time_cost=time_cost, memory_cost=memory_cost, parallelism=parallelism)
        # Reference hash for unknown-account logins, so they cost as much as a real check.
        self._dummy_hash = self._ph.hash("authapi-dummy-password")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Hasher":
        return cls(
            time_cost=settings.hash_time_cost,
            memory_cost=settings.hash_memory_cost,
            parallelism=settings.hash_parallelism,
        )

    def hash_password(self, plain: str) -> str:
        if not plain:
            raise ValueError("Empty password")
        try:
            return self._ph.hash(plain)
        except HashingError as exc:
            raise HashError(detail=str(exc)) from exc

    def verify_password(self, hash_value: str, plain: str) -> bool:
        if not hash_value or not plain:
            return False
        try:
            return self._ph.verify(hash_value, plain)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False

    def dummy_verify(self, plain: str) -> bool:
        self.verify_password(self._dummy_hash, plain or "x")
        return False
