# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Exception classes raised by the authentication core.

Every error carries the HTTP status it maps to and a public message that is
safe to return to a client. The request boundary turns them into JSON.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AuthError(Exception):
    """Base exception for all authentication errors."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[str] = None):
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message if not detail else f"{self.message}: {detail}")

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ConfigurationError(AuthError):
    """Raised when settings are missing or malformed. Aborts startup."""

    message = "Invalid configuration"


class ValidationError(AuthError):
    """Raised when registration data fails the name/email/password rules."""

    status_code = 400
    message = "Invalid registration data"

    def __init__(self, results: Dict[str, Any]):
        """Initialize the exception.

        Args:
            results: Field name mapped to its ``ValidationResult``.
        """
        self.results = results
        failed = ", ".join(sorted(k for k, r in results.items() if not r.valid))
        super().__init__(detail=failed or None)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"message": self.message}
        for field, result in self.results.items():
            out[field] = result.to_dict()
        return out


class MissingCredentialsError(AuthError):
    status_code = 400
    message = "Email or Password not present"


class DuplicateEmailError(AuthError):
    """Raised when a user with the same email already exists."""

    status_code = 400
    message = "User not successful created"

    def __init__(self, email: str):
        self.email = email
        super().__init__(detail="Email already registered")

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.detail}


class LoginError(AuthError):
    """Base for failed logins. Both subclasses render the same body."""

    status_code = 401
    message = "Login not successful"
    public_error = "Invalid email or password"

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.public_error}


class UserNotFoundError(LoginError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(detail="unknown email")


class AuthMismatchError(LoginError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(detail="password mismatch")


class NotAuthenticatedError(AuthError):
    status_code = 401
    message = "Not logged in, unable to log out"


class SessionDestroyError(AuthError):
    """Raised when a session record could not be confirmed as deleted."""

    status_code = 500
    message = "Logout failed"


class PersistenceError(AuthError):
    """Raised when the user store fails unexpectedly."""

    status_code = 500
    message = "User store unavailable"


class PersistenceTimeoutError(PersistenceError):
    message = "User store timed out"


class HashError(AuthError):
    """Raised when password hashing fails unexpectedly."""

    status_code = 500
    message = "Password hashing failed"


class HashTimeoutError(HashError):
    message = "Password hashing timed out"
