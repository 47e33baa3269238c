# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from authapi import __version__
from authapi.auth.passwords import Hasher
from authapi.auth.service import AuthService
from authapi.auth.session import Session, SessionManager
from authapi.auth.users import build_user_store
from authapi.config import Settings, load_settings, validate_settings
from authapi.deps import clear_session_cookie, get_auth_service, get_session, get_settings, set_session_cookie
from authapi.errors import AuthError

logger = logging.getLogger(__name__)


# Fields are left untyped so malformed values reach the validators instead of a 422.
class RegisterRequest(BaseModel):
    name: Any = None
    email: Any = None
    password: Any = None


class LoginRequest(BaseModel):
    email: Any = None
    password: Any = None


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register")
async def register(
    body: RegisterRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    _, token = await service.register(session, body.name, body.email, body.password)
    resp = JSONResponse({"message": "User successfully created"})
    set_session_cookie(resp, settings, token)
    return resp


@router.post("/login")
async def login(
    body: LoginRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    user, token = await service.login(session, body.email, body.password)
    resp = JSONResponse({"message": "Login successful", "user": user.public()})
    set_session_cookie(resp, settings, token)
    return resp


@router.post("/logout")
def logout(
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    service.logout(session)
    resp = JSONResponse({"message": "Logged out successfully"})
    clear_session_cookie(resp, settings)
    return resp


async def _auth_error_handler(request: Request, exc: AuthError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"message": "Internal error"}, status_code=500)


def build_auth_service(settings: Settings) -> AuthService:
    """Wire store, hasher and session manager. Raises if the store is unusable."""
    store = build_user_store(settings)
    store.check()
    return AuthService(
        store,
        Hasher.from_settings(settings),
        SessionManager.from_settings(settings),
        store_timeout=settings.store_timeout,
        hash_timeout=settings.hash_timeout,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Any failure here aborts startup instead of serving degraded traffic.
        checked = validate_settings(settings or load_settings())
        app.state.settings = checked
        app.state.auth_service = build_auth_service(checked)
        logger.info(
            "authapi started (env=%s, store=%s, session_ttl=%ss)",
            checked.env,
            checked.user_store,
            checked.session_ttl,
        )
        yield

    app = FastAPI(title="authapi", version=__version__, lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(AuthError, _auth_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    return app


app = create_app()
