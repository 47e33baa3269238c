# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from fastapi import Request, Response

from authapi.auth.service import AuthService
from authapi.auth.session import Session
from authapi.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session(request: Request) -> Session:
    """Session for the cookie on this request; anonymous when absent or stale."""
    settings = get_settings(request)
    token = request.cookies.get(settings.cookie_name, "")
    return get_auth_service(request).sessions.load(token)


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure}


def set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.session_ttl,
        **cookie_settings(settings),
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.cookie_name, **cookie_settings(settings))
