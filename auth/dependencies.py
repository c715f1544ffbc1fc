"""
FastAPI dependencies for authentication.

Provides ``get_auth_service`` and ``get_bearer_token`` which are used by
the auth and user routes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth.errors import Unauthorized
from auth.service import AuthService

_bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    """The service built by ``create_app`` and kept on ``app.state``."""
    return request.app.state.auth_service


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    """Raw token from ``Authorization: Bearer <token>``."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("missing_token")
    return credentials.credentials
