"""
Auth API routes — login, profile.

Route prefix: /auth
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from auth.dependencies import get_auth_service, get_bearer_token
from auth.models import PublicUser, TokenResponse
from auth.service import AuthService

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Login with email + password."""
    return await service.login(payload)


@router.get("/profile", response_model=PublicUser)
async def profile(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service),
) -> PublicUser:
    """Return the user the bearer token was issued for."""
    return await service.get_profile(token)
