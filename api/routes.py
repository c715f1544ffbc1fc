"""
User routes — register, list, fetch by id.

Route prefix: /users
"""

from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Body, Depends, status

from auth.dependencies import get_auth_service
from auth.models import PublicUser, TokenResponse
from auth.service import AuthService

router = APIRouter(tags=["users"])


@router.get("", response_model=List[PublicUser])
async def list_users(service: AuthService = Depends(get_auth_service)) -> List[PublicUser]:
    return await service.list_users()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: Any = Body(default=None),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Register a new user; the response holds only the access token."""
    return await service.register(payload)


@router.get("/{user_id}", response_model=PublicUser)
async def get_user(
    user_id: str,
    service: AuthService = Depends(get_auth_service),
) -> PublicUser:
    return await service.get_user(user_id)
