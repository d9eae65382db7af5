"""
User router: registration and profile.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from src.api.dependencies import get_user_id, get_user_service
from src.users.service import UserService

router = APIRouter()


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    locale: str = "en"


class RegisterResponse(BaseModel):
    userId: str
    username: str


class ProfileResponse(BaseModel):
    id: str
    username: str
    locale: str
    mu: float
    currentStreak: int
    bestStreak: int
    lastLoginAt: Optional[datetime] = None


@router.post("/register", response_model=RegisterResponse, summary="Register a user or guest")
def register(
    request: Optional[RegisterRequest] = Body(default=None),
    service: UserService = Depends(get_user_service),
) -> RegisterResponse:
    request = request or RegisterRequest()
    user_id, username = service.create_user(request.username, request.locale)
    return RegisterResponse(userId=user_id, username=username)


@router.get("/profile", response_model=ProfileResponse, summary="Caller's profile")
def profile(
    user_id: str = Depends(get_user_id),
    service: UserService = Depends(get_user_service),
) -> ProfileResponse:
    p = service.get_profile(user_id)
    return ProfileResponse(
        id=p.id,
        username=p.username,
        locale=p.locale,
        mu=p.mu,
        currentStreak=p.current_streak,
        bestStreak=p.best_streak,
        lastLoginAt=p.last_login_at,
    )
