"""
Authentication router: registration, login and profile retrieval.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from routers.auth_scope import get_current_user
from routers.rate_limit import rate_limit
from services.accounts import (
    authenticate_user_service,
    register_user_service,
    serialize_profile,
)

router = APIRouter()


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/register", status_code=201)
async def register(
    request: RegisterRequest,
    _rate_limit: None = Depends(rate_limit("auth_register", limit=20, window_seconds=3600)),
    db: AsyncSession = Depends(get_db),
):
    """Create an account and return a session token."""
    return await register_user_service(
        db,
        username=request.username,
        email=request.email,
        password=request.password,
    )


@router.post("/login")
async def login(
    request: LoginRequest,
    _rate_limit: None = Depends(rate_limit("auth_login", limit=60, window_seconds=900)),
    db: AsyncSession = Depends(get_db),
):
    return await authenticate_user_service(db, email=request.email, password=request.password)


@router.get("/profile")
async def get_profile(user: User = Depends(get_current_user)):
    """Current user's profile, without credentials."""
    return serialize_profile(user)
