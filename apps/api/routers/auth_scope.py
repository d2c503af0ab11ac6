"""Authentication dependencies for upload and profile endpoints."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from models.user import User
from services.accounts import get_user_service
from services.errors import AuthError
from services.session_token import decode_session_token


auth_scheme = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user_id: str
    username: Optional[str] = None


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
) -> AuthContext:
    """Resolve the caller from a Bearer session token."""
    if not credentials or credentials.scheme.lower() != "bearer":
        raise AuthError("No token provided")

    try:
        payload = decode_session_token(credentials.credentials)
    except ValueError as exc:
        raise AuthError(str(exc)) from exc

    return AuthContext(
        user_id=str(payload.get("sub", "")),
        username=str(payload.get("username", "")) or None,
    )


async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Load the account behind the token; deleted accounts are rejected."""
    user = await get_user_service(db, auth.user_id)
    if not user:
        raise AuthError("Invalid token")
    return user
