"""Account store: registration, credential checks and user lookups."""

from __future__ import annotations

import base64
import logging
import os
from typing import Any, Dict, Optional
import uuid

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from config import settings
from models.user import User
from services.errors import AuthError, StorageError, ValidationError
from services.session_token import create_session_token

logger = logging.getLogger(__name__)

PASSWORD_SCHEME = "pbkdf2_sha256"
MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: Optional[int] = None) -> str:
    """Hash a password as ``scheme$iterations$salt$digest`` with a fresh salt."""
    rounds = max(int(iterations or settings.PASSWORD_HASH_ITERATIONS), 1)
    salt = os.urandom(16)
    digest = _kdf(salt, rounds).derive(password.encode())
    return "$".join(
        [
            PASSWORD_SCHEME,
            str(rounds),
            base64.urlsafe_b64encode(salt).decode(),
            base64.urlsafe_b64encode(digest).decode(),
        ]
    )


def verify_password(password: str, stored_hash: str) -> bool:
    try:
        scheme, rounds, salt, digest = stored_hash.split("$")
        if scheme != PASSWORD_SCHEME:
            return False
        kdf = _kdf(base64.urlsafe_b64decode(salt), int(rounds))
        kdf.verify(password.encode(), base64.urlsafe_b64decode(digest))
    except (InvalidKey, ValueError):
        return False
    return True


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "avatar": user.avatar or "",
        "role": user.role or "user",
    }


def serialize_profile(user: User) -> Dict[str, Any]:
    return {
        **serialize_user(user),
        "bio": user.bio or "",
        "createdAt": user.created_at.isoformat() if user.created_at else None,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }


def _session_payload(user: User, message: str) -> Dict[str, Any]:
    session = create_session_token(user.id, user.username)
    return {
        "message": message,
        "token": session["token"],
        "expiresAt": session["expires_at"],
        "user": serialize_user(user),
    }


async def register_user_service(
    db: AsyncSession,
    *,
    username: Optional[str],
    email: Optional[str],
    password: Optional[str],
) -> Dict[str, Any]:
    username = str(username or "").strip()
    email = str(email or "").strip().lower()
    password = str(password or "")

    if not username or not email or not password:
        raise ValidationError("All fields are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(
            f"Username must be at least {MIN_USERNAME_LENGTH} characters", field="username"
        )

    try:
        existing = await db.execute(
            select(User.id).where(or_(User.email == email, User.username == username))
        )
        if existing.first() is not None:
            raise ValidationError("User already exists with this email or username")

        user = User(
            id=str(uuid.uuid4()),
            username=username,
            email=email,
            password_hash=hash_password(password),
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
    except IntegrityError as exc:
        await db.rollback()
        raise ValidationError("User already exists with this email or username") from exc
    except SQLAlchemyError as exc:
        logger.exception("account_register_failed username=%s", username)
        await db.rollback()
        raise StorageError("register failed") from exc

    logger.info("account_registered user=%s username=%s", user.id, user.username)
    return _session_payload(user, "User created successfully")


async def authenticate_user_service(
    db: AsyncSession,
    *,
    email: Optional[str],
    password: Optional[str],
) -> Dict[str, Any]:
    email = str(email or "").strip().lower()
    password = str(password or "")
    if not email or not password:
        raise ValidationError("Email and password are required")

    try:
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("account_login_failed email=%s", email)
        raise StorageError("login failed") from exc

    if not user or not verify_password(password, user.password_hash):
        logger.info("account_login_rejected email=%s", email)
        raise AuthError("Invalid credentials")

    return _session_payload(user, "Login successful")


async def get_user_service(db: AsyncSession, user_id: str) -> Optional[User]:
    try:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        logger.exception("account_lookup_failed user=%s", user_id)
        raise StorageError("user lookup failed") from exc


async def count_users_service(db: AsyncSession) -> int:
    try:
        result = await db.execute(select(func.count(User.id)))
        return int(result.scalar() or 0)
    except SQLAlchemyError as exc:
        logger.exception("account_count_failed")
        raise StorageError("user count failed") from exc
