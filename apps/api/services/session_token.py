"""Signed Bearer tokens issued at register/login and required for uploads."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "bec_session"
DEFAULT_TTL_HOURS = 720


def _session_claims(user_id: str, username: Optional[str], issued_at: datetime, expires_at: datetime) -> Dict[str, Any]:
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if username:
        claims["username"] = username
    return claims


def create_session_token(
    user_id: str,
    username: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Sign a session for ``user_id``; returns the token and its epoch expiry."""
    issued_at = datetime.now(timezone.utc)
    lifetime = max(int(expires_hours or settings.JWT_EXPIRATION_HOURS or DEFAULT_TTL_HOURS), 1)
    expires_at = issued_at + timedelta(hours=lifetime)

    token = jwt.encode(
        _session_claims(user_id, username, issued_at, expires_at),
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    return {"token": token, "expires_at": int(expires_at.timestamp())}


def decode_session_token(token: str) -> Dict[str, Any]:
    """Return the claims of a valid session token.

    Raises ``ValueError`` for a bad signature, an expired token, a token of
    another type or one without a subject.
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    if str(claims.get("type", "")).strip() != SESSION_TOKEN_TYPE:
        raise ValueError("Not a session token.")
    if not str(claims.get("sub", "")).strip():
        raise ValueError("Session token has no subject.")
    return claims
