"""Session token helpers for identity-provider issued sessions."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "gallery_session"


def create_session_token(
    user_id: str,
    email: Optional[str] = None,
    expires_hours: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a signed session token payload for API authentication."""
    now = datetime.now(timezone.utc)
    ttl_hours = int(expires_hours or settings.JWT_EXPIRATION_HOURS or 24)
    expires_at = now + timedelta(hours=max(ttl_hours, 1))
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if email:
        claims["email"] = email
    if settings.JWT_ISSUER:
        claims["iss"] = settings.JWT_ISSUER

    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {
        "token": token,
        "expires_at": int(expires_at.timestamp()),
    }


def decode_session_token(token: str) -> Dict[str, Any]:
    """Decode and validate a signed session token."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Invalid or expired session token.") from exc

    token_type = str(payload.get("type", "")).strip()
    if token_type != SESSION_TOKEN_TYPE:
        raise ValueError("Invalid session token type.")

    subject = str(payload.get("sub", "")).strip()
    if not subject:
        raise ValueError("Session token missing subject.")

    return payload


def resolve_principal_id(token: Optional[str]) -> Optional[str]:
    """Return the session subject, or None for a missing or invalid token."""
    if not token:
        return None
    try:
        payload = decode_session_token(token)
    except ValueError:
        return None
    return str(payload["sub"]).strip()
