from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from settings_api.core.settings import get_app_settings

ACCESS_TOKEN_TYPE = "access"


# PUBLIC_INTERFACE
def create_access_token(
    user_id: str,
    expires_minutes: Optional[int] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Sign an access token for user_id.

    Production tokens come from the main application with the shared secret;
    this is used by the seed script and the tests.
    """
    settings = get_app_settings()
    now = datetime.now(tz=timezone.utc)
    claims: Dict[str, Any] = {
        "sub": user_id,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    claims.update(extra or {})
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# PUBLIC_INTERFACE
def decode_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises JWTError otherwise."""
    settings = get_app_settings()
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])


# PUBLIC_INTERFACE
def decode_user_id(token: str) -> UUID:
    """
    Return the user id carried by an access token.

    Raises JWTError for a bad signature, an expired token, a refresh or other
    non-access token, or a subject that is not a UUID.
    """
    payload = decode_token(token)
    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise JWTError("Not an access token")
    try:
        return UUID(str(payload["sub"]))
    except (KeyError, ValueError) as exc:
        raise JWTError("Token subject is not a user id") from exc
