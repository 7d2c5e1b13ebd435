# humanid/app/security/jwt.py
"""
Console session tokens (HS256, python-jose).

Tokens carry the admin id in ``sub``. They only expire when
ACCESS_TOKEN_EXPIRE_MINUTES is configured.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from humanid.app.core.config import Settings
from humanid.app.core.exceptions import InvalidToken


def create_access_token(
    subject: Any,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode: Dict[str, Any] = {
        "sub": str(subject),
        "iat": int(datetime.now(timezone.utc).timestamp()),
    }
    if expires_delta is None and settings.ACCESS_TOKEN_EXPIRE_MINUTES:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    if expires_delta is not None:
        to_encode["exp"] = datetime.now(timezone.utc) + expires_delta

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> int:
    """Return the admin id inside ``token`` or raise InvalidToken."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise InvalidToken()

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise InvalidToken()
