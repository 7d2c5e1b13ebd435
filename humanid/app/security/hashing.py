# humanid/app/security/hashing.py
"""
Credential hashing.

- Admin passwords: salted bcrypt through passlib
- Everything the service derives (app secrets, user seeds, per-app user
  hashes): HMAC-SHA256 keyed with the process SECRET_KEY

HMAC outputs are deterministic for a given key, so a returning phone number
always maps to the same user and the same per-app hash. There is no way back
from a hash to the phone number.
"""
import hashlib
import hmac
import secrets
from typing import Union

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Random bytes mixed into every new app secret
APP_SECRET_ENTROPY_BYTES = 32


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def hmac_hash(data: Union[str, bytes], key: Union[str, bytes]) -> str:
    """HMAC-SHA256 of ``data`` under ``key``, hex encoded."""
    return hmac.new(_to_bytes(key), _to_bytes(data), hashlib.sha256).hexdigest()


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings without leaking where they differ."""
    if a is None or b is None:
        return False
    return secrets.compare_digest(_to_bytes(a), _to_bytes(b))


class CredentialHasher:
    """
    Derives every opaque identifier the service hands out.

    Usage:
        hasher = CredentialHasher(settings.SECRET_KEY)
        seed = hasher.user_seed("6280989999")
        app_hash = hasher.app_user_hash(user.id, "NEW_YORK_TIMES", seed)
    """

    def __init__(self, key: Union[str, bytes]):
        if not key:
            raise ValueError("CredentialHasher needs a non-empty key")
        self._key = _to_bytes(key)

    def hmac(self, data: Union[str, bytes]) -> str:
        return hmac_hash(data, self._key)

    def app_secret(self, app_id: str) -> str:
        """Fresh secret for an app: random entropy bound to the app id."""
        entropy = secrets.token_hex(APP_SECRET_ENTROPY_BYTES)
        return self.hmac(f"{entropy}{app_id}")

    def user_seed(self, number: str) -> str:
        """Stable, phone-derived seed stored on the global User row."""
        return self.hmac(number)

    def app_user_hash(self, user_id: int, app_id: str, user_seed: str) -> str:
        """
        Per-app credential for a user.

        The app id is part of the material, so two apps never see the same
        hash for the same person. The device id is not part of it.
        """
        return self.hmac(f"{user_id}:{app_id}:{user_seed}")
