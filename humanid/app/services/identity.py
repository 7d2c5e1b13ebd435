"""
humanid/app/services/identity.py

Identity resolution for the mobile surface.

- verify_phone: start a verification for (country code, phone)
- register: consume the code, resolve the global user, mint the app hash
- login: trade a hash from one app for this app's hash (same user)
- check_login: confirm a hash is registered with this app

The phone number only ever exists in memory; the database sees its HMAC.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.core.exceptions import ConflictError, InvalidHash
from humanid.app.core.logging import get_logger, mask_number
from humanid.app.models.app_user import AppUser
from humanid.app.models.user import User
from humanid.app.security.hashing import CredentialHasher
from humanid.app.services.app_registry import AppRegistry
from humanid.app.services.verification import VerificationFlow, combine_phone

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    """What the SDK gets back: nothing but the app and its hash."""
    app_id: str
    hash: str


class IdentityResolver:

    def __init__(self, registry: AppRegistry, hasher: CredentialHasher, verification: VerificationFlow):
        self.registry = registry
        self.hasher = hasher
        self.verification = verification

    async def verify_phone(
        self,
        db: AsyncSession,
        app_id: str,
        app_secret: str,
        country_code: str,
        phone: str,
    ) -> Optional[str]:
        await self.registry.validate_app_credentials(db, app_id, app_secret)
        number = combine_phone(country_code, phone)

        try:
            sentinel = await self.verification.request(db, number)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Verification requested for {mask_number(number)}", extra={"app_id": app_id})
        return sentinel

    async def register(
        self,
        db: AsyncSession,
        app_id: str,
        app_secret: str,
        country_code: str,
        phone: str,
        device_id: str,
        verification_code: str,
    ) -> Identity:
        app = await self.registry.validate_app_credentials(db, app_id, app_secret)
        number = combine_phone(country_code, phone)

        # Code consumption and identity writes commit together
        try:
            await self.verification.confirm(db, number, verification_code)
            user = await self._find_or_create_user(db, self.hasher.user_seed(number))
            app_user = await self._upsert_app_user(db, user, app.id, device_id=device_id)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Registration collided with a concurrent request, please retry")
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Registered {mask_number(number)}", extra={"app_id": app.id})
        return Identity(app_id=app.id, hash=app_user.hash)

    async def login(
        self,
        db: AsyncSession,
        app_id: str,
        app_secret: str,
        existing_hash: str,
    ) -> Identity:
        """Cross-app login: ``existing_hash`` may come from any app."""
        app = await self.registry.validate_app_credentials(db, app_id, app_secret)

        result = await db.execute(
            select(AppUser, User)
            .join(User, User.id == AppUser.user_id)
            .where(AppUser.hash == existing_hash)
        )
        row = result.first()
        if row is None:
            raise InvalidHash()
        source, user = row

        if source.app_id == app.id:
            return Identity(app_id=app.id, hash=source.hash)

        try:
            app_user = await self._upsert_app_user(db, user, app.id, device_id=source.device_id, keep_device=True)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("Login collided with a concurrent request, please retry")
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Cross-app login from {source.app_id}", extra={"app_id": app.id})
        return Identity(app_id=app.id, hash=app_user.hash)

    async def check_login(self, db: AsyncSession, app_id: str, app_secret: str, hash: str) -> AppUser:
        return await self.registry.validate_app_user_credentials(db, hash, app_id, app_secret)

    async def update_notif_id(
        self,
        db: AsyncSession,
        app_id: str,
        app_secret: str,
        hash: str,
        notif_id: str,
    ) -> AppUser:
        app_user = await self.registry.validate_app_user_credentials(db, hash, app_id, app_secret)
        app_user.notif_id = notif_id
        await db.commit()
        return app_user

    async def _find_or_create_user(self, db: AsyncSession, seed: str) -> User:
        result = await db.execute(select(User).where(User.hash == seed))
        user = result.scalars().first()
        if user is None:
            user = User(hash=seed)
            db.add(user)
            await db.flush()
        return user

    async def _upsert_app_user(
        self,
        db: AsyncSession,
        user: User,
        app_id: str,
        device_id: Optional[str] = None,
        keep_device: bool = False,
    ) -> AppUser:
        app_hash = self.hasher.app_user_hash(user.id, app_id, user.hash)

        result = await db.execute(
            select(AppUser).where(AppUser.user_id == user.id, AppUser.app_id == app_id)
        )
        app_user = result.scalars().first()
        if app_user is None:
            app_user = AppUser(user_id=user.id, app_id=app_id, hash=app_hash, device_id=device_id)
            db.add(app_user)
        else:
            app_user.hash = app_hash
            if device_id and not keep_device:
                app_user.device_id = device_id
        await db.flush()
        return app_user
