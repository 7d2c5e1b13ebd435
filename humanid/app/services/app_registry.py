"""
humanid/app/services/app_registry.py

Tenant apps: provisioning from the console and credential checks for the
mobile surface.
"""

import re
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.core.exceptions import (
    DuplicateError,
    InvalidAppId,
    InvalidHash,
    InvalidSecret,
    NotFoundError,
    ValidationError,
)
from humanid.app.core.logging import get_logger
from humanid.app.models.app import App, Platform
from humanid.app.models.app_user import AppUser
from humanid.app.security.hashing import CredentialHasher, constant_time_compare

logger = get_logger(__name__)

# Letters, digits and underscores (e.g. NEW_YORK_TIMES)
APP_ID_PATTERN = re.compile(r"^[A-Za-z0-9_]{5,20}$")
APP_ID_MESSAGE = "App ID must be 5-20 alphanumeric characters"


class AppRegistry:

    def __init__(self, hasher: CredentialHasher):
        self.hasher = hasher

    async def create_app(
        self,
        db: AsyncSession,
        app_id: str,
        platform: Optional[Platform] = None,
        server_key: Optional[str] = None,
    ) -> App:
        if not app_id or not APP_ID_PATTERN.match(app_id):
            raise ValidationError(APP_ID_MESSAGE)
        if await db.get(App, app_id) is not None:
            raise DuplicateError(f"App ID already exists: {app_id}")

        app = App(
            id=app_id,
            secret=self.hasher.app_secret(app_id),
            platform=(platform or Platform.ANDROID).value,
            server_key=server_key,
        )
        db.add(app)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise DuplicateError(f"App ID already exists: {app_id}")

        logger.info("App created", extra={"app_id": app_id})
        return app

    async def list_apps(self, db: AsyncSession, skip: int = 0, limit: int = 100) -> Tuple[List[App], int]:
        total = await db.scalar(select(func.count()).select_from(App))
        result = await db.execute(
            select(App).order_by(App.created_at, App.id).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def get_app(self, db: AsyncSession, app_id: str) -> App:
        app = await db.get(App, app_id)
        if not app:
            raise NotFoundError(f"App not found: {app_id}")
        return app

    async def regenerate_secret(self, db: AsyncSession, app_id: str) -> App:
        app = await self.get_app(db, app_id)
        app.secret = self.hasher.app_secret(app_id)
        await db.commit()
        logger.info("App secret regenerated", extra={"app_id": app_id})
        return app

    async def delete_app(self, db: AsyncSession, app_id: str) -> None:
        app = await self.get_app(db, app_id)
        # Explicit, SQLite does not enforce ON DELETE CASCADE by default
        await db.execute(delete(AppUser).where(AppUser.app_id == app.id))
        await db.delete(app)
        await db.commit()
        logger.info("App deleted", extra={"app_id": app_id})

    async def validate_app_credentials(
        self,
        db: AsyncSession,
        app_id: str,
        app_secret: str,
        app: Optional[App] = None,
    ) -> App:
        """Gate for every mobile call. Returns the app on success."""
        if app is None:
            app = await db.get(App, app_id)
        if app is None or app.id != app_id:
            raise InvalidAppId(app_id)
        if not constant_time_compare(app.secret, app_secret):
            raise InvalidSecret()
        return app

    async def validate_app_user_credentials(
        self,
        db: AsyncSession,
        hash: str,
        app_id: str,
        app_secret: str,
    ) -> AppUser:
        """
        Resolve an AppUser by its hash for an authenticated app.

        The app is checked first; the hash must then belong to that very app.
        """
        app = await self.validate_app_credentials(db, app_id, app_secret)
        result = await db.execute(
            select(AppUser).where(AppUser.hash == hash, AppUser.app_id == app.id)
        )
        app_user = result.scalars().first()
        if app_user is None:
            raise InvalidHash()
        return app_user
