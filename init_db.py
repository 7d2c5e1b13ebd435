import argparse
import asyncio

from sqlalchemy import select

from humanid.app.core.config import get_settings
from humanid.app.core.logging import get_logger, setup_logging
from humanid.app.db import init_models
from humanid.app.db.session import AsyncSessionLocal, engine
from humanid.app.models import Admin, App, Platform
from humanid.app.security.hashing import CredentialHasher, get_password_hash

logger = get_logger("init_db")

DEMO_APPS = [("DEMO_APP", Platform.ANDROID), ("DEMO_APP_IOS", Platform.IOS)]


async def seed(demo: bool = False, drop: bool = False):
    settings = get_settings()
    await init_models(engine, drop=drop)

    async with AsyncSessionLocal() as db:
        result = await db.execute(select(Admin).where(Admin.email == settings.FIRST_ADMIN_EMAIL))
        if result.scalars().first() is None:
            db.add(Admin(
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            ))
            logger.info(f"Created admin {settings.FIRST_ADMIN_EMAIL}")

        if demo:
            hasher = CredentialHasher(settings.SECRET_KEY)
            for app_id, platform in DEMO_APPS:
                if await db.get(App, app_id) is None:
                    app = App(id=app_id, platform=platform.value, secret=hasher.app_secret(app_id))
                    db.add(app)
                    logger.info(f"Created demo app {app_id} (secret: {app.secret})")

        await db.commit()
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables and seed the first admin.")
    parser.add_argument("--demo", action="store_true", help="also create the demo apps")
    parser.add_argument("--drop", action="store_true", help="drop all tables first (DEV ONLY)")
    args = parser.parse_args()

    setup_logging(get_settings())
    asyncio.run(seed(demo=args.demo, drop=args.drop))
