# humanid/app/api/deps.py
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.core.config import Settings, get_settings
from humanid.app.core.exceptions import InvalidToken
from humanid.app.db.session import get_db
from humanid.app.models.admin import Admin
from humanid.app.security import jwt
from humanid.app.security.hashing import CredentialHasher
from humanid.app.services.app_registry import AppRegistry
from humanid.app.services.identity import IdentityResolver
from humanid.app.services.verification import VerificationFlow

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{get_settings().BASE_PATH}/console/login"
)


def get_hasher(settings: Settings = Depends(get_settings)) -> CredentialHasher:
    return CredentialHasher(settings.SECRET_KEY)


def get_app_registry(hasher: CredentialHasher = Depends(get_hasher)) -> AppRegistry:
    return AppRegistry(hasher)


def get_verification_flow(request: Request) -> VerificationFlow:
    # Built once in the lifespan handler, see main.py
    return request.app.state.verification_flow


def get_identity_resolver(
        registry: AppRegistry = Depends(get_app_registry),
        hasher: CredentialHasher = Depends(get_hasher),
        verification: VerificationFlow = Depends(get_verification_flow),
) -> IdentityResolver:
    return IdentityResolver(registry, hasher, verification)


async def get_current_admin(
        db: AsyncSession = Depends(get_db),
        token: str = Depends(reusable_oauth2),
        settings: Settings = Depends(get_settings),
) -> Admin:
    admin_id = jwt.decode_access_token(token, settings)

    admin = await db.get(Admin, admin_id)
    if not admin:
        raise InvalidToken()

    return admin
