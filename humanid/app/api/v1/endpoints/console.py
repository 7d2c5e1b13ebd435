# humanid/app/api/v1/endpoints/console.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.api import deps
from humanid.app.core.config import Settings, get_settings
from humanid.app.core.exceptions import InvalidCredentials
from humanid.app.core.logging import get_logger
from humanid.app.db.session import get_db
from humanid.app.models.admin import Admin
from humanid.app.schemas.console import (
    AdminLogin,
    AppCreate,
    AppListResponse,
    AppResponse,
    AppSecretResponse,
    Token,
)
from humanid.app.schemas.mobile import StatusResponse
from humanid.app.security import hashing, jwt
from humanid.app.services.app_registry import AppRegistry

router = APIRouter()
logger = get_logger(__name__)


@router.post("/login", response_model=Token)
async def login(
        form: AdminLogin,
        db: AsyncSession = Depends(get_db),
        settings: Settings = Depends(get_settings),
):
    result = await db.execute(select(Admin).where(Admin.email == form.email))
    admin = result.scalars().first()

    if not admin or not hashing.verify_password(form.password, admin.hashed_password):
        raise InvalidCredentials()

    logger.info("Admin logged in", extra={"admin_id": admin.id})
    return Token(access_token=jwt.create_access_token(admin.id, settings))


@router.post("/apps", response_model=AppSecretResponse)
async def create_app(
        app_in: AppCreate,
        db: AsyncSession = Depends(get_db),
        registry: AppRegistry = Depends(deps.get_app_registry),
        current_admin: Admin = Depends(deps.get_current_admin),
):
    return await registry.create_app(db, app_in.app_id, app_in.platform, app_in.server_key)


@router.get("/apps", response_model=AppListResponse)
async def list_apps(
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
        db: AsyncSession = Depends(get_db),
        registry: AppRegistry = Depends(deps.get_app_registry),
        current_admin: Admin = Depends(deps.get_current_admin),
):
    apps, total = await registry.list_apps(db, skip=skip, limit=limit)
    return AppListResponse(data=[AppResponse.model_validate(app) for app in apps], total=total)


@router.get("/apps/{app_id}", response_model=AppResponse)
async def read_app(
        app_id: str,
        db: AsyncSession = Depends(get_db),
        registry: AppRegistry = Depends(deps.get_app_registry),
        current_admin: Admin = Depends(deps.get_current_admin),
):
    return await registry.get_app(db, app_id)


@router.post("/apps/{app_id}/secret", response_model=AppSecretResponse)
async def regenerate_app_secret(
        app_id: str,
        db: AsyncSession = Depends(get_db),
        registry: AppRegistry = Depends(deps.get_app_registry),
        current_admin: Admin = Depends(deps.get_current_admin),
):
    return await registry.regenerate_secret(db, app_id)


@router.delete("/apps/{app_id}", response_model=StatusResponse)
async def delete_app(
        app_id: str,
        db: AsyncSession = Depends(get_db),
        registry: AppRegistry = Depends(deps.get_app_registry),
        current_admin: Admin = Depends(deps.get_current_admin),
):
    await registry.delete_app(db, app_id)
    return StatusResponse()
