# humanid/app/api/v1/endpoints/mobile.py
"""
SDK-facing endpoints, called from inside partner apps.

The hash returned by register/login replaces a password: the SDK stores it
(encrypted) on the device and presents it on later logins.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from humanid.app.api import deps
from humanid.app.db.session import get_db
from humanid.app.schemas.mobile import (
    IdentityResponse,
    LoginRequest,
    NotifIdUpdate,
    RegisterRequest,
    StatusResponse,
    VerifyPhoneRequest,
    VerifyPhoneResponse,
)
from humanid.app.services.identity import IdentityResolver

router = APIRouter()


@router.post("/verifyPhone", response_model=VerifyPhoneResponse, response_model_exclude_none=True)
async def verify_phone(
        request: VerifyPhoneRequest,
        db: AsyncSession = Depends(get_db),
        resolver: IdentityResolver = Depends(deps.get_identity_resolver),
):
    test_code = await resolver.verify_phone(
        db, request.app_id, request.app_secret, request.country_code, request.phone
    )
    return VerifyPhoneResponse(test_code=test_code)


@router.post("/register", response_model=IdentityResponse)
async def register(
        request: RegisterRequest,
        db: AsyncSession = Depends(get_db),
        resolver: IdentityResolver = Depends(deps.get_identity_resolver),
):
    identity = await resolver.register(
        db,
        request.app_id,
        request.app_secret,
        request.country_code,
        request.phone,
        request.device_id,
        request.verification_code,
    )
    return IdentityResponse(app_id=identity.app_id, hash=identity.hash)


@router.post("/login", response_model=IdentityResponse)
async def login(
        request: LoginRequest,
        db: AsyncSession = Depends(get_db),
        resolver: IdentityResolver = Depends(deps.get_identity_resolver),
):
    identity = await resolver.login(db, request.app_id, request.app_secret, request.existing_hash)
    return IdentityResponse(app_id=identity.app_id, hash=identity.hash)


@router.get("/login", response_model=StatusResponse)
async def check_login(
        app_id: str = Query(..., alias="appId"),
        app_secret: str = Query(..., alias="appSecret"),
        hash: str = Query(...),
        db: AsyncSession = Depends(get_db),
        resolver: IdentityResolver = Depends(deps.get_identity_resolver),
):
    await resolver.check_login(db, app_id, app_secret, hash)
    return StatusResponse()


@router.put("/notifId", response_model=StatusResponse)
async def update_notif_id(
        request: NotifIdUpdate,
        db: AsyncSession = Depends(get_db),
        resolver: IdentityResolver = Depends(deps.get_identity_resolver),
):
    await resolver.update_notif_id(db, request.app_id, request.app_secret, request.hash, request.notif_id)
    return StatusResponse()
