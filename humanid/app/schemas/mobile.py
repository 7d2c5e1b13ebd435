# humanid/app/schemas/mobile.py
"""
Schemas for the SDK-facing endpoints. Every request carries the app
credentials (appId + appSecret).
"""
from typing import Optional

from pydantic import Field

from humanid.app.schemas.base import CamelModel


class AppCredentials(CamelModel):
    app_id: str = Field(..., min_length=1, max_length=20)
    app_secret: str = Field(..., min_length=1)


class VerifyPhoneRequest(AppCredentials):
    country_code: str = Field(..., pattern=r"^\d{1,4}$")
    phone: str = Field(..., pattern=r"^\d{4,15}$")


class VerifyPhoneResponse(CamelModel):
    success: bool = True
    # Only set in test mode
    test_code: Optional[str] = None


class RegisterRequest(VerifyPhoneRequest):
    device_id: str = Field(..., min_length=1, max_length=255)
    verification_code: str = Field(..., min_length=1, max_length=64)


class LoginRequest(AppCredentials):
    existing_hash: str = Field(..., min_length=1, max_length=64)


class NotifIdUpdate(AppCredentials):
    hash: str = Field(..., min_length=1, max_length=64)
    notif_id: str = Field(..., min_length=1, max_length=255)


class IdentityResponse(CamelModel):
    app_id: str
    hash: str


class StatusResponse(CamelModel):
    success: bool = True
