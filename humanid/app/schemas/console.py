# humanid/app/schemas/console.py
"""
Schemas for the admin console.

App secrets only appear in AppSecretResponse (create / regenerate);
listings use AppResponse, which has no secret field at all.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from humanid.app.models.app import Platform
from humanid.app.schemas.base import CamelModel


class AdminLogin(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"


class AppCreate(CamelModel):
    # Format is checked by AppRegistry so the error message stays uniform
    app_id: str
    platform: Optional[Platform] = None
    server_key: Optional[str] = Field(None, max_length=255)


class AppSecretResponse(CamelModel):
    id: str
    secret: str
    platform: Platform


class AppResponse(CamelModel):
    id: str
    platform: Platform
    created_at: Optional[datetime] = None


class AppListResponse(CamelModel):
    data: List[AppResponse]
    total: int
