# humanid/app/api/v1/router.py
from fastapi import APIRouter
from humanid.app.api.v1.endpoints import console, mobile

api_router = APIRouter()
api_router.include_router(console.router, prefix="/console", tags=["console"])
api_router.include_router(mobile.router, prefix="/mobile/users", tags=["mobile"])
