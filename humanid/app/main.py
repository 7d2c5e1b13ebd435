from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from humanid.app.api.v1.router import api_router
from humanid.app.core.config import get_settings
from humanid.app.core.errors import add_exception_handlers
from humanid.app.core.logging import get_logger, setup_logging
from humanid.app.db import init_models
from humanid.app.db.session import engine
from humanid.app.services.verification import build_verification_flow

settings = get_settings()
setup_logging(settings)
logger = get_logger(__name__)


# --- LIFESPAN: tables, provider client, verification flow ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.PROJECT_VERSION} ({settings.ENVIRONMENT})")
    await init_models(engine)

    async with httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS) as http_client:
        app.state.verification_flow = build_verification_flow(settings, http_client)
        yield

    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    openapi_url=f"{settings.BASE_PATH}/openapi.json",
    lifespan=lifespan,
)

if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

add_exception_handlers(app)
app.include_router(api_router, prefix=settings.BASE_PATH)


@app.get(f"{settings.BASE_PATH}/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API", "version": settings.PROJECT_VERSION}
