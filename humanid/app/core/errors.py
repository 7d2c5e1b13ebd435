from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from humanid.app.core.config import get_settings
from humanid.app.core.exceptions import ErrorKind, HumanIDError
from humanid.app.core.logging import get_logger
from humanid.app.schemas.response import ErrorResponse

logger = get_logger(__name__)


def _first_validation_message(errors: list) -> str:
    if not errors:
        return "Invalid request"
    error = errors[0]
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    if error.get("type") == "missing":
        return f"{location} is required"
    return f"{location}: {error.get('msg')}" if location else str(error.get("msg"))


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(HumanIDError)
    async def humanid_exception_handler(request: Request, exc: HumanIDError):
        if exc.is_client_error:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}", extra={"kind": exc.kind.value})
        else:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", extra={"kind": exc.kind.value})
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                code=exc.kind.value,
                details=exc.details,
            ).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, missing bearer token, etc.)
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                code="HTTP_ERROR",
                details=None,
            ).model_dump(),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Missing or malformed fields are client input errors: 400.
        """
        errors = exc.errors()
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=f"Validation error: {_first_validation_message(errors)}",
                code=ErrorKind.VALIDATION_ERROR.value,
                details=None,
            ).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={"kind": "INTERNAL_ERROR"},
            exc_info=True,
        )

        settings = get_settings()
        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=message,
                code="INTERNAL_ERROR",
                details=None,
            ).model_dump(),
        )
