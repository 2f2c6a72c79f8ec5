from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from otpgate.core.exceptions import OtpGateError, RateLimitedError
from otpgate.schemas.response import ErrorResponse
from otpgate.core.config import settings

logger = logging.getLogger(__name__)


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(OtpGateError)
    async def otpgate_exception_handler(request: Request, exc: OtpGateError):
        retry_after = exc.retry_after if isinstance(exc, RateLimitedError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=exc.message,
                code=exc.code,
                details=exc.details,
                retry_after=retry_after
            ).to_content(),
            headers=exc.headers
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, etc.)
        """
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                code="HTTP_ERROR",
                details=None
            ).to_content()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Malformed or incomplete request bodies are client errors.
        """
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Input validation failed",
                code="VALIDATION_ERROR",
                details=_jsonable_errors(exc)
            ).to_content()
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        config = getattr(request.app.state, "settings", settings)
        message = "An internal error occurred. Please try again later." if config.is_production else str(exc)

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=message,
                code="INTERNAL_ERROR",
                details=None
            ).to_content()
        )


def _jsonable_errors(exc: RequestValidationError) -> list:
    # pydantic may put exception instances into "ctx"
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return jsonable_encoder(errors)
