"""
otpgate/main.py

Purpose: Application entry point

- Builds the FastAPI app and the process-wide services
- Loads configuration and logging
- Registers API routes (OTP, notifications, health)
- Starts/stops the OTP sweeper with the application lifecycle
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional
import time

import httpx

from otpgate.api import notifications, otp
from otpgate.core.config import Settings, settings, validate_settings
from otpgate.core.errors import add_exception_handlers
from otpgate.core.logging import setup_logging, get_logger
from otpgate.providers.base import DeliveryProvider
from otpgate.providers.factory import create_provider
from otpgate.services.notification_service import NotificationDispatcher
from otpgate.services.otp_service import OtpService
from otpgate.services.rate_limiter import RateLimiter
from otpgate.services.verification_store import VerificationStore
from otpgate.utils.time_utils import Clock, SystemClock

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("🚀 Starting otpgate...")

    for warning in validate_settings(app.state.settings):
        logger.warning(f"⚠️ {warning}")

    service: OtpService = app.state.otp_service
    service.start()

    logger.info(f"Environment: {app.state.settings.ENVIRONMENT}")
    logger.info(f"SMS provider: {service.provider.name}")

    yield  # Application runs here

    logger.info("🛑 Shutting down otpgate...")
    await service.stop()
    if app.state.http_client is not None:
        await app.state.http_client.aclose()
    logger.info("👋 otpgate shut down successfully")


def build_otp_service(
    config: Settings,
    provider: Optional[DeliveryProvider] = None,
    clock: Optional[Clock] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> OtpService:
    """
    Wires the OTP service from settings. One instance per process.
    """
    clock = clock if clock is not None else SystemClock()
    return OtpService(
        provider=provider if provider is not None else create_provider(config.SMS_PROVIDER, config, client=client),
        store=VerificationStore(clock=clock),
        rate_limiter=RateLimiter(
            max_requests=config.RATE_LIMIT_MAX_REQUESTS,
            window=timedelta(minutes=config.RATE_LIMIT_WINDOW_MINUTES),
            clock=clock,
        ),
        ttl=timedelta(minutes=config.OTP_TTL_MINUTES),
        app_name=config.APP_NAME,
        country_code=config.COUNTRY_CODE,
        expose_code=config.expose_otp_code,
        sweep_interval=config.OTP_SWEEP_INTERVAL_SECONDS,
    )


def create_app(
    config: Optional[Settings] = None,
    sms_provider: Optional[DeliveryProvider] = None,
    notification_provider: Optional[DeliveryProvider] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Application factory. Providers and clock can be injected for tests.
    """
    config = config or settings

    app = FastAPI(
        title="otpgate - Phone Verification Service",
        description="One-time passcode issuance/verification and WhatsApp notifications",
        version=VERSION,
        lifespan=lifespan,
        debug=config.DEBUG,
        docs_url="/docs" if config.is_development else None,  # Disable docs in production
        redoc_url="/redoc" if config.is_development else None,
    )

    # Providers built here share one connection pool, closed on shutdown
    http_client = None
    if sms_provider is None or notification_provider is None:
        http_client = httpx.AsyncClient(timeout=config.PROVIDER_TIMEOUT_SECONDS)

    app.state.settings = config
    app.state.http_client = http_client
    app.state.otp_service = build_otp_service(config, provider=sms_provider, clock=clock, client=http_client)
    app.state.notification_dispatcher = NotificationDispatcher(
        provider=(
            notification_provider if notification_provider is not None
            else create_provider(config.NOTIFICATION_PROVIDER, config, client=http_client)
        ),
        app_name=config.APP_NAME,
        country_code=config.COUNTRY_CODE,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        if process_time > 5.0:  # More than 5 seconds
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path}",
                extra={"process_time": process_time}
            )

        return response

    add_exception_handlers(app)

    app.include_router(otp.router)
    app.include_router(notifications.router)

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint - basic info."""
        return {
            "name": "otpgate",
            "version": VERSION,
            "description": "Phone verification service",
            "status": "running",
            "environment": config.ENVIRONMENT
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Reports provider configuration and sweeper state.
        """
        service: OtpService = request.app.state.otp_service
        dispatcher: NotificationDispatcher = request.app.state.notification_dispatcher

        sms_ready = service.provider.is_configured()
        health_status = {
            "status": "healthy" if sms_ready else "degraded",
            "timestamp": time.time(),
            "environment": config.ENVIRONMENT,
            "version": VERSION,
            "checks": {
                "sms_provider": {
                    "name": service.provider.name,
                    "configured": sms_ready,
                },
                "notification_provider": {
                    "name": dispatcher.provider.name,
                    "configured": dispatcher.provider.is_configured(),
                },
                "sweeper": "running" if service.running else "stopped",
                "pending_codes": len(service.store),
            }
        }

        status_code = 200 if sms_ready else 503
        return JSONResponse(content=health_status, status_code=status_code)

    @app.get("/ready", tags=["Health"])
    async def readiness_check(request: Request):
        """
        Readiness probe - ready once the SMS provider is configured.
        """
        if request.app.state.otp_service.provider.is_configured():
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "sms_provider_not_configured"}
        )

    @app.get("/live", tags=["Health"])
    async def liveness_check():
        """
        Liveness probe - indicates if app is alive.
        """
        return {"status": "alive"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "otpgate.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
