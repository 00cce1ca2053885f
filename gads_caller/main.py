"""
gads-elevenlabs-caller - Google Ads lead → ElevenLabs outbound call relay.
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from gads_caller.api.responses import error_response
from gads_caller.api.router import api_router
from gads_caller.config import get_settings
from gads_caller.services.call_scheduler import CallScheduler
from gads_caller.utils.logging import (
    configure_structured_logging,
    generate_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger("gads_caller")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Injects a correlation ID into every request context and response header."""

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "gads-elevenlabs-caller starting up (env=%s, build=%s)",
        settings.app_env, datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        "ElevenLabs config: XI_API_KEY present=%s agent_id=%s agent_phone_number_id=%s",
        bool(settings.xi_api_key),
        settings.elevenlabs_agent_id or None,
        settings.elevenlabs_agent_phone_number_id or None,
    )

    # Security warnings
    if not settings.webhook_shared_secret:
        logger.warning("WEBHOOK_SHARED_SECRET is not configured - /gads/lead will reject every lead.")
    if not settings.elevenlabs_postcall_secret:
        logger.warning(
            "ELEVENLABS_POSTCALL_SECRET not set - accepting post-call webhooks without "
            "signature verification. Configure the secret for production."
        )

    # Initialize Sentry if configured
    if settings.sentry_dsn:
        try:
            import sentry_sdk
            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=0.1,
                environment=settings.app_env,
            )
            logger.info("Sentry initialized")
        except Exception as e:
            logger.warning("Sentry initialization failed: %s", str(e))

    yield

    scheduler: CallScheduler = app.state.call_scheduler
    logger.info("Shutting down - %d outbound call(s) still pending", scheduler.pending)
    await scheduler.cancel_all()
    logger.info("Shutdown complete")


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTPExceptions in the same envelope as handler-built errors."""
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, str(exc), exc_info=exc)
    return error_response(500, "Internal server error.")


def create_app() -> FastAPI:
    """Application factory."""
    settings = get_settings()

    # Configure structured JSON logging with correlation IDs
    configure_structured_logging(settings.log_level)

    application = FastAPI(
        title="gads-elevenlabs-caller",
        description="Google Ads lead to ElevenLabs outbound call relay",
        version="1.0.0",
        lifespan=lifespan,
    )

    application.state.call_scheduler = CallScheduler(settings.outbound_call_delay_seconds)

    application.add_middleware(CorrelationIdMiddleware)
    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(Exception, unhandled_exception_handler)

    application.include_router(api_router)

    return application


app = create_app()
