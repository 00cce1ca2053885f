"""
Health and diagnostics endpoints.

- GET  /health   - basic liveness (always 200 if app running)
- GET  /envcheck - which configuration values are present (secrets as booleans only)
- POST /echo     - echoes request headers and parsed body
"""
import logging

from fastapi import APIRouter, Depends, Request

from gads_caller.config import Settings, get_settings
from gads_caller.utils.request_body import read_request_body

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check - returns 200 if the app is running."""
    return {"ok": True}


@router.get("/envcheck")
async def env_check(settings: Settings = Depends(get_settings)):
    """Report configuration presence. Agent ids are not secret; keys are reported as booleans."""
    return {
        "XI_API_KEY": bool(settings.xi_api_key),
        "ELEVENLABS_AGENT_ID": settings.elevenlabs_agent_id or None,
        "ELEVENLABS_AGENT_PHONE_NUMBER_ID": settings.elevenlabs_agent_phone_number_id or None,
        "WEBHOOK_SHARED_SECRET": bool(settings.webhook_shared_secret),
        "ELEVENLABS_POSTCALL_SECRET": bool(settings.elevenlabs_postcall_secret),
        "TWILIO_AUTH_TOKEN": bool(settings.twilio_auth_token),
        "EMAIL_PROVIDER": bool(settings.resend_api_key or settings.sendgrid_api_key),
        "EMAIL_FROM": bool(settings.email_from),
        "EMAIL_TO": len(settings.email_recipients),
    }


@router.post("/echo")
async def echo(request: Request):
    """Echo headers and the parsed body back - for wiring up new form providers."""
    _, body = await read_request_body(request)
    return {"headers": dict(request.headers), "body": body}
