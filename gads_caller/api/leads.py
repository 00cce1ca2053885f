"""
Lead endpoints - Google Ads lead form intake and a manual test-call trigger.

/gads/lead acknowledges as soon as the shared secret checks out; extraction,
normalization and the delayed call all happen after the response is sent,
so the lead sender never waits on ElevenLabs.
"""
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, BackgroundTasks, Depends, Request

from gads_caller.api.deps import get_call_scheduler, get_elevenlabs_client
from gads_caller.api.responses import error_response
from gads_caller.config import Settings, get_settings
from gads_caller.services.call_scheduler import CallScheduler
from gads_caller.services.elevenlabs import RAW_TEXT_LIMIT, ElevenLabsClient, build_call_request
from gads_caller.services.lead_intake import process_lead
from gads_caller.utils.phone import mask_phone, normalize_phone_e164
from gads_caller.utils.request_body import body_preview, read_request_body
from gads_caller.utils.webhook_signatures import timing_safe_equal

logger = logging.getLogger(__name__)
router = APIRouter(tags=["leads"])


@router.post("/gads/lead")
async def gads_lead_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    key: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    scheduler: CallScheduler = Depends(get_call_scheduler),
):
    """Google Ads lead form webhook, authenticated by ?key=<WEBHOOK_SHARED_SECRET>."""
    raw, payload = await read_request_body(request)

    if not settings.webhook_shared_secret:
        logger.error("WEBHOOK_SHARED_SECRET not configured - rejecting lead webhook")
        return error_response(500, "WEBHOOK_SHARED_SECRET is not configured.")

    if not timing_safe_equal(key, settings.webhook_shared_secret):
        client_ip = request.client.host if request.client else "unknown"
        logger.warning("Invalid shared secret on lead webhook: ip=%s", client_ip)
        return error_response(401, "Invalid shared secret.")

    logger.info(
        "Lead webhook received: content_type=%s body_type=%s preview=%s",
        request.headers.get("content-type", ""), type(payload).__name__, body_preview(raw),
    )
    background_tasks.add_task(process_lead, payload, settings, scheduler)
    return {"success": True}


@router.get("/test-call")
async def test_call(
    to: Optional[str] = None,
    name: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    """Place an outbound call right away, e.g. /test-call?to=5551234567&name=Jane."""
    if not to:
        return error_response(400, 'Missing "to" query parameter.')

    phone = normalize_phone_e164(to, settings.default_phone_region)
    if not phone:
        logger.warning("Test call invoked with invalid phone number")
        return error_response(400, "Invalid phone number.")

    if not settings.elevenlabs_configured:
        logger.error("Test call missing ElevenLabs configuration")
        return error_response(500, "ElevenLabs not configured.")

    call_request = build_call_request(settings, phone, name)
    try:
        result = await client.start_outbound_call(call_request)
    except httpx.HTTPError as e:
        return error_response(500, "Fetch error to ElevenLabs", error=str(e))

    logger.info(
        "Test call response: status=%s to=%s", result["status"], mask_phone(phone),
        extra={"status": result["status"], "phone": mask_phone(phone)},
    )

    if not result["ok"]:
        return error_response(
            500,
            "ElevenLabs outbound call failed.",
            status=result["status"],
            elevenlabs_raw=(result["raw_text"] or "")[:RAW_TEXT_LIMIT] or None,
        )

    return {
        "success": True,
        "message": "Outbound call requested via ElevenLabs.",
        "elevenLabsResponse": result["parsed_json"] if result["parsed_json"] is not None else result["raw_text"],
    }
