"""
Provider callback endpoints.

- POST /elevenlabs/postcall - post-call webhook; emails a call summary
- POST /twilio/status       - voice call status callback; logged only

Security: the ElevenLabs webhook is HMAC-verified when
ELEVENLABS_POSTCALL_SECRET is set, and the Twilio callback is checked with
Twilio's RequestValidator when TWILIO_AUTH_TOKEN is set. Without the secret
each endpoint accepts unsigned requests.
"""
import json
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from gads_caller.api.deps import get_elevenlabs_client
from gads_caller.api.responses import error_response
from gads_caller.config import Settings, get_settings
from gads_caller.schemas.webhook_payloads import PostCallEvent, TwilioCallStatusPayload
from gads_caller.services.call_summary import build_call_summary
from gads_caller.services.elevenlabs import ElevenLabsClient
from gads_caller.services.email import send_summary_email
from gads_caller.utils.request_body import read_request_body
from gads_caller.utils.webhook_signatures import (
    get_webhook_url,
    validate_twilio_signature,
    verify_elevenlabs_signature,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["webhooks"])

EVENT_TRANSCRIPTION = "post_call_transcription"
EVENT_AUDIO = "post_call_audio"
EVENT_INITIATION_FAILURE = "call_initiation_failure"


async def _fetch_conversation(client: ElevenLabsClient, settings: Settings, conversation_id: str):
    """Best-effort conversation lookup; the summary still goes out without it."""
    if not settings.xi_api_key:
        logger.warning("XI_API_KEY missing - skipping conversation fetch")
        return None
    try:
        fetched = await client.fetch_conversation(conversation_id)
    except Exception as e:
        logger.error(
            "Failed to fetch conversation details: %s", str(e),
            extra={"conversation_id": conversation_id},
        )
        return None
    if not isinstance(fetched, dict):
        logger.warning("Conversation fetch returned non-object payload")
        return None
    return fetched


@router.post("/elevenlabs/postcall")
async def elevenlabs_postcall_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    """ElevenLabs post-call webhook - verify, summarize, email."""
    body = await request.body()

    if settings.elevenlabs_postcall_secret:
        signature = request.headers.get("elevenlabs-signature")
        if not verify_elevenlabs_signature(body, signature, settings.elevenlabs_postcall_secret):
            client_ip = request.client.host if request.client else "unknown"
            logger.warning("Invalid ElevenLabs webhook signature: ip=%s", client_ip)
            return error_response(401, "Invalid webhook signature.")

    try:
        raw_event = json.loads(body) if body.strip() else {}
        event = PostCallEvent.model_validate(raw_event if isinstance(raw_event, dict) else {})
    except (ValueError, ValidationError):
        return error_response(400, "Invalid webhook payload.")

    event_type = event.normalized_kind
    conversation_id = event.conversation_ref
    log_extra = {"event_type": event.kind, "conversation_id": conversation_id}
    logger.info("ElevenLabs webhook received: type=%s", event.kind, extra=log_extra)

    if event_type == EVENT_AUDIO:
        logger.info("post_call_audio event received - audio payload not processed", extra=log_extra)
        return {"success": True, "message": "Audio webhook acknowledged."}

    if event_type == EVENT_INITIATION_FAILURE:
        metadata = event.data.get("metadata")
        logger.warning(
            "call_initiation_failure received: reason=%s provider=%s",
            event.data.get("failure_reason"),
            metadata.get("type") if isinstance(metadata, dict) else None,
            extra=log_extra,
        )
        return {"success": True, "message": "Call initiation failure logged."}

    if event_type != EVENT_TRANSCRIPTION:
        logger.warning("Unknown ElevenLabs webhook type: %s", event.kind, extra=log_extra)
        return {"success": True, "message": "Event ignored."}

    conversation = None
    if conversation_id:
        conversation = await _fetch_conversation(client, settings, conversation_id)

    summary = build_call_summary(event, conversation)

    try:
        await send_summary_email(settings, summary.subject, summary.text_body(), summary.html_body())
    except Exception as e:
        logger.error("Failed to send summary email: %s", str(e), exc_info=True, extra=log_extra)
        return error_response(500, "Failed to send summary email.", error=str(e))

    logger.info("Summary email dispatched", extra=log_extra)
    return {"success": True}


@router.post("/twilio/status")
async def twilio_status_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Twilio voice call status callback - logged only."""
    _, body = await read_request_body(request)
    params = body if isinstance(body, dict) else {}

    if settings.twilio_auth_token:
        signature = request.headers.get("X-Twilio-Signature", "")
        url = get_webhook_url(request)
        if not validate_twilio_signature(settings.twilio_auth_token, signature, url, params):
            logger.warning("Invalid Twilio status callback signature")
            return error_response(401, "Invalid webhook signature.")

    payload = TwilioCallStatusPayload.model_validate(
        {k: v for k, v in params.items() if isinstance(v, str)}
    )
    logger.info(
        "Twilio status callback: CallSid=%s CallStatus=%s", payload.CallSid, payload.CallStatus,
        extra={"status": payload.CallStatus},
    )
    return {"received": True}
