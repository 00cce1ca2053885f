"""
Lead intake - the work done after /gads/lead has already answered 200.

Extract name + phone, normalize the phone, and schedule the delayed
outbound call. Nothing here can change the HTTP response, so every failure
is logged and the lead is dropped.
"""
import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Optional

from gads_caller.config import Settings
from gads_caller.services.call_scheduler import CallScheduler
from gads_caller.services.elevenlabs import ElevenLabsClient, build_call_request
from gads_caller.services.lead_extraction import extract_lead_fields
from gads_caller.utils.phone import mask_phone, normalize_phone_e164

logger = logging.getLogger(__name__)


async def process_lead(
    payload: Any,
    settings: Settings,
    scheduler: CallScheduler,
) -> Optional[asyncio.Task]:
    """Returns the scheduled call's task handle, or None if the lead was skipped."""
    try:
        if isinstance(payload, Mapping):
            logger.info("Lead payload keys: %s", sorted(str(k) for k in payload.keys()))
        else:
            logger.info("Lead payload is not an object (%s); nothing to extract", type(payload).__name__)

        fields = extract_lead_fields(payload)
        phone = normalize_phone_e164(fields.phone, settings.default_phone_region)
        logger.info(
            "Extracted lead fields: name_present=%s raw_phone=%s normalized=%s",
            bool(fields.name), mask_phone(fields.phone), mask_phone(phone),
            extra={"phone": mask_phone(phone)},
        )

        if not phone:
            logger.warning(
                "Lead received with invalid or missing phone number (name_present=%s)",
                bool(fields.name),
            )
            return None

        if not settings.elevenlabs_configured:
            logger.error("Lead webhook missing ElevenLabs configuration - call not scheduled")
            return None

        call_request = build_call_request(settings, phone, fields.name)
        client = ElevenLabsClient(settings.xi_api_key)
        return scheduler.schedule(client, call_request, settings.outbound_call_delay_seconds)
    except Exception as e:
        logger.error("Failed to process lead after responding: %s", str(e), exc_info=True)
        return None
