"""
ElevenLabs Conversational AI client - outbound calls and conversation lookup.

Auth: xi-api-key header.
Docs: https://elevenlabs.io/docs/api-reference/conversations
Outbound calls go through the ElevenLabs Twilio integration endpoint and are
never retried.
"""
import json
import logging
from typing import Optional
from urllib.parse import quote

import httpx

from gads_caller.config import Settings
from gads_caller.errors import ElevenLabsError
from gads_caller.schemas.lead import DEFAULT_LEAD_NAME, CallRequest
from gads_caller.utils.phone import mask_phone

logger = logging.getLogger(__name__)

BASE_URL = "https://api.elevenlabs.io"
OUTBOUND_CALL_PATH = "/v1/convai/twilio/outbound-call"
CONVERSATIONS_PATH = "/v1/convai/conversations"
TIMEOUT = 30.0
RAW_TEXT_LIMIT = 2000


def _parse_json(raw_text: str):
    try:
        return json.loads(raw_text)
    except ValueError:
        return None


def build_call_request(settings: Settings, to_number: str, name: Optional[str] = None) -> CallRequest:
    """Build the outbound call for a normalized number, defaulting the spoken name."""
    safe_name = (name or "").strip()
    return CallRequest(
        agent_id=settings.elevenlabs_agent_id,
        agent_phone_number_id=settings.elevenlabs_agent_phone_number_id,
        to_number=to_number,
        dynamic_variables={"Name": safe_name or DEFAULT_LEAD_NAME},
    )


class ElevenLabsClient:
    """Thin async wrapper over the two ElevenLabs endpoints the relay uses."""

    def __init__(self, api_key: str, base_url: str = BASE_URL, timeout: float = TIMEOUT):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._headers = {
            "xi-api-key": api_key,
            "Content-Type": "application/json",
        }

    async def start_outbound_call(self, call_request: CallRequest) -> dict:
        """
        Ask ElevenLabs to place an outbound call.

        Returns: {"ok": bool, "status": int, "raw_text": str, "parsed_json": dict|list|None}
        Transport errors (DNS, connect, timeout) propagate after logging.
        """
        payload = call_request.to_payload()
        logger.info(
            "Requesting ElevenLabs outbound call to %s (agent=%s)",
            mask_phone(call_request.to_number), call_request.agent_id,
            extra={"phone": mask_phone(call_request.to_number)},
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}{OUTBOUND_CALL_PATH}",
                    headers=self._headers,
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error("ElevenLabs outbound call request failed: %s", str(e), exc_info=True)
            raise

        raw_text = response.text
        parsed_json = _parse_json(raw_text)
        ok = response.is_success

        logger.info(
            "ElevenLabs outbound call response: status=%s", response.status_code,
            extra={"status": response.status_code},
        )
        if not ok:
            logger.warning("ElevenLabs outbound call rejected: %s", raw_text[:RAW_TEXT_LIMIT])

        return {
            "ok": ok,
            "status": response.status_code,
            "raw_text": raw_text,
            "parsed_json": parsed_json,
        }

    async def fetch_conversation(self, conversation_id: str):
        """
        Fetch full conversation details (analysis, transcript, metadata).
        Returns parsed JSON, or the raw text if the body is not JSON.
        """
        if not conversation_id:
            raise ValueError("conversation_id is required to fetch details")

        url = f"{self.base_url}{CONVERSATIONS_PATH}/{quote(str(conversation_id), safe='')}"
        logger.info(
            "Fetching ElevenLabs conversation details",
            extra={"conversation_id": conversation_id},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, headers={"xi-api-key": self.api_key})

        raw_text = response.text
        if not response.is_success:
            raise ElevenLabsError(response.status_code, raw_text)

        parsed_json = _parse_json(raw_text)
        if parsed_json is None:
            logger.warning(
                "ElevenLabs conversation details were not JSON",
                extra={"conversation_id": conversation_id},
            )
            return raw_text
        return parsed_json
