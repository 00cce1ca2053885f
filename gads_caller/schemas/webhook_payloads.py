"""
Webhook payload schemas - the parts of each provider payload the relay reads.
Lead payloads are deliberately not modelled: their shape varies per form
provider, so the extractor works on plain mappings instead.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TwilioCallStatusPayload(BaseModel):
    """Twilio voice call status callback (form-encoded)."""
    model_config = ConfigDict(extra="allow")

    CallSid: Optional[str] = None
    CallStatus: Optional[str] = None  # queued, ringing, in-progress, completed, busy, failed, no-answer
    To: Optional[str] = None
    From: Optional[str] = None
    CallDuration: Optional[str] = None


class PostCallEvent(BaseModel):
    """
    ElevenLabs post-call webhook envelope.
    Envelope fields are untyped: a non-string type reads as 'unknown' and a
    numeric conversation id is stringified, rather than failing validation.
    """
    model_config = ConfigDict(extra="allow")

    type: Any = None
    event_type: Any = None
    conversation_id: Any = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _data_must_be_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    @property
    def kind(self) -> str:
        """Raw event type as sent ('unknown' when absent or not a string)."""
        raw = self.type or self.event_type
        if isinstance(raw, str) and raw:
            return raw
        return "unknown"

    @property
    def normalized_kind(self) -> str:
        return self.kind.lower()

    @property
    def conversation_ref(self) -> Optional[str]:
        """Conversation id from the data block, falling back to the envelope."""
        for key in ("conversation_id", "conversationId", "call_id", "callId"):
            value = self.data.get(key)
            if value:
                return str(value)
        if self.conversation_id:
            return str(self.conversation_id)
        return None
