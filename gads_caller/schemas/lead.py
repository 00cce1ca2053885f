"""
Lead and outbound call schemas.
LeadFields is what the extractor pulls out of a lead webhook; CallRequest is
what the dispatcher sends to ElevenLabs.
"""
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LEAD_NAME = "Prospect"


class LeadFields(BaseModel):
    """Name and phone found in a lead payload. Empty string means not found."""
    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""


class SourceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str = "twilio"
    version: str = "1.0.0"


class CallRequest(BaseModel):
    """
    One outbound call through the ElevenLabs Twilio integration.
    Built once, sent once - no retry state.
    """
    model_config = ConfigDict(frozen=True)

    agent_id: str
    agent_phone_number_id: str
    to_number: str = Field(..., description="E.164 format phone number")
    dynamic_variables: dict[str, str] = Field(default_factory=dict)
    source_info: SourceInfo = Field(default_factory=SourceInfo)

    def to_payload(self) -> dict:
        """Render the request body expected by the outbound-call endpoint."""
        return {
            "agent_id": self.agent_id,
            "agent_phone_number_id": self.agent_phone_number_id,
            "to_number": self.to_number,
            "conversation_initiation_client_data": {
                "dynamic_variables": dict(self.dynamic_variables),
                "source_info": self.source_info.model_dump(),
            },
        }
