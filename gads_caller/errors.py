"""
Domain exceptions raised by the outbound service clients.
Route handlers translate these into JSON error responses.
"""


class RelayError(Exception):
    """Base class for all relay errors."""


class ElevenLabsError(RelayError):
    """ElevenLabs API returned a non-success response."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"ElevenLabs request failed ({status_code}): {body[:2000]}")


class EmailConfigurationError(RelayError):
    """Email provider, sender, or recipients are not configured."""


class EmailDeliveryError(RelayError):
    """Email provider rejected the message or could not be reached."""
