"""
JSON log lines for the relay, tagged with the request's correlation ID.

A line carries timestamp, level, correlation_id, module and message, plus
whichever relay fields (conversation, event type, phone, call status, delay)
the call site passed through `extra`. Phone numbers are masked by the
formatter itself, whether or not the call site already masked them.

The correlation ID lives in a contextvar. Background tasks started while a
request is being handled (lead intake, delayed calls) inherit it, so the
delayed call's log lines share the ID of the lead webhook that scheduled it.
"""
import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from gads_caller.utils.phone import mask_phone

correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Relay fields copied from `extra`, with the scrubber applied before output
RELAY_FIELDS: dict[str, Optional[Callable[[Any], Any]]] = {
    "conversation_id": None,
    "event_type": None,
    "phone": lambda value: mask_phone(str(value)),
    "status": None,
    "delay_seconds": None,
}

QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "twilio.http_client")


def get_correlation_id() -> Optional[str]:
    return correlation_id_ctx.get()


def set_correlation_id(cid: str) -> None:
    correlation_id_ctx.set(cid)


def generate_correlation_id() -> str:
    """32-char hex ID for requests that arrive without X-Correlation-ID."""
    return uuid.uuid4().hex


def _relay_fields(record: logging.LogRecord) -> dict:
    fields = {}
    for key, scrub in RELAY_FIELDS.items():
        value = getattr(record, key, None)
        if value is None or value == "":
            continue
        fields[key] = scrub(value) if scrub else value
    return fields


class StructuredJsonFormatter(logging.Formatter):
    """One JSON object per record; relay fields are scrubbed on the way out."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "correlation_id": get_correlation_id(),
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_relay_fields(record))
        return json.dumps(entry, default=str)


def configure_structured_logging(log_level: str = "INFO") -> None:
    """Install the JSON formatter as the only root handler. Called from create_app()."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())
    root.addHandler(handler)

    # Access lines and SDK wire logs only at WARNING and above
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
