"""
Request body parsing shared by the webhook routes.

Form providers post JSON, urlencoded forms, or plain text depending on how
they were set up, so each content type is parsed here and the raw bytes
are always returned alongside for signature checks and logging.
"""
import json
from typing import Any

from fastapi import HTTPException, Request

BODY_PREVIEW_CHARS = 300


async def read_request_body(request: Request) -> tuple[bytes, Any]:
    """
    Returns (raw_bytes, parsed) where parsed is:
    - a dict/list for JSON bodies
    - a dict of field -> value for urlencoded forms
    - a str for text/plain
    - {} for empty bodies and other content types
    Raises HTTPException(400) on malformed JSON.
    """
    raw = await request.body()
    content_type = request.headers.get("content-type", "").lower()

    if not raw.strip():
        return raw, {}

    if "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        return raw, dict(form)

    if "json" in content_type:
        try:
            return raw, json.loads(raw)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid JSON body.")

    if content_type.startswith("text/plain"):
        return raw, raw.decode("utf-8", errors="replace")

    return raw, {}


def body_preview(raw: bytes) -> str:
    """First few hundred characters of the body, for logs."""
    return raw[:BODY_PREVIEW_CHARS].decode("utf-8", errors="replace")
