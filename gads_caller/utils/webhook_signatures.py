"""
Webhook signature validation - verify incoming webhooks are authentic.

Supported providers:
- ElevenLabs: HMAC-SHA256 via ElevenLabs-Signature ("t=<ts>,v0=<hex>"),
  with a ±30 minute replay window and a legacy bare-HMAC fallback
- Twilio: HMAC-SHA1 via X-Twilio-Signature (status callbacks)

All signature comparisons go through timing_safe_equal. Never compare
signatures with ==.
"""
import base64
import hashlib
import hmac
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Optional, Union

logger = logging.getLogger(__name__)

SIGNATURE_MAX_AGE_SECONDS = 30 * 60


@dataclass
class SignatureHeader:
    """Parsed ElevenLabs-Signature header."""
    timestamp: Optional[str] = None
    values: dict[str, str] = field(default_factory=dict)


def parse_signature_header(signature_header: Optional[str]) -> SignatureHeader:
    """
    Split "t=1700000000,v0=abc" into a timestamp and version -> value map.
    Only the first '=' separates key from value; malformed tokens are skipped.
    """
    result = SignatureHeader()
    if not signature_header or not isinstance(signature_header, str):
        return result

    for part in signature_header.split(","):
        part = part.strip()
        if not part or "=" not in part:
            continue
        key, value = part.split("=", 1)
        if not key:
            continue
        value = value.strip()
        if key == "t":
            result.timestamp = value
        else:
            result.values[key] = value
    return result


def timing_safe_equal(a, b) -> bool:
    """Constant-time string comparison. Non-strings never match."""
    if not isinstance(a, str) or not isinstance(b, str):
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _body_bytes(raw_body: Union[bytes, str, None]) -> bytes:
    if isinstance(raw_body, bytes):
        return raw_body
    if isinstance(raw_body, str):
        return raw_body.encode("utf-8")
    return b""


def _hmac_sha256(secret: str, message: bytes) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def verify_elevenlabs_signature(
    raw_body: Union[bytes, str, None],
    signature_header: Optional[str],
    secret: Optional[str],
    now: Optional[float] = None,
) -> bool:
    """
    Validate an ElevenLabs post-call webhook signature.

    No secret configured means verification is disabled and every request
    passes. With a secret, a missing header always fails.
    """
    if not secret:
        return True
    if not signature_header:
        logger.warning("Missing ElevenLabs-Signature header")
        return False

    parsed = parse_signature_header(signature_header)
    body = _body_bytes(raw_body)

    if parsed.timestamp:
        return _verify_timestamped(parsed, body, secret, now)
    return _verify_legacy(signature_header, body, secret)


def _parse_timestamp(raw: str) -> float:
    """Plain decimal seconds only; digit-group underscores are not a timestamp."""
    if "_" in raw:
        return math.nan
    try:
        return float(raw)
    except ValueError:
        return math.nan


def _verify_timestamped(
    parsed: SignatureHeader,
    body: bytes,
    secret: str,
    now: Optional[float],
) -> bool:
    timestamp = _parse_timestamp(parsed.timestamp)
    if not math.isfinite(timestamp):
        logger.warning("Invalid timestamp in ElevenLabs signature header")
        return False

    now_seconds = math.floor(time.time() if now is None else now)
    if timestamp < now_seconds - SIGNATURE_MAX_AGE_SECONDS:
        logger.warning(
            "ElevenLabs signature timestamp too old: ts=%s now=%s",
            parsed.timestamp, now_seconds,
        )
        return False
    if timestamp > now_seconds + SIGNATURE_MAX_AGE_SECONDS:
        logger.warning(
            "ElevenLabs signature timestamp too far in the future: ts=%s now=%s",
            parsed.timestamp, now_seconds,
        )
        return False

    # The timestamp is signed exactly as it appears in the header
    message = parsed.timestamp.encode("utf-8") + b"." + body
    expected_hex = _hmac_sha256(secret, message).hex()

    candidates = [parsed.values[k] for k in ("v0", "v1") if parsed.values.get(k)]
    for candidate in candidates:
        if timing_safe_equal(candidate, f"v0={expected_hex}") or timing_safe_equal(
            candidate, expected_hex
        ):
            return True

    # Bare hash carried under v0 with its own "v0=" prefix
    v0 = parsed.values.get("v0")
    if v0 and timing_safe_equal(v0.removeprefix("v0="), expected_hex):
        return True

    logger.warning("ElevenLabs signature verification failed for timestamped payload")
    return False


def _verify_legacy(signature_header: str, body: bytes, secret: str) -> bool:
    """Older signatures are a bare HMAC of the body, hex or base64 encoded."""
    provided = signature_header.strip()
    if not provided:
        return False

    digest = _hmac_sha256(secret, body)
    if timing_safe_equal(provided, digest.hex()):
        return True
    if timing_safe_equal(provided, base64.b64encode(digest).decode("ascii")):
        return True

    logger.warning("ElevenLabs legacy signature verification failed")
    return False


def validate_twilio_signature(
    auth_token: str,
    signature: str,
    url: str,
    params: dict,
) -> bool:
    """
    Validate Twilio webhook signature using their RequestValidator.
    Returns True if valid, False if invalid or on error.
    """
    if not signature:
        logger.warning("Missing X-Twilio-Signature header")
        return False

    try:
        from twilio.request_validator import RequestValidator
        validator = RequestValidator(auth_token)
        return validator.validate(url, params, signature)
    except Exception as e:
        logger.error("Twilio signature validation error: %s", str(e))
        return False


def get_webhook_url(request) -> str:
    """
    Reconstruct the public URL Twilio signed.
    Behind a reverse proxy request.url is the internal URL, so prefer the
    X-Forwarded-Proto / X-Forwarded-Host headers when present.
    """
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host", "")
    path = request.url.path
    query = request.url.query
    base = f"{proto}://{host}{path}"
    if query:
        return f"{base}?{query}"
    return base
