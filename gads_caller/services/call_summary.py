"""
Post-call summary builder - turns an ElevenLabs post_call_transcription
event (plus the conversation details fetched from the API, when available)
into an email subject, plain-text body, and HTML body.

ElevenLabs has moved the summary and insight fields around between agent
versions, so each value is looked up in several places, most specific first.
"""
import html
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from gads_caller.schemas.webhook_payloads import PostCallEvent

logger = logging.getLogger(__name__)

TRANSCRIPT_PREVIEW_TURNS = 8
NO_SUMMARY = "[No summary field found in webhook payload.]"
NO_MESSAGE = "[no message provided]"


def _dig(obj: Any, *path: str) -> Any:
    """Walk nested dicts, returning None as soon as a step is missing."""
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_duration(seconds: Any) -> Optional[str]:
    """42 → "42s", 125 → "2m 5s". Non-numeric input → None."""
    if not _is_number(seconds) or not math.isfinite(seconds):
        return None
    total = max(0, _round_half_up(seconds))
    mins, secs = divmod(total, 60)
    if mins == 0:
        return f"{secs}s"
    return f"{mins}m {secs}s"


def escape_html(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


@dataclass
class TranscriptTurn:
    role: str
    message: str
    timestamp: Optional[str] = None

    def as_text(self) -> str:
        prefix = f"[{self.timestamp}] " if self.timestamp else ""
        return f"{prefix}{self.role}: {self.message}"

    def as_html(self) -> str:
        stamp = f" <em>{escape_html(self.timestamp)}</em>" if self.timestamp else ""
        return f"<li><strong>{escape_html(self.role)}</strong>{stamp}: {escape_html(self.message)}</li>"


@dataclass
class CallSummary:
    event_type: str
    summary: str
    raw_event: dict
    conversation_id: Optional[str] = None
    status: Optional[str] = None
    duration: Optional[str] = None
    key_insights: Any = None
    transcript: list[TranscriptTurn] = field(default_factory=list)
    additional_turns: int = 0

    @property
    def subject(self) -> str:
        if self.conversation_id:
            return f"ElevenLabs call summary ({self.conversation_id})"
        return "ElevenLabs call summary"

    def _metadata(self) -> list[tuple[str, str]]:
        rows = [("Event type", self.event_type)]
        if self.conversation_id:
            rows.append(("Conversation ID", self.conversation_id))
        if self.status:
            rows.append(("Call status", str(self.status)))
        if self.duration:
            rows.append(("Call duration", self.duration))
        return rows

    def _insights_text(self) -> str:
        if isinstance(self.key_insights, str):
            return self.key_insights
        return json.dumps(self.key_insights, indent=2, default=str)

    def _raw_json(self) -> str:
        return json.dumps(self.raw_event, indent=2, default=str)

    def text_body(self) -> str:
        lines = [f"{label}: {value}" for label, value in self._metadata()]
        lines += ["", "Summary:", self.summary]

        if self.key_insights:
            lines += ["", "Key insights:", self._insights_text()]

        if self.transcript:
            lines += ["", "Transcript preview:"]
            lines += [turn.as_text() for turn in self.transcript]
            if self.additional_turns:
                lines.append(f"... (+{self.additional_turns} more turns)")

        lines += ["", "Full payload:", self._raw_json()]
        return "\n".join(lines)

    def html_body(self) -> str:
        metadata = "".join(
            f"<li><strong>{escape_html(label)}:</strong> {escape_html(value)}</li>"
            for label, value in self._metadata()
        )
        summary = escape_html(self.summary).replace("\r\n", "<br>").replace("\n", "<br>")

        insights = ""
        if isinstance(self.key_insights, str) and self.key_insights:
            body = escape_html(self.key_insights).replace("\r\n", "<br>").replace("\n", "<br>")
            insights = f"<h3>Key insights</h3><p>{body}</p>"
        elif self.key_insights:
            insights = f"<h3>Key insights</h3><pre>{escape_html(self._insights_text())}</pre>"

        transcript = ""
        if self.transcript:
            items = "".join(turn.as_html() for turn in self.transcript)
            transcript = f"<h3>Transcript preview</h3><ol>{items}</ol>"
            if self.additional_turns:
                transcript += (
                    f"<p><em>… plus {self.additional_turns} additional turn(s)</em></p>"
                )

        return (
            "<h2>ElevenLabs Call Summary</h2>"
            f"<ul>{metadata}</ul>"
            "<h3>Summary</h3>"
            f"<p>{summary}</p>"
            f"{insights}"
            f"{transcript}"
            "<h3>Raw event payload</h3>"
            f"<pre>{escape_html(self._raw_json())}</pre>"
        )


def _primary_summary(data: dict, conversation: dict) -> str:
    candidates = (
        _dig(conversation, "analysis", "transcript_summary"),
        _dig(conversation, "analysis", "summary"),
        _dig(data, "analysis", "summary"),
        _dig(data, "analysis", "call_summary"),
        _dig(data, "analysis", "callSummary"),
        _dig(data, "analysis", "data_collection_results", "call_summary", "value"),
        _dig(data, "analysis", "data_collection_results", "summary", "value"),
        _dig(data, "summary"),
        _dig(data, "call_summary"),
    )
    for candidate in candidates:
        if isinstance(candidate, str) and candidate.strip():
            return candidate
    return NO_SUMMARY


def _key_insights(data: dict, conversation: dict) -> Any:
    candidates = (
        _dig(data, "analysis", "key_insights"),
        _dig(data, "analysis", "keyInsights"),
        _dig(data, "analysis", "data_collection_results", "key_insights", "value"),
        _dig(data, "analysis", "data_collection_results", "key_insights"),
        _dig(data, "key_insights"),
        _dig(data, "keyInsights"),
    )
    for candidate in candidates:
        if candidate:
            return candidate

    insight = _dig(conversation, "analysis", "data_collection_results", "key_insights")
    if insight:
        return _dig(insight, "value") or insight
    return None


def _transcript_turn(turn: Any) -> TranscriptTurn:
    if not isinstance(turn, dict):
        turn = {}
    role = str(turn.get("role") or "unknown").upper()

    seconds = turn.get("time_in_call_secs")
    timestamp = f"{max(0, _round_half_up(seconds))}s" if _is_number(seconds) and math.isfinite(seconds) else None

    message = str(turn["message"]).strip() if turn.get("message") else ""
    if not message:
        multivoice = _dig(turn, "multivoice_message", "text")
        message = str(multivoice).strip() if multivoice else ""
    return TranscriptTurn(role=role, message=message or NO_MESSAGE, timestamp=timestamp)


def build_call_summary(event: PostCallEvent, conversation: Optional[dict] = None) -> CallSummary:
    """Collect the fields worth emailing from a post-call event."""
    data = event.data or {}
    conversation = conversation if isinstance(conversation, dict) else {}

    duration_secs = _dig(conversation, "metadata", "call_duration_secs")
    if duration_secs is None:
        duration_secs = _dig(data, "metadata", "call_duration_secs")

    turns = conversation.get("transcript")
    turns = turns if isinstance(turns, list) else []

    return CallSummary(
        event_type=event.kind,
        summary=_primary_summary(data, conversation),
        raw_event=event.model_dump(exclude_unset=True),
        conversation_id=event.conversation_ref,
        status=conversation.get("status") or data.get("status") or None,
        duration=format_duration(duration_secs),
        key_insights=_key_insights(data, conversation),
        transcript=[_transcript_turn(t) for t in turns[:TRANSCRIPT_PREVIEW_TURNS]],
        additional_turns=max(0, len(turns) - TRANSCRIPT_PREVIEW_TURNS),
    )
