"""Slack Events API envelope parsing, verification and classification.

Handles:
- JSON envelope decoding
- Verification token check (legacy ``token`` field)
- Request signature check (``X-Slack-Signature``, v0 HMAC)
- Mapping the envelope onto an InboundEvent
"""

import hmac
import json
import math
from collections.abc import Mapping
from datetime import datetime
from hashlib import sha256
from typing import Any, Final

from src.domain.exceptions import ProtocolError
from src.domain.models import (
    ChallengeVerification,
    InboundEvent,
    MentionCommand,
    PlainMessage,
    UnrecognizedEvent,
)

URL_VERIFICATION: Final[str] = "url_verification"
EVENT_CALLBACK: Final[str] = "event_callback"
APP_MENTION: Final[str] = "app_mention"
MESSAGE: Final[str] = "message"

SIGNATURE_VERSION: Final[str] = "v0"
SIGNATURE_TOLERANCE_SECONDS: Final[int] = 300


def decode_envelope(raw_body: bytes) -> dict[str, Any]:
    """Decode the request body into an envelope dict.

    Raises:
        ProtocolError: If the body is not a JSON object
    """
    try:
        envelope = json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Body is not valid JSON: {e}") from e
    if not isinstance(envelope, dict):
        raise ProtocolError("Envelope must be a JSON object")
    return envelope


def verify_token(envelope: Mapping[str, Any], expected_token: str) -> None:
    """Compare the envelope's verification token in constant time.

    Raises:
        ProtocolError: On missing or mismatching token
    """
    provided = envelope.get("token")
    if not isinstance(provided, str) or not hmac.compare_digest(
        provided.encode("utf-8"), expected_token.encode("utf-8")
    ):
        raise ProtocolError("Verification token mismatch")


def verify_signature(
    raw_body: bytes,
    headers: Mapping[str, str],
    *,
    signing_secret: str,
    now: datetime,
    tolerance_seconds: int = SIGNATURE_TOLERANCE_SECONDS,
) -> None:
    """Check Slack's request signature.

    Raises:
        ProtocolError: On missing headers, stale timestamp or bad signature
    """
    normalized = {key.lower(): value for key, value in headers.items()}
    signature = normalized.get("x-slack-signature", "")
    timestamp = normalized.get("x-slack-request-timestamp", "")
    if not signature or not timestamp:
        raise ProtocolError("Missing Slack signature headers")
    try:
        ts_int = int(timestamp)
    except ValueError as e:
        raise ProtocolError(f"Invalid signature timestamp {timestamp!r}") from e
    if abs(int(now.timestamp()) - ts_int) > tolerance_seconds:
        raise ProtocolError("Signature timestamp out of range")

    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + raw_body
    digest = hmac.new(signing_secret.encode("utf-8"), base, sha256).hexdigest()
    expected = f"{SIGNATURE_VERSION}={digest}"
    if not hmac.compare_digest(expected, signature):
        raise ProtocolError("Signature mismatch")


def _message_ts(value: Any) -> str:
    """Slack ``ts`` is epoch seconds with a sequence suffix, e.g. ``1710471600.000100``."""
    try:
        seconds = float(value)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"message event with invalid ts {value!r}") from e
    if not math.isfinite(seconds):
        raise ProtocolError(f"message event with invalid ts {value!r}")
    return str(value)


def classify(envelope: Mapping[str, Any]) -> InboundEvent:
    """Map a decoded envelope onto an InboundEvent.

    Raises:
        ProtocolError: If a recognized event is missing required fields
    """
    envelope_type = envelope.get("type")

    if envelope_type == URL_VERIFICATION:
        challenge = envelope.get("challenge")
        if not isinstance(challenge, str):
            raise ProtocolError("url_verification without a challenge")
        return ChallengeVerification(challenge=challenge)

    if envelope_type != EVENT_CALLBACK:
        return UnrecognizedEvent(event_type=str(envelope_type))

    event = envelope.get("event")
    if not isinstance(event, dict):
        raise ProtocolError("event_callback without an event object")

    event_type = event.get("type")
    try:
        if event_type == APP_MENTION:
            return MentionCommand(
                actor_id=event.get("user") or "",
                raw_text=event.get("text") or "",
                channel_id=event["channel"],
            )
        if event_type == MESSAGE:
            return PlainMessage(
                author_id=event.get("user") or "",
                raw_text=event.get("text") or "",
                channel_id=event["channel"],
                message_ts=_message_ts(event["ts"]),
                subtype=event.get("subtype") or None,
                edited=bool(event.get("edited")),
            )
    except KeyError as e:
        raise ProtocolError(f"{event_type} event missing field {e}") from e

    return UnrecognizedEvent(event_type=str(event_type))


__all__ = [
    "classify",
    "decode_envelope",
    "verify_signature",
    "verify_token",
]
