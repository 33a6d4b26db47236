"""Webhook use case: classify an inbound Slack request and dispatch work.

The HTTP response only reflects whether the request was understood. Actual
transfers and replies run as background jobs after the response is sent;
their results surface in Slack (reactions, replies) and in the ledger only.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Final

from src.config.logging_config import bind_context, clear_context, get_logger
from src.domain.exceptions import ProtocolError
from src.domain.models import (
    ChallengeVerification,
    InboundEvent,
    MentionCommand,
    PlainMessage,
    WebhookResponse,
)
from src.ports.job_runner import JobHandler, JobRunnerPort
from src.services.event_classifier import (
    classify,
    decode_envelope,
    verify_signature,
    verify_token,
)
from src.services.text_scanner import TextScanner
from src.use_cases.give_tokens import TransferOrchestrator
from src.use_cases.handle_mention import MentionCommandHandler

logger = get_logger(__name__)

JOB_TRANSFER_LINE: Final[str] = "transfer_line"
JOB_MENTION_COMMAND: Final[str] = "mention_command"

RETRY_HEADER: Final[str] = "x-slack-retry-num"
SEEN_EVENT_CAPACITY: Final[int] = 1024

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


def build_job_handlers(
    orchestrator: TransferOrchestrator, mention_handler: MentionCommandHandler
) -> dict[str, JobHandler]:
    """Job handlers for the runner, keyed by job name."""

    def _transfer_line(params: dict[str, object]) -> dict[str, object]:
        message = params["message"]
        line = params["line"]
        if not isinstance(message, PlainMessage) or not isinstance(line, str):
            raise TypeError(f"{JOB_TRANSFER_LINE} expects a PlainMessage and a line")
        outcome = orchestrator.process_line(message, line)
        return {"outcome": outcome.value}

    def _mention_command(params: dict[str, object]) -> dict[str, object]:
        event = params["event"]
        if not isinstance(event, MentionCommand):
            raise TypeError(f"{JOB_MENTION_COMMAND} expects a MentionCommand")
        return {"reply": mention_handler.handle(event)}

    return {JOB_TRANSFER_LINE: _transfer_line, JOB_MENTION_COMMAND: _mention_command}


class RecentEventIds:
    """Bounded memory of Slack event IDs already dispatched."""

    def __init__(self, capacity: int = SEEN_EVENT_CAPACITY) -> None:
        self._capacity = capacity
        self._ids: OrderedDict[str, None] = OrderedDict()
        self._lock = threading.Lock()

    def check_and_add(self, event_id: str) -> bool:
        """Record ``event_id``; return True if it was already present."""
        with self._lock:
            if event_id in self._ids:
                return True
            self._ids[event_id] = None
            while len(self._ids) > self._capacity:
                self._ids.popitem(last=False)
            return False


class WebhookHandler:
    """Entry point for every Slack Events API request."""

    def __init__(
        self,
        scanner: TextScanner,
        runner: JobRunnerPort,
        *,
        verification_token: str | None = None,
        signing_secret: str | None = None,
        clock: Clock = _utc_now,
        seen_events: RecentEventIds | None = None,
    ) -> None:
        self._scanner = scanner
        self._runner = runner
        self._verification_token = verification_token or None
        self._signing_secret = signing_secret or None
        self._clock = clock
        self._seen_events = seen_events or RecentEventIds()

    def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> WebhookResponse:
        """Classify the request and start any background work.

        Returns:
            200 once dispatched (or deliberately ignored), 500 on protocol errors
        """
        try:
            envelope = decode_envelope(raw_body)
            self._verify(raw_body, headers, envelope)
            event = classify(envelope)
        except ProtocolError as e:
            logger.warning("webhook_rejected", error=str(e))
            return WebhookResponse(status_code=500)

        if isinstance(event, ChallengeVerification):
            logger.info("url_verification_answered")
            return WebhookResponse(status_code=200, body=event.challenge)

        event_id = str(envelope.get("event_id") or "")
        normalized = {key.lower(): value for key, value in headers.items()}
        if RETRY_HEADER in normalized:
            logger.info(
                "webhook_retry_ignored",
                event_id=event_id,
                retry_num=normalized[RETRY_HEADER],
            )
            return WebhookResponse(status_code=200)
        if event_id and self._seen_events.check_and_add(event_id):
            logger.info("webhook_duplicate_ignored", event_id=event_id)
            return WebhookResponse(status_code=200)

        bind_context(event_id=event_id)
        try:
            self.dispatch(event)
        finally:
            clear_context()
        return WebhookResponse(status_code=200)

    def dispatch(self, event: InboundEvent) -> list[str]:
        """Submit background jobs for an event. Returns the submitted job IDs."""
        if isinstance(event, MentionCommand):
            logger.info("mention_received", channel_id=event.channel_id)
            return [self._runner.submit(JOB_MENTION_COMMAND, {"event": event})]

        if isinstance(event, PlainMessage):
            if not self._should_process(event):
                return []
            lines = event.raw_text.split("\n")
            logger.info(
                "message_dispatched",
                channel_id=event.channel_id,
                message_ts=event.message_ts,
                line_count=len(lines),
            )
            return [
                self._runner.submit(JOB_TRANSFER_LINE, {"message": event, "line": line})
                for line in lines
            ]

        logger.info("event_ignored", inbound=event.model_dump())
        return []

    # Internal helpers -------------------------------------------------

    def _verify(
        self, raw_body: bytes, headers: Mapping[str, str], envelope: Mapping[str, object]
    ) -> None:
        if self._verification_token is not None:
            verify_token(envelope, self._verification_token)
        if self._signing_secret is not None:
            verify_signature(
                raw_body, headers, signing_secret=self._signing_secret, now=self._clock()
            )

    def _should_process(self, message: PlainMessage) -> bool:
        if message.subtype:
            logger.debug("message_subtype_ignored", subtype=message.subtype)
            return False
        if message.edited:
            logger.debug("message_edited_ignored", message_ts=message.message_ts)
            return False
        if not message.author_id:
            logger.debug("message_without_author_ignored", message_ts=message.message_ts)
            return False
        if not self._scanner.is_processable(message.raw_text):
            logger.debug("message_too_short_ignored", message_ts=message.message_ts)
            return False
        return True


__all__ = [
    "JOB_MENTION_COMMAND",
    "JOB_TRANSFER_LINE",
    "RecentEventIds",
    "WebhookHandler",
    "build_job_handlers",
]
