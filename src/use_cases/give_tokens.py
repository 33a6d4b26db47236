"""Give tokens use case.

Turns one line of a channel message into at most one ledger record and the
matching acknowledgement reactions.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import date
from typing import Final

import pytz

from src.config.logging_config import get_logger
from src.domain.exceptions import (
    DataIntegrityError,
    LedgerError,
    RateLimitError,
    SlackAPIError,
)
from src.domain.models import (
    BotConfig,
    PlainMessage,
    QuotaDecision,
    QuotaReason,
    TransferIntent,
    TransferOutcome,
    UserProfile,
)
from src.domain.protocols import LedgerPort, MessagingPort
from src.domain.reaction_constants import (
    REACTION_DENIED,
    REACTION_NOT_ALLOWED,
    REACTION_SELF_GIVE,
    number_reactions,
)
from src.services import quota_policy
from src.services.ledger_query import LedgerQueryEngine
from src.services.text_scanner import TextScanner

logger = get_logger(__name__)

LEDGER_DATETIME_FORMAT: Final[str] = "%m/%d/%Y %H:%M:%S"
"""Sheets-recognizable local date time written next to the ISO timestamp."""


class GiverLocks:
    """One lock per giver ID, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, giver_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(giver_id, threading.Lock())
        with lock:
            yield


def build_ledger_record(
    intent: TransferIntent,
    giver: UserProfile,
    receiver: UserProfile,
    line: str,
    tz_name: str,
) -> list[str | int]:
    """Raw transfer row: timestamp, date time, giver, receiver, quantity, text."""
    local_dt = intent.occurred_at.astimezone(pytz.timezone(tz_name))
    return [
        local_dt.isoformat(),
        local_dt.strftime(LEDGER_DATETIME_FORMAT),
        giver.display_name,
        receiver.display_name,
        intent.quantity,
        line,
    ]


class TransferOrchestrator:
    """Runs the per-line decision chain for token transfers."""

    def __init__(
        self,
        config: BotConfig,
        messaging: MessagingPort,
        ledger: LedgerPort,
        *,
        scanner: TextScanner | None = None,
        query_engine: LedgerQueryEngine | None = None,
        giver_locks: GiverLocks | None = None,
    ) -> None:
        self._config = config
        self._messaging = messaging
        self._ledger = ledger
        self._scanner = scanner or TextScanner(config.emoji_name)
        self._query_engine = query_engine or LedgerQueryEngine(ledger, config.timezone)
        self._giver_locks = giver_locks or GiverLocks()
        self._tz = pytz.timezone(config.timezone)

    def process_line(self, message: PlainMessage, line: str) -> TransferOutcome:
        """Process one candidate line of ``message``.

        Never raises for Slack or ledger failures; those end the line and are
        logged.
        """
        log = logger.bind(
            channel_id=message.channel_id,
            message_ts=message.message_ts,
            giver_id=message.author_id,
        )

        requested = self._scanner.count_token_emoji(line)
        if requested == 0:
            log.debug("transfer_no_token", line=line)
            return TransferOutcome.NO_TOKEN

        receiver_id = self._scanner.find_mentioned_user_id(line)
        if receiver_id is None:
            log.debug("transfer_no_receiver", line=line)
            return TransferOutcome.NO_RECEIVER

        try:
            receiver = self._messaging.get_user_profile(receiver_id)
        except (SlackAPIError, RateLimitError) as e:
            log.error("receiver_lookup_failed", receiver_id=receiver_id, error=str(e))
            return TransferOutcome.LOOKUP_FAILED

        if receiver.is_bot:
            log.info("transfer_to_bot_rejected", receiver_id=receiver.id)
            self._react(message, REACTION_NOT_ALLOWED)
            return TransferOutcome.BOT_RECEIVER

        try:
            giver = self._messaging.get_user_profile(message.author_id)
        except (SlackAPIError, RateLimitError) as e:
            log.error("giver_lookup_failed", error=str(e))
            return TransferOutcome.LOOKUP_FAILED

        if giver.id == receiver.id:
            log.info("transfer_self_give_rejected")
            self._react(message, REACTION_SELF_GIVE)
            return TransferOutcome.SELF_GIVE

        if self._config.emoji_cap is not None and requested > self._config.emoji_cap:
            log.info(
                "transfer_emoji_capped", requested=requested, cap=self._config.emoji_cap
            )
            requested = self._config.emoji_cap

        day = message.occurred_at.astimezone(self._tz).date()

        with self._quota_scope(giver.id):
            decision = self._decide(giver, requested, day)
            if decision is None:
                return TransferOutcome.QUOTA_UNAVAILABLE

            if decision.granted == 0:
                if decision.reason == QuotaReason.ALREADY_AT_LIMIT:
                    self._react(message, REACTION_DENIED)
                    return TransferOutcome.DENIED_AT_LIMIT
                self._react(message, REACTION_NOT_ALLOWED)
                return TransferOutcome.DENIED_ZERO

            intent = TransferIntent(
                giver_id=giver.id,
                receiver_id=receiver.id,
                quantity=decision.granted,
                source_message_ts=message.message_ts,
                channel_id=message.channel_id,
                occurred_at=message.occurred_at,
            )
            self._record(intent, giver, receiver, line)

        for name in number_reactions(intent.quantity):
            self._react(message, name)
        return TransferOutcome.RECORDED

    # Internal helpers -------------------------------------------------

    def _quota_scope(self, giver_id: str) -> AbstractContextManager[None]:
        if self._config.serialize_giver_quota:
            return self._giver_locks.hold(giver_id)
        return nullcontext()

    def _decide(
        self, giver: UserProfile, requested: int, day: date
    ) -> QuotaDecision | None:
        try:
            already_given = self._query_engine.daily_total_for(
                giver.display_name, day, self._config.giving_summary_range
            )
        except (DataIntegrityError, LedgerError) as e:
            logger.error(
                "quota_check_failed", giver_id=giver.id, day=day.isoformat(), error=str(e)
            )
            return None

        decision = quota_policy.decide(already_given, requested, self._config.daily_limit)
        logger.info(
            "quota_decided",
            giver_id=giver.id,
            day=day.isoformat(),
            already_given=already_given,
            requested=requested,
            daily_limit=self._config.daily_limit,
            granted=decision.granted,
            reason=decision.reason.value,
        )
        return decision

    def _record(
        self,
        intent: TransferIntent,
        giver: UserProfile,
        receiver: UserProfile,
        line: str,
    ) -> None:
        row = build_ledger_record(intent, giver, receiver, line, self._config.timezone)
        try:
            self._ledger.append_row(row)
        except LedgerError as e:
            logger.error(
                "transfer_append_failed",
                giver_id=intent.giver_id,
                receiver_id=intent.receiver_id,
                quantity=intent.quantity,
                error=str(e),
            )
            return
        logger.info(
            "transfer_recorded",
            giver_id=intent.giver_id,
            receiver_id=intent.receiver_id,
            quantity=intent.quantity,
            message_ts=intent.source_message_ts,
        )

    def _react(self, message: PlainMessage, name: str) -> None:
        try:
            self._messaging.add_reaction(message.channel_id, message.message_ts, name)
        except (SlackAPIError, RateLimitError) as e:
            logger.warning(
                "reaction_failed",
                channel_id=message.channel_id,
                message_ts=message.message_ts,
                reaction=name,
                error=str(e),
            )


__all__ = ["GiverLocks", "TransferOrchestrator", "build_ledger_record"]
