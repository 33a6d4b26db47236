"""App-mention command use case.

Replies to ``@bot help`` with a greeting and to ``@bot report <period>`` with
the receiving leaderboard for that period.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from src.config.logging_config import get_logger
from src.domain.exceptions import (
    DataIntegrityError,
    LedgerError,
    RateLimitError,
    SlackAPIError,
)
from src.domain.models import (
    BotConfig,
    HelpCommand,
    InvalidCommand,
    MentionCommand,
    ReportCommand,
)
from src.domain.protocols import MessagingPort
from src.domain.reaction_constants import (
    GREETING_MESSAGE_TEMPLATE,
    INVALID_COMMAND_MESSAGE,
    NO_RECORD_MESSAGE,
    RESULT_MESSAGE_TEMPLATE,
)
from src.services.command_parser import parse_command
from src.services.leaderboard_formatter import format_leaderboard
from src.services.ledger_query import LedgerQueryEngine
from src.services.period_resolver import local_today, resolve_period

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MentionCommandHandler:
    """Answers commands addressed to the bot."""

    def __init__(
        self,
        config: BotConfig,
        messaging: MessagingPort,
        query_engine: LedgerQueryEngine,
        *,
        clock: Clock = _utc_now,
    ) -> None:
        self._config = config
        self._messaging = messaging
        self._query_engine = query_engine
        self._clock = clock

    def build_reply(self, event: MentionCommand) -> str | None:
        """Compute the reply text, or None if the report could not be built.

        Raises nothing for ledger failures; they are logged and yield None.
        """
        command = parse_command(event.raw_text, self._config.mention_prefix_length)

        if isinstance(command, HelpCommand):
            return GREETING_MESSAGE_TEMPLATE.format(
                emoji=self._config.emoji_marker,
                spreadsheet_url=self._config.spreadsheet_url,
            )

        if isinstance(command, InvalidCommand):
            logger.info("mention_command_invalid", text=command.text)
            return INVALID_COMMAND_MESSAGE

        return self._report_reply(command)

    def _report_reply(self, command: ReportCommand) -> str | None:
        today = local_today(self._clock(), self._config.timezone)
        start, end = resolve_period(
            command.period,
            today,
            sprint_start=self._config.sprint_start,
            sprint_duration_days=self._config.sprint_duration_days,
        )
        try:
            totals = self._query_engine.range_totals(
                start, end, self._config.receiving_summary_range
            )
        except (DataIntegrityError, LedgerError) as e:
            logger.error(
                "report_query_failed",
                period=command.period.value,
                start=start.isoformat(),
                end=end.isoformat(),
                error=str(e),
            )
            return None

        logger.info(
            "report_built",
            period=command.period.value,
            start=start.isoformat(),
            end=end.isoformat(),
            subject_count=len(totals),
        )
        if not totals:
            return NO_RECORD_MESSAGE
        return RESULT_MESSAGE_TEMPLATE.format(
            start=start.isoformat(), end=end.isoformat(), chart=format_leaderboard(totals)
        )

    def handle(self, event: MentionCommand) -> str | None:
        """Build and post the reply. Returns the posted text."""
        reply = self.build_reply(event)
        if reply is None:
            return None
        try:
            self._messaging.post_message(event.channel_id, reply)
        except (SlackAPIError, RateLimitError) as e:
            logger.error(
                "mention_reply_failed", channel_id=event.channel_id, error=str(e)
            )
            return None
        return reply


__all__ = ["MentionCommandHandler"]
