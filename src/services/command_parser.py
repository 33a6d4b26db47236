"""App-mention command parsing.

Recognized shapes (after the ``<@BOT>`` prefix is stripped):
- ``""`` or ``help``
- ``report`` / ``report <period>`` (``chart`` is accepted as an alias)
"""

from typing import Final

from src.domain.models import (
    Command,
    HelpCommand,
    InvalidCommand,
    ReportCommand,
    ReportPeriod,
)

HELP_KEYWORD: Final[str] = "help"
REPORT_KEYWORDS: Final[frozenset[str]] = frozenset({"report", "chart"})


def strip_mention_prefix(text: str, prefix_length: int) -> str:
    """Drop the fixed-length bot mention and normalize case and spacing."""
    return text[prefix_length:].strip().lower()


def parse_command(text: str, prefix_length: int) -> Command:
    """Classify an app-mention text into a command.

    Example:
        >>> parse_command("<@U0BOT1234> report week", 12)
        ReportCommand(kind='report', period=<ReportPeriod.WEEK: 'week'>)
    """
    body = strip_mention_prefix(text, prefix_length)
    if body in ("", HELP_KEYWORD):
        return HelpCommand()

    words = body.split()
    if words[0] not in REPORT_KEYWORDS or len(words) > 2:
        return InvalidCommand(text=body)
    if len(words) == 1:
        return ReportCommand()

    try:
        period = ReportPeriod(words[1])
    except ValueError:
        return InvalidCommand(text=body)
    return ReportCommand(period=period)


__all__ = ["parse_command", "strip_mention_prefix"]
