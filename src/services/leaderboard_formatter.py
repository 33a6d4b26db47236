"""Leaderboard ranking and rendering for Slack replies."""

from src.domain.models import LeaderboardEntry
from src.domain.reaction_constants import NO_RECORD_MESSAGE, PODIUM_MARKERS


def rank(totals: dict[str, int]) -> list[LeaderboardEntry]:
    """Order subjects by total, highest first."""
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [LeaderboardEntry(subject_name=name, total=total) for name, total in ordered]


def format_entry(entry: LeaderboardEntry, position: int) -> str:
    """Render one line; the first three positions get a podium marker.

    Example:
        >>> format_entry(LeaderboardEntry(subject_name="Alice", total=7), 0)
        '*Alice* (7) :crown:'
    """
    line = f"*{entry.subject_name}* ({entry.total})"
    if position < len(PODIUM_MARKERS):
        line = f"{line} {PODIUM_MARKERS[position]}"
    return line


def format_leaderboard(totals: dict[str, int]) -> str:
    """Render a ranked chart, or the no-record message for empty input."""
    if not totals:
        return NO_RECORD_MESSAGE
    return "\n".join(
        format_entry(entry, position) for position, entry in enumerate(rank(totals))
    )


__all__ = ["format_entry", "format_leaderboard", "rank"]
