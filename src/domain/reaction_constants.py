"""Reaction markers and reply texts posted back to Slack."""

from typing import Final

# Reactions for policy outcomes
REACTION_DENIED: Final[str] = "no_good"
REACTION_NOT_ALLOWED: Final[str] = "x"
REACTION_SELF_GIVE: Final[str] = "pray"

# Whole-number markers; 10 has its own keycap, larger values go digit by digit
NUMBER_REACTIONS: Final[dict[int, str]] = {
    0: "zero",
    1: "one",
    2: "two",
    3: "three",
    4: "four",
    5: "five",
    6: "six",
    7: "seven",
    8: "eight",
    9: "nine",
    10: "keycap_ten",
}
MAX_WHOLE_NUMBER_REACTION: Final[int] = 10

# Leaderboard decorations for the top three
TOP_CHART_MARKER: Final[str] = ":crown:"
RUNNER_UP_MARKER: Final[str] = ":rocket:"
THIRD_CHART_MARKER: Final[str] = ":trident:"
PODIUM_MARKERS: Final[tuple[str, ...]] = (
    TOP_CHART_MARKER,
    RUNNER_UP_MARKER,
    THIRD_CHART_MARKER,
)

NO_RECORD_MESSAGE: Final[str] = "No record found! :face_with_monocle:"
INVALID_COMMAND_MESSAGE: Final[str] = (
    "Invalid command. Available commands are: "
    "```help\nreport\nreport day\nreport week\nreport sprint\nreport month\nreport year```"
)
GREETING_MESSAGE_TEMPLATE: Final[str] = (
    "Hello! Give someone a {emoji} by mentioning them next to it. "
    "Full leaderboard: {spreadsheet_url}"
)
RESULT_MESSAGE_TEMPLATE: Final[str] = "Result from {start} to {end}:\n{chart}"


def number_reactions(quantity: int) -> list[str]:
    """Reaction names acknowledging ``quantity`` tokens.

    Example:
        >>> number_reactions(2)
        ['two']
        >>> number_reactions(12)
        ['one', 'two']
    """
    if quantity < 1:
        return []
    if quantity <= MAX_WHOLE_NUMBER_REACTION:
        return [NUMBER_REACTIONS[quantity]]
    return [NUMBER_REACTIONS[int(digit)] for digit in str(quantity)]


__all__ = [
    "GREETING_MESSAGE_TEMPLATE",
    "INVALID_COMMAND_MESSAGE",
    "MAX_WHOLE_NUMBER_REACTION",
    "NO_RECORD_MESSAGE",
    "NUMBER_REACTIONS",
    "PODIUM_MARKERS",
    "REACTION_DENIED",
    "REACTION_NOT_ALLOWED",
    "REACTION_SELF_GIVE",
    "RESULT_MESSAGE_TEMPLATE",
    "RUNNER_UP_MARKER",
    "THIRD_CHART_MARKER",
    "TOP_CHART_MARKER",
    "number_reactions",
]
