"""Text scanning service for transfer lines.

Extracts the facts a transfer needs from free text:
- Number of token emoji (``:taco:``)
- First mentioned Slack user (``<@U123>``)
"""

import re
from typing import Final

# Slack user mention: <@U123ABC> or <@U123ABC|label>
MENTION_PATTERN: Final[re.Pattern[str]] = re.compile(r"<@([A-Za-z0-9_]+)(?:\|[^>]*)?>")
"""Pattern to match canonical Slack user mentions."""

# <@ + user id + > + space, in front of the emoji marker
MENTION_PHRASE_OVERHEAD: Final[int] = 16


class TextScanner:
    """Stateless scanner bound to one token emoji."""

    def __init__(self, emoji_name: str) -> None:
        if not emoji_name or ":" in emoji_name:
            raise ValueError(f"emoji_name must be a bare name, got {emoji_name!r}")
        self.marker = f":{emoji_name}:"
        self._emoji_pattern = re.compile(re.escape(self.marker))

    @property
    def min_phrase_length(self) -> int:
        """Shortest text that can hold a mention plus one marker."""
        return len(self.marker) + MENTION_PHRASE_OVERHEAD

    def is_processable(self, text: str) -> bool:
        """Cheap rejection before any pattern runs.

        Example:
            >>> TextScanner("taco").is_processable("hi")
            False
        """
        return bool(text) and len(text) >= self.min_phrase_length

    def count_token_emoji(self, text: str) -> int:
        """Count exact, non-overlapping occurrences of the token emoji.

        Example:
            >>> TextScanner("taco").count_token_emoji("<@U2> :taco: :taco:")
            2
            >>> TextScanner("taco").count_token_emoji(":tacos: :taco_bell:")
            0
        """
        if not text:
            return 0
        return len(self._emoji_pattern.findall(text))

    def find_mentioned_user_id(self, text: str) -> str | None:
        """Return the first mentioned user ID, or None.

        Example:
            >>> TextScanner("taco").find_mentioned_user_id("<@U2> and <@U3>")
            'U2'
        """
        if not text:
            return None
        match = MENTION_PATTERN.search(text)
        return match.group(1) if match else None


__all__ = ["MENTION_PATTERN", "TextScanner"]
