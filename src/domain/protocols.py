"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
"""

from typing import Protocol

from src.domain.models import UserProfile


class MessagingPort(Protocol):
    """Protocol for the chat platform the bot lives in."""

    def post_message(self, channel_id: str, text: str) -> tuple[str, str]:
        """Post a plain-text message to a channel.

        Args:
            channel_id: Target channel ID
            text: Message text (mrkdwn)

        Returns:
            (channel, ts) acknowledged by the platform

        Raises:
            SlackAPIError: On API communication errors
        """
        ...

    def add_reaction(self, channel_id: str, message_ts: str, name: str) -> None:
        """React to a message with an emoji by name.

        Raises:
            SlackAPIError: On API communication errors
        """
        ...

    def get_user_profile(self, user_id: str) -> UserProfile:
        """Resolve a user ID to its profile.

        Raises:
            SlackAPIError: On API communication errors or unknown user
        """
        ...


class LedgerPort(Protocol):
    """Protocol for the spreadsheet acting as the system of record."""

    def read_rows(self, range_name: str) -> list[list[str]]:
        """Read every row of a range, in sheet order.

        Args:
            range_name: A1 notation, e.g. ``"Pivot Table 1!A3:D"``

        Returns:
            Rows of formatted cell values (may be ragged)

        Raises:
            LedgerError: On storage errors
        """
        ...

    def append_row(self, values: list[str | int]) -> None:
        """Append one raw transfer record.

        Raises:
            LedgerError: On storage errors
        """
        ...
