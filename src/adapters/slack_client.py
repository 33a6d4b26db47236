"""Slack API client adapter implementing MessagingPort."""

from typing import Any, NoReturn

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from src.config.logging_config import get_logger
from src.domain.exceptions import RateLimitError, SlackAPIError
from src.domain.models import UserProfile

logger = get_logger(__name__)


def _raise_for_slack_error(action: str, error: SlackApiError) -> NoReturn:
    """Translate a slack_sdk error into the domain hierarchy."""
    if error.response.get("error") == "ratelimited":
        retry_after = int(error.response.headers.get("Retry-After", 60))
        raise RateLimitError(retry_after=retry_after) from error
    raise SlackAPIError(f"Failed to {action}: {error}") from error


class SlackClient:
    """Slack Web API client for replies, reactions and user lookups."""

    def __init__(self, bot_token: str, *, client: Any | None = None) -> None:
        """Initialize Slack client.

        Args:
            bot_token: Slack bot user OAuth token
            client: Optional preconfigured WebClient (tests inject a stub)
        """
        self.client = client if client is not None else WebClient(token=bot_token)
        self._user_cache: dict[str, UserProfile] = {}

    def post_message(self, channel_id: str, text: str) -> tuple[str, str]:
        """Post a text message to a channel.

        Returns:
            (channel, ts) of the posted message

        Raises:
            SlackAPIError: On API or network errors
            RateLimitError: When Slack asks us to back off
        """
        try:
            response = self.client.chat_postMessage(channel=channel_id, text=text)
        except SlackApiError as e:
            _raise_for_slack_error("post message", e)
        except OSError as e:
            raise SlackAPIError(f"Failed to post message: {e}") from e

        if not response["ok"]:
            raise SlackAPIError(f"Failed to post message: {response.get('error')}")

        logger.info(
            "slack_message_posted", channel_id=response["channel"], ts=response["ts"]
        )
        return response["channel"], response["ts"]

    def add_reaction(self, channel_id: str, message_ts: str, name: str) -> None:
        """Add an emoji reaction to a message.

        Raises:
            SlackAPIError: On API or network errors
            RateLimitError: When Slack asks us to back off
        """
        try:
            response = self.client.reactions_add(
                channel=channel_id, timestamp=message_ts, name=name
            )
        except SlackApiError as e:
            _raise_for_slack_error(f"react {name}", e)
        except OSError as e:
            raise SlackAPIError(f"Failed to react {name}: {e}") from e

        if not response["ok"]:
            raise SlackAPIError(f"Failed to react {name}: {response.get('error')}")

        logger.info(
            "slack_reaction_added",
            channel_id=channel_id,
            message_ts=message_ts,
            reaction=name,
        )

    def get_user_profile(self, user_id: str) -> UserProfile:
        """Get a user's profile by ID (with in-memory caching).

        Raises:
            SlackAPIError: On API or network errors, or unknown user
        """
        if not user_id:
            raise SlackAPIError("Cannot look up an empty user ID")

        if user_id in self._user_cache:
            return self._user_cache[user_id]

        try:
            response = self.client.users_info(user=user_id)
        except SlackApiError as e:
            _raise_for_slack_error(f"fetch user {user_id}", e)
        except OSError as e:
            raise SlackAPIError(f"Failed to fetch user {user_id}: {e}") from e

        if not response["ok"]:
            raise SlackAPIError(
                f"Failed to fetch user {user_id}: {response.get('error')}"
            )

        user_data: dict[str, Any] = response["user"]
        profile_data: dict[str, Any] = user_data.get("profile") or {}
        profile = UserProfile(
            id=user_data.get("id", user_id),
            display_name=(
                profile_data.get("real_name")
                or user_data.get("real_name")
                or user_data.get("name")
                or user_id
            ),
            email=profile_data.get("email"),
            is_bot=bool(user_data.get("is_bot")) or user_id == "USLACKBOT",
        )
        self._user_cache[user_id] = profile
        logger.debug(
            "slack_user_resolved",
            user_id=profile.id,
            display_name=profile.display_name,
            is_bot=profile.is_bot,
        )
        return profile


__all__ = ["SlackClient"]
