"""Tests for the Slack messaging adapter."""

from typing import Any
from urllib.error import URLError

import pytest
from slack_sdk.errors import SlackApiError
from slack_sdk.web.client import WebClient
from slack_sdk.web.slack_response import SlackResponse

from src.adapters.slack_client import SlackClient
from src.domain.exceptions import RateLimitError, SlackAPIError


def _error_response(error: str, headers: dict[str, str] | None = None) -> SlackResponse:
    return SlackResponse(
        client=WebClient(token="xoxb-test"),
        http_verb="POST",
        api_url="https://slack.com/api/test",
        req_args={},
        data={"ok": False, "error": error},
        headers=headers or {},
        status_code=429 if error == "ratelimited" else 200,
    )


class StubWebClient:
    """Minimal WebClient stand-in recording calls."""

    def __init__(self, users: dict[str, dict[str, Any]] | None = None) -> None:
        self.users = users or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.raise_error: Exception | None = None

    def chat_postMessage(self, **params: Any) -> dict[str, Any]:  # noqa: N802
        self.calls.append(("chat_postMessage", params))
        if self.raise_error:
            raise self.raise_error
        return {"ok": True, "channel": params["channel"], "ts": "1710471600.000200"}

    def reactions_add(self, **params: Any) -> dict[str, Any]:
        self.calls.append(("reactions_add", params))
        if self.raise_error:
            raise self.raise_error
        return {"ok": True}

    def users_info(self, user: str) -> dict[str, Any]:
        self.calls.append(("users_info", {"user": user}))
        if self.raise_error:
            raise self.raise_error
        if user not in self.users:
            return {"ok": False, "error": "user_not_found"}
        return {"ok": True, "user": self.users[user]}


def test_post_message_returns_channel_and_ts() -> None:
    stub = StubWebClient()
    client = SlackClient(bot_token="xoxb-test", client=stub)

    assert client.post_message("C1", "hello") == ("C1", "1710471600.000200")
    assert stub.calls == [("chat_postMessage", {"channel": "C1", "text": "hello"})]


def test_add_reaction_passes_message_timestamp() -> None:
    stub = StubWebClient()
    client = SlackClient(bot_token="xoxb-test", client=stub)

    client.add_reaction("C1", "1710471600.000100", "two")

    assert stub.calls == [
        (
            "reactions_add",
            {"channel": "C1", "timestamp": "1710471600.000100", "name": "two"},
        )
    ]


def test_get_user_profile_prefers_profile_real_name_and_caches() -> None:
    stub = StubWebClient(
        {
            "U2": {
                "id": "U2",
                "name": "bob",
                "real_name": "Bob",
                "profile": {"real_name": "Bob Tran", "email": "bob@example.com"},
            }
        }
    )
    client = SlackClient(bot_token="xoxb-test", client=stub)

    first = client.get_user_profile("U2")
    second = client.get_user_profile("U2")

    assert first.display_name == "Bob Tran"
    assert first.email == "bob@example.com"
    assert not first.is_bot
    assert second is first
    assert len(stub.calls) == 1


def test_get_user_profile_flags_bots() -> None:
    stub = StubWebClient(
        {
            "UBOT": {"id": "UBOT", "name": "tacobot", "is_bot": True, "profile": {}},
            "USLACKBOT": {"id": "USLACKBOT", "name": "slackbot", "is_bot": False},
        }
    )
    client = SlackClient(bot_token="xoxb-test", client=stub)

    bot = client.get_user_profile("UBOT")

    assert bot.is_bot
    assert bot.display_name == "tacobot"
    assert client.get_user_profile("USLACKBOT").is_bot


def test_unknown_user_raises() -> None:
    client = SlackClient(bot_token="xoxb-test", client=StubWebClient())

    with pytest.raises(SlackAPIError, match="user_not_found"):
        client.get_user_profile("U404")


def test_slack_errors_are_translated() -> None:
    stub = StubWebClient()
    stub.raise_error = SlackApiError("failed", _error_response("channel_not_found"))
    client = SlackClient(bot_token="xoxb-test", client=stub)

    with pytest.raises(SlackAPIError):
        client.post_message("C404", "hello")


def test_rate_limit_maps_to_rate_limit_error() -> None:
    stub = StubWebClient()
    stub.raise_error = SlackApiError(
        "ratelimited", _error_response("ratelimited", {"Retry-After": "7"})
    )
    client = SlackClient(bot_token="xoxb-test", client=stub)

    with pytest.raises(RateLimitError) as exc_info:
        client.add_reaction("C1", "1710471600.000100", "one")

    assert exc_info.value.retry_after == 7


@pytest.mark.parametrize(
    "error",
    [
        URLError("[Errno 111] Connection refused"),
        TimeoutError("The read operation timed out"),
    ],
)
def test_network_errors_are_translated(error: Exception) -> None:
    stub = StubWebClient()
    stub.raise_error = error
    client = SlackClient(bot_token="xoxb-test", client=stub)

    with pytest.raises(SlackAPIError, match="Failed to post message"):
        client.post_message("C1", "hello")
    with pytest.raises(SlackAPIError, match="Failed to react one"):
        client.add_reaction("C1", "1710471600.000100", "one")
    with pytest.raises(SlackAPIError, match="Failed to fetch user U2"):
        client.get_user_profile("U2")
