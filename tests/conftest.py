"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from src.domain.exceptions import LedgerError, SlackAPIError
from src.domain.models import BotConfig, UserProfile

GIVING_RANGE = "Pivot Table 1!A3:D"
RECEIVING_RANGE = "Pivot Table 2!A3:D"


class StubMessaging:
    """In-memory MessagingPort recording every call."""

    def __init__(self, profiles: dict[str, UserProfile] | None = None) -> None:
        self.profiles = dict(profiles or {})
        self.posted: list[tuple[str, str]] = []
        self.reactions: list[tuple[str, str, str]] = []
        self.profile_requests: list[str] = []
        self.fail_reactions: set[str] = set()
        self.fail_post = False

    def post_message(self, channel_id: str, text: str) -> tuple[str, str]:
        if self.fail_post:
            raise SlackAPIError("chat_postMessage failed: channel_not_found")
        self.posted.append((channel_id, text))
        return channel_id, f"{len(self.posted)}.000100"

    def add_reaction(self, channel_id: str, message_ts: str, name: str) -> None:
        if name in self.fail_reactions:
            raise SlackAPIError(f"reactions_add failed for {name}")
        self.reactions.append((channel_id, message_ts, name))

    def get_user_profile(self, user_id: str) -> UserProfile:
        self.profile_requests.append(user_id)
        profile = self.profiles.get(user_id)
        if profile is None:
            raise SlackAPIError(f"users_info failed: user_not_found ({user_id})")
        return profile

    @property
    def reaction_names(self) -> list[str]:
        return [name for _, _, name in self.reactions]


class StubLedger:
    """In-memory LedgerPort keyed by range name."""

    def __init__(self, ranges: dict[str, list[list[str]]] | None = None) -> None:
        self.ranges = {name: list(rows) for name, rows in (ranges or {}).items()}
        self.appended: list[list[Any]] = []
        self.read_calls: list[str] = []
        self.fail_reads = False
        self.fail_appends = False

    def read_rows(self, range_name: str) -> list[list[str]]:
        self.read_calls.append(range_name)
        if self.fail_reads:
            raise LedgerError(f"Unable to read {range_name}")
        return [list(row) for row in self.ranges.get(range_name, [])]

    def append_row(self, values: list[str | int]) -> None:
        if self.fail_appends:
            raise LedgerError("Unable to append row")
        self.appended.append(list(values))


class SyncJobRunner:
    """JobRunnerPort running each job inline at submit time."""

    def __init__(self, handlers: dict[str, Any] | None = None) -> None:
        self.handlers = dict(handlers or {})
        self.submitted: list[tuple[str, dict[str, object]]] = []
        self.results: dict[str, dict[str, object] | None] = {}

    def submit(self, name: str, params: dict[str, object]) -> str:
        job_id = f"job-{len(self.submitted) + 1}"
        self.submitted.append((name, dict(params)))
        handler = self.handlers.get(name)
        self.results[job_id] = handler(dict(params)) if handler else None
        return job_id

    def wait(self, timeout: float | None = None) -> bool:
        return True


def pivot_row(name: str, day: str, total: int | str) -> list[str]:
    """Summary row as Sheets returns it: name, 'DD-Mon', 'YYYY', total."""
    day_month, year = day.rsplit(" ", 1)
    return [name, day_month, year, str(total)]


@pytest.fixture
def bot_config() -> BotConfig:
    return BotConfig(
        emoji_name="taco",
        daily_limit=5,
        sprint_start=date(2024, 1, 1),
        sprint_duration_days=14,
        timezone="Asia/Ho_Chi_Minh",
        spreadsheet_url="https://docs.google.com/spreadsheets/d/abc",
        giving_summary_range=GIVING_RANGE,
        receiving_summary_range=RECEIVING_RANGE,
    )


@pytest.fixture
def alice() -> UserProfile:
    return UserProfile(id="U1", display_name="Alice Nguyen", email="alice@example.com")


@pytest.fixture
def bob() -> UserProfile:
    return UserProfile(id="U2", display_name="Bob Tran", email="bob@example.com")


@pytest.fixture
def taco_bot_user() -> UserProfile:
    return UserProfile(id="UBOT", display_name="Taco Bot", is_bot=True)


@pytest.fixture
def messaging(
    alice: UserProfile, bob: UserProfile, taco_bot_user: UserProfile
) -> StubMessaging:
    return StubMessaging({p.id: p for p in (alice, bob, taco_bot_user)})


@pytest.fixture
def ledger() -> StubLedger:
    return StubLedger()
