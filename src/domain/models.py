"""Domain models for the token bot.

All models use Pydantic v2 for validation. Values that cross component
boundaries are frozen.
"""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Literal

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReportPeriod(str, Enum):
    """Leaderboard time window."""

    DAY = "day"
    WEEK = "week"
    SPRINT = "sprint"
    MONTH = "month"
    YEAR = "year"


class QuotaReason(str, Enum):
    """Why a quota decision granted less than requested."""

    NONE = "none"
    ALREADY_AT_LIMIT = "already_at_limit"
    PARTIAL_CAP = "partial_cap"


class TransferOutcome(str, Enum):
    """Terminal state of one candidate transfer line."""

    NO_TOKEN = "no_token"
    NO_RECEIVER = "no_receiver"
    LOOKUP_FAILED = "lookup_failed"
    BOT_RECEIVER = "bot_receiver"
    SELF_GIVE = "self_give"
    QUOTA_UNAVAILABLE = "quota_unavailable"
    DENIED_AT_LIMIT = "denied_at_limit"
    DENIED_ZERO = "denied_zero"
    RECORDED = "recorded"


class BotConfig(BaseModel):
    """Immutable runtime configuration injected into every component."""

    model_config = ConfigDict(frozen=True)

    emoji_name: str = Field(..., min_length=1, description="Token emoji, no colons")
    daily_limit: int = Field(..., gt=0, description="Tokens a user may give per day")
    emoji_cap: int | None = Field(
        default=None, ge=1, description="Per-message cap before quota (None = off)"
    )
    sprint_start: date = Field(..., description="Anchor date of sprint numbering")
    sprint_duration_days: int = Field(..., gt=0, description="Sprint length in days")
    timezone: str = Field(default="Asia/Ho_Chi_Minh", description="Operating zone")
    spreadsheet_url: str = Field(default="", description="Shareable ledger URL")
    giving_summary_range: str = Field(default="Pivot Table 1!A3:D")
    receiving_summary_range: str = Field(default="Pivot Table 2!A3:D")
    mention_prefix_length: int = Field(default=12, ge=0)
    serialize_giver_quota: bool = Field(default=True)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown time zone: {value}")
        return value

    @property
    def emoji_marker(self) -> str:
        """Emoji in message form, e.g. ``:taco:``."""
        return f":{self.emoji_name}:"


class UserProfile(BaseModel):
    """Subset of a Slack user profile needed for transfers."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    email: str | None = None
    is_bot: bool = False


class ChallengeVerification(BaseModel):
    """Slack ``url_verification`` handshake."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["challenge"] = "challenge"
    challenge: str


class MentionCommand(BaseModel):
    """``app_mention`` event: someone addressed the bot."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["mention"] = "mention"
    actor_id: str
    raw_text: str
    channel_id: str


class PlainMessage(BaseModel):
    """Channel ``message`` event that may carry transfers."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["message"] = "message"
    author_id: str
    raw_text: str
    channel_id: str
    message_ts: str
    subtype: str | None = None
    edited: bool = False

    @property
    def occurred_at(self) -> datetime:
        """Message time as an aware UTC datetime (Slack ts is epoch seconds)."""
        return datetime.fromtimestamp(float(self.message_ts), tz=UTC)


class UnrecognizedEvent(BaseModel):
    """Any callback the bot does not act on."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unrecognized"] = "unrecognized"
    event_type: str


InboundEvent = ChallengeVerification | MentionCommand | PlainMessage | UnrecognizedEvent


class TransferIntent(BaseModel):
    """One parsed gift: giver hands ``quantity`` tokens to receiver."""

    model_config = ConfigDict(frozen=True)

    giver_id: str
    receiver_id: str
    quantity: int = Field(..., ge=1)
    source_message_ts: str
    channel_id: str
    occurred_at: datetime


class LedgerRow(BaseModel):
    """One (subject, day) row of a pivot summary sheet."""

    model_config = ConfigDict(frozen=True)

    subject_name: str
    day: date
    total: int = Field(..., ge=0)


class QuotaDecision(BaseModel):
    """Result of applying the daily limit to a requested amount."""

    model_config = ConfigDict(frozen=True)

    granted: int = Field(..., ge=0)
    denied: bool
    reason: QuotaReason = QuotaReason.NONE


class LeaderboardEntry(BaseModel):
    """Aggregated total for one subject over a report window."""

    model_config = ConfigDict(frozen=True)

    subject_name: str
    total: int


class HelpCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["help"] = "help"


class ReportCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["report"] = "report"
    period: ReportPeriod = ReportPeriod.DAY


class InvalidCommand(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["invalid"] = "invalid"
    text: str


Command = HelpCommand | ReportCommand | InvalidCommand


class WebhookResponse(BaseModel):
    """Status, body and content type to send back to Slack."""

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str = ""
    content_type: str = "text/plain"

    @field_validator("status_code")
    @classmethod
    def _valid_status(cls, value: int) -> int:
        if not 100 <= value <= 599:
            raise ValueError(f"invalid HTTP status: {value}")
        return value
