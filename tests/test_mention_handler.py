"""Tests for help and report replies to app mentions."""

from datetime import UTC, datetime

from src.domain.models import BotConfig, MentionCommand
from src.domain.reaction_constants import INVALID_COMMAND_MESSAGE, NO_RECORD_MESSAGE
from src.services.ledger_query import LedgerQueryEngine
from src.use_cases.handle_mention import MentionCommandHandler
from tests.conftest import RECEIVING_RANGE, StubLedger, StubMessaging, pivot_row

FIXED_NOW = datetime(2024, 3, 15, 3, 0, tzinfo=UTC)


def _handler(
    config: BotConfig, messaging: StubMessaging, ledger: StubLedger
) -> MentionCommandHandler:
    return MentionCommandHandler(
        config,
        messaging,
        LedgerQueryEngine(ledger, config.timezone),
        clock=lambda: FIXED_NOW,
    )


def _mention(body: str) -> MentionCommand:
    return MentionCommand(actor_id="U1", raw_text=f"<@U0BOT1234>{body}", channel_id="C1")


def test_month_report_covers_first_to_today(
    bot_config: BotConfig, messaging: StubMessaging
) -> None:
    """On the 15th, a month report spans the 1st to the 15th only."""
    ledger = StubLedger(
        {
            RECEIVING_RANGE: [
                pivot_row("Bob Tran", "02-Mar 2024", 3),
                pivot_row("Alice Nguyen", "15-Mar 2024", 5),
                pivot_row("Bob Tran", "20-Mar 2024", 9),
                pivot_row("Carol Le", "29-Feb 2024", 8),
            ]
        }
    )

    reply = _handler(bot_config, messaging, ledger).handle(_mention(" report month"))

    assert reply == (
        "Result from 2024-03-01 to 2024-03-15:\n"
        "*Alice Nguyen* (5) :crown:\n"
        "*Bob Tran* (3) :rocket:"
    )
    assert messaging.posted == [("C1", reply)]
    assert ledger.read_calls == [RECEIVING_RANGE]


def test_report_without_rows_says_no_record(
    bot_config: BotConfig, messaging: StubMessaging, ledger: StubLedger
) -> None:
    reply = _handler(bot_config, messaging, ledger).handle(_mention(" report"))

    assert reply == NO_RECORD_MESSAGE
    assert messaging.posted == [("C1", NO_RECORD_MESSAGE)]


def test_help_posts_greeting(
    bot_config: BotConfig, messaging: StubMessaging, ledger: StubLedger
) -> None:
    reply = _handler(bot_config, messaging, ledger).handle(_mention(""))

    assert reply is not None
    assert ":taco:" in reply
    assert bot_config.spreadsheet_url in reply
    assert ledger.read_calls == []


def test_invalid_command_posts_usage(
    bot_config: BotConfig, messaging: StubMessaging, ledger: StubLedger
) -> None:
    reply = _handler(bot_config, messaging, ledger).handle(_mention(" dance"))

    assert reply == INVALID_COMMAND_MESSAGE
    assert messaging.posted == [("C1", INVALID_COMMAND_MESSAGE)]


def test_corrupt_summary_posts_nothing(
    bot_config: BotConfig, messaging: StubMessaging
) -> None:
    ledger = StubLedger({RECEIVING_RANGE: [["Bob Tran", "sometime", "", "3"]]})

    reply = _handler(bot_config, messaging, ledger).handle(_mention(" report week"))

    assert reply is None
    assert messaging.posted == []


def test_post_failure_returns_none(
    bot_config: BotConfig, messaging: StubMessaging, ledger: StubLedger
) -> None:
    messaging.fail_post = True

    assert _handler(bot_config, messaging, ledger).handle(_mention(" help")) is None
