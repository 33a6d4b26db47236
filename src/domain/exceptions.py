"""Custom exception hierarchy for the token bot.

Following error taxonomy: retryable, non-retryable, rate-limit.
Policy denials (quota, self-give, bot receiver) are outcomes, not errors.
"""


class TokenBotError(Exception):
    """Base exception for all application errors."""

    pass


class RetryableError(TokenBotError):
    """Errors caused by a flaky collaborator (network, temporary failures)."""

    pass


class NonRetryableError(TokenBotError):
    """Errors that will not go away by trying again."""

    pass


class ProtocolError(NonRetryableError):
    """Inbound webhook body could not be read, parsed or verified."""

    pass


class DataIntegrityError(NonRetryableError):
    """A ledger row has an unexpected shape, date or total."""

    def __init__(self, message: str, row: list[str] | None = None) -> None:
        self.row = row
        super().__init__(message)


class RateLimitError(RetryableError):
    """API rate limit exceeded."""

    def __init__(self, retry_after: int | None = None) -> None:
        """Initialize with optional retry_after seconds."""
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after: {retry_after}s")


class SlackAPIError(RetryableError):
    """Slack API communication errors."""

    pass


class LedgerError(RetryableError):
    """Spreadsheet read/append errors."""

    pass
