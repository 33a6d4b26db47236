"""Daily giving quota policy.

Pure decision function; the caller supplies what the ledger says the giver
has already given today.
"""

from src.domain.models import QuotaDecision, QuotaReason


def decide(
    already_given: int | None, requested: int, daily_limit: int
) -> QuotaDecision:
    """Decide how many of ``requested`` tokens may be given now.

    Args:
        already_given: Giver's recorded total for today, or None when the
            ledger has no row for the giver today
        requested: Tokens asked for in this transfer (>= 1)
        daily_limit: Maximum tokens per giver per day (> 0)

    Returns:
        QuotaDecision with ``already_given + granted <= daily_limit``

    Example:
        >>> decide(4, 3, 5).granted
        1
        >>> decide(5, 1, 5).reason
        <QuotaReason.ALREADY_AT_LIMIT: 'already_at_limit'>
    """
    if daily_limit <= 0:
        raise ValueError("daily_limit must be positive")
    if requested < 0:
        raise ValueError("requested must not be negative")

    if already_given is None:
        already_given = 0
        requested_now = min(requested, daily_limit)
    else:
        requested_now = requested

    if already_given >= daily_limit:
        return QuotaDecision(
            granted=0, denied=True, reason=QuotaReason.ALREADY_AT_LIMIT
        )

    granted = min(requested_now, daily_limit - already_given)
    reason = QuotaReason.PARTIAL_CAP if granted < requested else QuotaReason.NONE
    return QuotaDecision(granted=granted, denied=granted == 0, reason=reason)


__all__ = ["decide"]
