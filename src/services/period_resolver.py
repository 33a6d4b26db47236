"""Report period to date range resolution.

All dates are calendar dates in the bot's operating time zone; the range end
is always "today".
"""

from datetime import date, datetime, timedelta

import pytz

from src.domain.models import ReportPeriod


def local_today(now: datetime, tz_name: str) -> date:
    """Project an aware instant into the operating zone and take its date.

    Example:
        >>> local_today(datetime(2024, 3, 14, 20, 0, tzinfo=pytz.UTC), "Asia/Ho_Chi_Minh")
        datetime.date(2024, 3, 15)
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return now.astimezone(pytz.timezone(tz_name)).date()


def current_sprint_start(today: date, anchor: date, duration_days: int) -> date:
    """First day of the sprint containing ``today``.

    Sprints are back-to-back windows of ``duration_days`` starting at
    ``anchor``; dates before the anchor fall in earlier sprints.
    """
    if duration_days <= 0:
        raise ValueError("duration_days must be positive")
    elapsed = (today - anchor).days
    return anchor + timedelta(days=(elapsed // duration_days) * duration_days)


def resolve_period(
    period: ReportPeriod,
    today: date,
    *,
    sprint_start: date,
    sprint_duration_days: int,
) -> tuple[date, date]:
    """Inclusive ``(start, end)`` dates for a report period.

    Example:
        >>> resolve_period(ReportPeriod.MONTH, date(2024, 3, 15),
        ...                sprint_start=date(2024, 1, 1), sprint_duration_days=14)
        (datetime.date(2024, 3, 1), datetime.date(2024, 3, 15))
    """
    if period == ReportPeriod.DAY:
        start = today
    elif period == ReportPeriod.WEEK:
        start = today - timedelta(days=today.weekday())
    elif period == ReportPeriod.SPRINT:
        start = current_sprint_start(today, sprint_start, sprint_duration_days)
    elif period == ReportPeriod.MONTH:
        start = today.replace(day=1)
    elif period == ReportPeriod.YEAR:
        start = today.replace(month=1, day=1)
    else:
        raise ValueError(f"Unknown report period: {period}")
    return start, today


__all__ = ["current_sprint_start", "local_today", "resolve_period"]
