"""
Time Window Calculator

Pure functions mapping an instant to the hourly, daily or subscription-month
window that contains it. All arithmetic is done in UTC; naive datetimes are
taken to be UTC already.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

from .models.limits import PeriodType

Anchor = Optional[Union[datetime, date]]


@dataclass(frozen=True)
class TimeWindow:
    """Half-open interval [start, end)."""
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= to_utc(instant) < self.end


def to_utc(instant: datetime) -> datetime:
    """Return an aware UTC datetime for the given instant."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def hour_window(now: datetime) -> TimeWindow:
    """Window of the current UTC hour."""
    start = to_utc(now).replace(minute=0, second=0, microsecond=0)
    return TimeWindow(start=start, end=start + timedelta(hours=1))


def day_window(now: datetime) -> TimeWindow:
    """Window of the current UTC calendar day."""
    start = to_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return TimeWindow(start=start, end=start + timedelta(days=1))


def _shift_month(year: int, month: int, offset: int) -> tuple:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _month_boundary(year: int, month: int, anchor_day: int) -> datetime:
    """Start of the subscription month beginning in (year, month).

    The boundary day is clamped to the month's last day, so an anchor on the
    31st gives the 28th or 29th in February.
    """
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, min(anchor_day, last_day), tzinfo=timezone.utc)


def _anchor_day(subscription_anchor: Union[datetime, date]) -> int:
    if isinstance(subscription_anchor, datetime):
        return to_utc(subscription_anchor).day
    return subscription_anchor.day


def subscription_month_window(subscription_anchor: Anchor, now: datetime) -> TimeWindow:
    """
    Window of the current subscription month.

    Subscription months start at 00:00 UTC on the anchor's day-of-month. When
    there is no anchor, calendar months are used instead.

    Args:
        subscription_anchor: When the subscription started, or None
        now: Reference instant

    Returns:
        TimeWindow whose start <= now < end
    """
    now = to_utc(now)
    anchor_day = 1 if subscription_anchor is None else _anchor_day(subscription_anchor)

    boundary = _month_boundary(now.year, now.month, anchor_day)
    if boundary <= now:
        start = boundary
        end = _month_boundary(*_shift_month(now.year, now.month, 1), anchor_day)
    else:
        start = _month_boundary(*_shift_month(now.year, now.month, -1), anchor_day)
        end = boundary
    return TimeWindow(start=start, end=end)


def window_for(period_type: PeriodType, now: datetime, subscription_anchor: Anchor = None) -> TimeWindow:
    """Window of the given period type containing now."""
    if period_type is PeriodType.HOURLY:
        return hour_window(now)
    if period_type is PeriodType.DAILY:
        return day_window(now)
    return subscription_month_window(subscription_anchor, now)


def window_for_start(period_type: PeriodType, period_start: datetime,
                     subscription_anchor: Anchor = None) -> TimeWindow:
    """Window that begins at a stored period start.

    Used to derive the end of historical windows. The end of a monthly
    window follows the current anchor.
    """
    window = window_for(period_type, period_start, subscription_anchor)
    return TimeWindow(start=to_utc(period_start), end=window.end)
