"""Calendar-month billing cycle arithmetic.

Pure functions on integer epoch seconds (UTC). A cycle is anchored to the
day-of-month of the subscription start and keeps its time-of-day; when the
target month is shorter than the anchor day the boundary lands on the last
day of that month (Jan 31 -> Feb 29 -> Mar 31).
"""
from __future__ import annotations

import calendar
from datetime import datetime, timezone
from typing import Iterator, NamedTuple

SECONDS_PER_DAY = 86400


class CycleWindow(NamedTuple):
    cycle_start: int
    cycle_end: int


def _to_datetime(epoch: int) -> datetime:
    return datetime.fromtimestamp(int(epoch), timezone.utc)


def _shift_months(base: datetime, months: int, anchor_day: int) -> datetime:
    total = base.month - 1 + months
    year = base.year + total // 12
    month = total % 12 + 1
    day = min(anchor_day, calendar.monthrange(year, month)[1])
    return base.replace(year=year, month=month, day=day)


def add_calendar_months(epoch: int, months: int) -> int:
    """Return ``epoch`` moved by ``months`` calendar months, day clamped."""
    base = _to_datetime(epoch)
    return int(_shift_months(base, months, base.day).timestamp())


def cycle_window(subscription_start: int, subscription_end: int, reference: int) -> CycleWindow:
    """Return the billing cycle of a subscription that contains ``reference``.

    Cycle ``k`` spans ``[start + k months, start + k + 1 months)``, clamped to
    ``subscription_end``. References before the start map to the first cycle,
    references at or after the end map to the last one.
    """
    start = int(subscription_start)
    end = max(int(subscription_end), start + 1)
    reference = max(int(reference), start)

    anchor = _to_datetime(start)

    def boundary(index: int) -> int:
        return int(_shift_months(anchor, index, anchor.day).timestamp())

    index = 0
    cycle_start = start
    cycle_end = min(boundary(1), end)
    while cycle_end <= reference and cycle_end < end:
        index += 1
        cycle_start = boundary(index)
        cycle_end = min(boundary(index + 1), end)

    if cycle_end <= cycle_start:
        cycle_end = min(cycle_start + SECONDS_PER_DAY, end)

    return CycleWindow(cycle_start, cycle_end)


def iter_cycle_windows(subscription_start: int, subscription_end: int) -> Iterator[CycleWindow]:
    """Yield every cycle window of a subscription in order."""
    end = int(subscription_end)
    window = cycle_window(subscription_start, end, subscription_start)
    yield window
    while window.cycle_end < end:
        window = cycle_window(subscription_start, end, window.cycle_end)
        yield window


def start_of_utc_day(epoch: int) -> int:
    epoch = int(epoch)
    return epoch - epoch % SECONDS_PER_DAY


__all__ = [
    "SECONDS_PER_DAY",
    "CycleWindow",
    "add_calendar_months",
    "cycle_window",
    "iter_cycle_windows",
    "start_of_utc_day",
]
