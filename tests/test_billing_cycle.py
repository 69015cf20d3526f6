from gymflow.services.billing_cycle import (
    add_calendar_months,
    cycle_window,
    iter_cycle_windows,
    start_of_utc_day,
)
from tests.helpers import DAY, utc


def test_add_months_clamps_to_month_end():
    assert add_calendar_months(utc(2024, 1, 31, 10), 1) == utc(2024, 2, 29, 10)
    assert add_calendar_months(utc(2023, 1, 31, 10), 1) == utc(2023, 2, 28, 10)
    assert add_calendar_months(utc(2024, 8, 31), 1) == utc(2024, 9, 30)
    assert add_calendar_months(utc(2024, 11, 15), 3) == utc(2025, 2, 15)


def test_cycles_keep_anchor_day_after_short_month():
    start = utc(2024, 1, 31, 9)
    end = start + 360 * DAY
    # February is clamped, March returns to the 31st
    assert cycle_window(start, end, utc(2024, 3, 5)) == (utc(2024, 2, 29, 9), utc(2024, 3, 31, 9))
    assert cycle_window(start, end, utc(2024, 4, 1)) == (utc(2024, 3, 31, 9), utc(2024, 4, 30, 9))


def test_cycle_preserves_time_of_day():
    start = utc(2024, 5, 3, 13, 45, 10)
    window = cycle_window(start, start + 90 * DAY, utc(2024, 6, 20))
    assert window == (utc(2024, 6, 3, 13, 45, 10), utc(2024, 7, 3, 13, 45, 10))


def test_single_month_plan_is_truncated_to_end():
    start = utc(2024, 1, 15)
    end = start + 30 * DAY  # 2024-02-14
    assert cycle_window(start, end, utc(2024, 1, 20)) == (start, end)


def test_reference_outside_subscription():
    start = utc(2024, 1, 15)
    end = start + 90 * DAY  # 2024-04-14
    assert cycle_window(start, end, start - 5 * DAY) == (start, utc(2024, 2, 15))
    assert cycle_window(start, end, end + 10 * DAY) == (utc(2024, 3, 15), end)


def test_reference_on_boundary_belongs_to_next_cycle():
    start = utc(2024, 1, 15)
    end = start + 90 * DAY
    assert cycle_window(start, end, utc(2024, 2, 15)).cycle_start == utc(2024, 2, 15)
    assert cycle_window(start, end, utc(2024, 2, 15) - 1).cycle_start == start


def test_windows_partition_subscription():
    start = utc(2024, 1, 31, 18)
    end = start + 12 * 30 * DAY
    windows = list(iter_cycle_windows(start, end))
    assert windows[0].cycle_start == start
    assert windows[-1].cycle_end == end
    for prev, nxt in zip(windows, windows[1:]):
        assert prev.cycle_end == nxt.cycle_start
    assert all(w.cycle_start < w.cycle_end for w in windows)
    assert len(windows) == 12


def test_start_of_utc_day():
    assert start_of_utc_day(utc(2024, 3, 10, 23, 59, 59)) == utc(2024, 3, 10)
    assert start_of_utc_day(utc(2024, 3, 10)) == utc(2024, 3, 10)
