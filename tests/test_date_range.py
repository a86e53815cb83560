from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from metric_tool.date_range import (
    DateRangeFilter,
    DateWindow,
    filter_measurements,
    resolve_window,
)
from metric_tool.model import Measurement, MeasurementType, local_time

NOW = datetime(2025, 3, 15, 10, 30, 0)


def _m(ts: datetime, value: float = 1.0) -> Measurement:
    return Measurement(value=value, timestamp=ts)


@pytest.mark.parametrize(
    ("selection", "days"),
    [
        (DateRangeFilter.LAST_7_DAYS, 7),
        (DateRangeFilter.LAST_30_DAYS, 30),
        (DateRangeFilter.LAST_90_DAYS, 90),
    ],
)
def test_lookback_windows_end_now(selection: DateRangeFilter, days: int) -> None:
    window = resolve_window(selection, now=NOW)
    assert window.end == local_time(NOW)
    assert window.start == local_time(NOW - timedelta(days=days))


def test_all_time_is_unbounded_and_keeps_everything() -> None:
    window = resolve_window(DateRangeFilter.ALL_TIME, now=NOW)
    assert window.is_unbounded
    old = _m(datetime(1970, 1, 1))
    future = _m(datetime(2999, 1, 1))
    assert filter_measurements([old, future], window) == [old, future]


def test_custom_range_normalizes_to_whole_days() -> None:
    window = resolve_window(
        DateRangeFilter.CUSTOM,
        now=NOW,
        custom_start=datetime(2025, 1, 1, 15, 45),
        custom_end=datetime(2025, 1, 2, 8, 0),
    )
    assert window.start == local_time(datetime(2025, 1, 1, 0, 0, 0))
    assert window.end == local_time(datetime(2025, 1, 2, 23, 59, 59))


def test_custom_range_end_of_day_boundary() -> None:
    window = resolve_window(
        DateRangeFilter.CUSTOM,
        now=NOW,
        custom_start=datetime(2025, 1, 1),
        custom_end=datetime(2025, 1, 2),
    )
    inside = _m(datetime(2025, 1, 2, 23, 59, 59))
    first = _m(datetime(2025, 1, 1, 0, 0, 0))
    outside = _m(datetime(2025, 1, 3, 0, 0, 0))
    before = _m(datetime(2024, 12, 31, 23, 59, 59))
    assert filter_measurements([before, first, inside, outside], window) == [
        first,
        inside,
    ]


def test_custom_range_without_end_defaults_to_now() -> None:
    window = resolve_window(
        DateRangeFilter.CUSTOM, now=NOW, custom_start=datetime(2025, 3, 1)
    )
    assert window.end == local_time(NOW)


def test_custom_range_without_start_is_unbounded() -> None:
    window = resolve_window(DateRangeFilter.CUSTOM, now=NOW)
    assert window.is_unbounded


def test_window_is_inclusive_on_both_ends() -> None:
    start = local_time(datetime(2025, 1, 1))
    end = local_time(datetime(2025, 1, 5))
    window = DateWindow(start=start, end=end)
    assert window.contains(start)
    assert window.contains(end)
    assert not window.contains(end + timedelta(seconds=1))
    assert not window.contains(start - timedelta(seconds=1))


def test_default_now_is_wall_clock() -> None:
    before = local_time(datetime.now())
    window = resolve_window(DateRangeFilter.LAST_7_DAYS)
    after = local_time(datetime.now())
    assert before <= window.end <= after


def test_filter_keeps_original_order() -> None:
    t = MeasurementType(name="Weight", unit="Lbs")
    later = Measurement(2.0, datetime(2025, 3, 14), measurement_type=t)
    earlier = Measurement(1.0, datetime(2025, 3, 10), measurement_type=t)
    window = resolve_window(DateRangeFilter.LAST_7_DAYS, now=NOW)
    assert filter_measurements([later, earlier], window) == [later, earlier]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("last7Days", DateRangeFilter.LAST_7_DAYS),
        ("LAST_30_DAYS", DateRangeFilter.LAST_30_DAYS),
        ("Last 90 Days", DateRangeFilter.LAST_90_DAYS),
        ("custom", DateRangeFilter.CUSTOM),
        ("all_time", DateRangeFilter.ALL_TIME),
    ],
)
def test_from_name_accepts_names_and_labels(
    raw: str, expected: DateRangeFilter
) -> None:
    assert DateRangeFilter.from_name(raw) is expected


def test_from_name_rejects_unknown() -> None:
    with pytest.raises(ValueError, match="Unknown date range"):
        DateRangeFilter.from_name("last year")
