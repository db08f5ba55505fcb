"""Daily pain trend derived from raw entries."""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal

from dateutil.relativedelta import relativedelta

from pain_tracker.core.exceptions import BadRequestException
from pain_tracker.schemas.pain_entries import PainEntryResponse, TimeRange

DEFAULT_TIME_RANGE: TimeRange = "30d"
_RANGE_OFFSETS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": relativedelta(months=3),
}
_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of calendar days. ``start > end`` matches nothing."""

    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class TrendPoint:
    date: date
    label: str
    pain_level: float


def format_day_label(day: date) -> str:
    """Short chart label such as ``Jan 1``."""
    return f"{day:%b} {day.day}"


def round_mean(total: int, count: int) -> float:
    """Mean rounded to one decimal place, halves away from zero."""
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def resolve_window(
    time_range: TimeRange,
    today: date,
    start: date | None = None,
    end: date | None = None,
) -> DateWindow:
    """
    Turn a named range into a concrete window ending today.

    Args:
        time_range: ``7d``, ``30d``, ``90d`` (three calendar months) or ``custom``
        today: Last day of the preset windows
        start: First day, required for ``custom``
        end: Last day, required for ``custom``

    Raises:
        BadRequestException: If ``custom`` is missing a bound
    """
    if time_range == "custom":
        if start is None or end is None:
            raise BadRequestException("Custom range requires both 'from' and 'to' dates")
        return DateWindow(start=start, end=end)
    return DateWindow(start=today - _RANGE_OFFSETS[time_range], end=today)


def filter_entries(
    entries: Iterable[PainEntryResponse], window: DateWindow
) -> list[PainEntryResponse]:
    """Entries observed inside the window, newest first."""
    kept = [entry for entry in entries if entry.date in window]
    return sorted(kept, key=lambda entry: entry.date, reverse=True)


def aggregate_daily_pain(
    entries: Iterable[PainEntryResponse], window: DateWindow
) -> list[TrendPoint]:
    """
    Average pain level per day for the chart.

    Entries outside the window are ignored, the rest are bucketed by calendar
    day and each bucket's mean is rounded to one decimal. The result is
    ordered by day, oldest first, and is empty when nothing falls inside the
    window (including an inverted window).
    """
    buckets: dict[date, list[int]] = defaultdict(list)
    for entry in entries:
        if entry.date in window:
            buckets[entry.date].append(entry.pain_level)

    return [
        TrendPoint(
            date=day,
            label=format_day_label(day),
            pain_level=round_mean(sum(levels), len(levels)),
        )
        for day, levels in sorted(buckets.items())
    ]
