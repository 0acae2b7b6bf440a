"""Revenue by calendar month, weekday and hour of day.

Each transaction contributes its revenue to one month bucket, one weekday
bucket and one hour bucket. The weekday (0 = Sunday … 6 = Saturday) and
hour (0-23) domains are always fully materialised so charts get a stable
axis; months only appear when the data covers them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sales_segmentation.foundation.store import Transaction

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
HOURS_PER_DAY = 24


def month_key(ts: datetime) -> str:
    """``YYYY-MM`` bucket key for a timestamp."""
    return f"{ts.year:04d}-{ts.month:02d}"


def weekday_index(ts: datetime) -> int:
    """Weekday index with Sunday as 0.

    >>> weekday_index(datetime(2023, 1, 1))  # a Sunday
    0
    """
    return (ts.weekday() + 1) % 7


def _rounded(buckets: dict) -> dict:
    return {
        key: value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        for key, value in buckets.items()
    }


def aggregate_by_month(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum revenue per ``YYYY-MM``, ordered chronologically."""
    buckets: dict[str, Decimal] = {}
    for txn in transactions:
        key = month_key(txn.timestamp)
        buckets[key] = buckets.get(key, Decimal("0")) + txn.revenue
    return _rounded(dict(sorted(buckets.items())))


def aggregate_by_weekday(transactions: Iterable[Transaction]) -> dict[int, Decimal]:
    """Sum revenue per weekday index (0 = Sunday); all seven days present."""
    buckets = {idx: Decimal("0") for idx in range(len(WEEKDAY_NAMES))}
    for txn in transactions:
        buckets[weekday_index(txn.timestamp)] += txn.revenue
    return _rounded(buckets)


def aggregate_by_hour(transactions: Iterable[Transaction]) -> dict[int, Decimal]:
    """Sum revenue per hour of day; all 24 hours present."""
    buckets = {hour: Decimal("0") for hour in range(HOURS_PER_DAY)}
    for txn in transactions:
        buckets[txn.timestamp.hour] += txn.revenue
    return _rounded(buckets)


@dataclass(frozen=True)
class TemporalBuckets:
    """Revenue buckets for the three temporal views."""

    monthly: dict[str, Decimal]
    weekday: dict[int, Decimal]
    hourly: dict[int, Decimal]

    def as_dict(self) -> dict[str, object]:
        return {
            "monthly": [
                {"month": month, "revenue": float(revenue)}
                for month, revenue in self.monthly.items()
            ],
            "weekday": [
                {"weekday": idx, "name": WEEKDAY_NAMES[idx], "revenue": float(revenue)}
                for idx, revenue in self.weekday.items()
            ],
            "hourly": [
                {"hour": hour, "revenue": float(revenue)}
                for hour, revenue in self.hourly.items()
            ],
        }


def aggregate_temporal(transactions: Iterable[Transaction]) -> TemporalBuckets:
    """Compute month, weekday and hour buckets for a transaction set."""
    transactions = list(transactions)
    return TemporalBuckets(
        monthly=aggregate_by_month(transactions),
        weekday=aggregate_by_weekday(transactions),
        hourly=aggregate_by_hour(transactions),
    )
