"""Holiday revenue lift.

For each calendar anchor (a named month/day) the analyzer sums revenue and
order counts over a window of three days either side of the anchor and
compares the window's average daily revenue with the dataset-wide average
over days that had any activity.

All anchors are evaluated in the year of the most recent transaction, so a
dataset spanning several years only has its latest year's holidays
measured.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from sales_segmentation.foundation.store import Transaction

logger = logging.getLogger(__name__)

PERCENTAGE_PRECISION = Decimal("0.01")

# Days either side of the anchor date, so the window spans 2 * 3 + 1 = 7 days
HOLIDAY_WINDOW_DAYS = 3


@dataclass(frozen=True)
class HolidayAnchor:
    """A named calendar date evaluated every year."""

    name: str
    month: int
    day: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month for holiday {self.name!r}: {self.month}")
        # 2000 is a leap year, so Feb 29 is accepted here
        if not 1 <= self.day <= calendar.monthrange(2000, self.month)[1]:
            raise ValueError(f"Invalid day for holiday {self.name!r}: {self.day}")

    def in_year(self, year: int) -> date:
        """Anchor date in ``year``; Feb 29 falls back to Feb 28 in common years."""
        last_day = calendar.monthrange(year, self.month)[1]
        return date(year, self.month, min(self.day, last_day))


DEFAULT_HOLIDAYS: tuple[HolidayAnchor, ...] = (
    HolidayAnchor("New Year", 1, 1),
    HolidayAnchor("Valentine's Day", 2, 14),
    HolidayAnchor("International Women's Day", 3, 8),
    HolidayAnchor("Labour Day", 5, 1),
    HolidayAnchor("Knowledge Day", 9, 1),
    HolidayAnchor("Halloween", 10, 31),
    # Fixed approximation; the real date moves with Thanksgiving
    HolidayAnchor("Black Friday", 11, 29),
    HolidayAnchor("Christmas", 12, 25),
)


@dataclass(frozen=True)
class HolidayStat:
    """Revenue statistics for one holiday window.

    Attributes
    ----------
    name:
        Holiday name
    anchor_date:
        Holiday date in the evaluated year
    window_revenue:
        Revenue from anchor - 3 days through anchor + 3 days
    order_count:
        Transactions inside the window
    average_daily_revenue:
        window_revenue spread over the window length (7 days)
    lift_pct:
        Percentage deviation of average_daily_revenue from the dataset-wide
        average daily revenue; 0 when the dataset has no revenue
    """

    name: str
    anchor_date: date
    window_revenue: Decimal
    order_count: int
    average_daily_revenue: Decimal
    lift_pct: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "anchor_date": self.anchor_date.isoformat(),
            "window_revenue": float(self.window_revenue),
            "order_count": self.order_count,
            "average_daily_revenue": float(self.average_daily_revenue),
            "lift_pct": float(self.lift_pct),
        }


def _daily_totals(
    transactions: Iterable[Transaction],
) -> tuple[dict[date, Decimal], dict[date, int]]:
    revenue: dict[date, Decimal] = {}
    orders: dict[date, int] = {}
    for txn in transactions:
        day = txn.timestamp.date()
        revenue[day] = revenue.get(day, Decimal("0")) + txn.revenue
        orders[day] = orders.get(day, 0) + 1
    return revenue, orders


def average_daily_revenue(daily_revenue: dict[date, Decimal]) -> Decimal:
    """Total revenue divided by the number of days with any activity."""
    if not daily_revenue:
        return Decimal("0")
    return sum(daily_revenue.values(), Decimal("0")) / len(daily_revenue)


def analyze_holidays(
    transactions: Iterable[Transaction],
    anchors: Sequence[HolidayAnchor] = DEFAULT_HOLIDAYS,
    *,
    window_days: int = HOLIDAY_WINDOW_DAYS,
    fallback_year: int | None = None,
) -> list[HolidayStat]:
    """Compute revenue, orders and lift around each holiday anchor.

    Parameters
    ----------
    transactions:
        Transaction store for the run
    anchors:
        Holidays to evaluate
    window_days:
        Days included on each side of the anchor
    fallback_year:
        Year used when there are no transactions to infer it from. Defaults
        to the current year.

    Returns
    -------
    list[HolidayStat]
        One entry per anchor, sorted by window revenue (highest first).

    Examples
    --------
    >>> from datetime import datetime
    >>> txn = Transaction("C1", datetime(2023, 1, 1, 10), Decimal("1"), Decimal("100"))
    >>> stats = analyze_holidays([txn], [HolidayAnchor("New Year", 1, 1)])
    >>> stats[0].window_revenue, stats[0].order_count, stats[0].lift_pct
    (Decimal('100.00'), 1, Decimal('-85.71'))
    """
    if window_days < 0:
        raise ValueError(f"window_days cannot be negative: {window_days}")

    daily_revenue, daily_orders = _daily_totals(transactions)
    global_average = average_daily_revenue(daily_revenue)
    window_length = 2 * window_days + 1

    if daily_revenue:
        year = max(daily_revenue).year
    elif fallback_year is not None:
        year = fallback_year
    else:
        year = date.today().year

    stats: list[HolidayStat] = []
    for anchor in anchors:
        anchor_date = anchor.in_year(year)
        window = [
            anchor_date + timedelta(days=offset)
            for offset in range(-window_days, window_days + 1)
        ]
        revenue = sum(
            (daily_revenue.get(day, Decimal("0")) for day in window), Decimal("0")
        )
        orders = sum(daily_orders.get(day, 0) for day in window)
        window_average = revenue / window_length
        if global_average > 0:
            lift = (window_average - global_average) / global_average * 100
        else:
            lift = Decimal("0")

        stats.append(
            HolidayStat(
                name=anchor.name,
                anchor_date=anchor_date,
                window_revenue=revenue.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                order_count=orders,
                average_daily_revenue=window_average.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
                lift_pct=lift.quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP),
            )
        )

    logger.debug(f"Evaluated {len(stats)} holiday windows for {year}")
    return sorted(stats, key=lambda stat: stat.window_revenue, reverse=True)
