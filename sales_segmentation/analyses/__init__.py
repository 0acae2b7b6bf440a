"""Secondary analyses over the transaction store.

1. Temporal aggregation - revenue by month, weekday and hour of day
2. Holiday analysis - revenue lift around fixed calendar anchors
"""

from .holidays import (
    DEFAULT_HOLIDAYS,
    HolidayAnchor,
    HolidayStat,
    analyze_holidays,
)
from .temporal import (
    WEEKDAY_NAMES,
    TemporalBuckets,
    aggregate_by_hour,
    aggregate_by_month,
    aggregate_by_weekday,
    aggregate_temporal,
)

__all__ = [
    # Holidays
    "DEFAULT_HOLIDAYS",
    "HolidayAnchor",
    "HolidayStat",
    "analyze_holidays",
    # Temporal
    "WEEKDAY_NAMES",
    "TemporalBuckets",
    "aggregate_by_hour",
    "aggregate_by_month",
    "aggregate_by_weekday",
    "aggregate_temporal",
]
