"""Pandas DataFrame adapters for customer profiles and aggregates."""

from datetime import datetime
from typing import Dict, Mapping, Optional, Sequence

import pandas as pd  # type: ignore

from sales_segmentation.analyses.holidays import HolidayStat
from sales_segmentation.analyses.temporal import WEEKDAY_NAMES, TemporalBuckets
from sales_segmentation.foundation.profiles import CustomerProfile
from sales_segmentation.foundation.rfm import round_monetary
from sales_segmentation.foundation.segments import GridCell
from sales_segmentation.pipeline import AnalysisConfig, run_analysis
from .transactions import dataframe_to_rows
from ._utils import decimal_to_float, records_frame

PROFILE_COLUMNS = [
    "customer_id",
    "recency_days",
    "frequency",
    "monetary",
    "r_score",
    "f_score",
    "m_score",
    "rfm_score",
    "segment",
    "cluster",
    "country",
]

HOLIDAY_COLUMNS = [
    "name",
    "anchor_date",
    "window_revenue",
    "order_count",
    "average_daily_revenue",
    "lift_pct",
]

GRID_COLUMNS = ["r_score", "f_score", "segment", "customer_count"]


def profiles_to_dataframe(profiles: Sequence[CustomerProfile]) -> pd.DataFrame:
    """Convert customer profiles to a DataFrame.

    Args:
        profiles: Sequence of CustomerProfile objects

    Returns:
        DataFrame with one row per customer, sorted by customer_id. Segment
        and cluster columns hold their string labels.

    Example:
        >>> profiles = build_customer_profiles(store, datetime(2023, 12, 31))
        >>> df = profiles_to_dataframe(profiles)
        >>> df.groupby("segment")["monetary"].sum()
    """
    rows = [
        {
            "customer_id": p.customer_id,
            "recency_days": p.recency_days,
            "frequency": p.frequency,
            "monetary": decimal_to_float(round_monetary(p.monetary)),
            "r_score": p.r_score,
            "f_score": p.f_score,
            "m_score": p.m_score,
            "rfm_score": p.rfm_score,
            "segment": p.segment.value,
            "cluster": p.cluster.value,
            "country": p.country,
        }
        for p in profiles
    ]
    df = records_frame(rows, PROFILE_COLUMNS)
    return df.sort_values("customer_id").reset_index(drop=True)


def temporal_to_dataframes(buckets: TemporalBuckets) -> Dict[str, pd.DataFrame]:
    """Convert temporal buckets to three chart-ready DataFrames.

    Returns:
        Mapping with keys ``monthly`` (month, revenue), ``weekday``
        (weekday, name, revenue) and ``hourly`` (hour, revenue)
    """
    monthly = records_frame(
        [
            {"month": month, "revenue": decimal_to_float(revenue)}
            for month, revenue in buckets.monthly.items()
        ],
        columns=["month", "revenue"],
    )
    weekday = records_frame(
        [
            {
                "weekday": idx,
                "name": WEEKDAY_NAMES[idx],
                "revenue": decimal_to_float(revenue),
            }
            for idx, revenue in buckets.weekday.items()
        ],
        columns=["weekday", "name", "revenue"],
    )
    hourly = records_frame(
        [
            {"hour": hour, "revenue": decimal_to_float(revenue)}
            for hour, revenue in buckets.hourly.items()
        ],
        columns=["hour", "revenue"],
    )
    return {"monthly": monthly, "weekday": weekday, "hourly": hourly}


def holidays_to_dataframe(stats: Sequence[HolidayStat]) -> pd.DataFrame:
    """Convert holiday statistics to a DataFrame, keeping their order."""
    rows = [
        {
            "name": s.name,
            "anchor_date": s.anchor_date,
            "window_revenue": decimal_to_float(s.window_revenue),
            "order_count": s.order_count,
            "average_daily_revenue": decimal_to_float(s.average_daily_revenue),
            "lift_pct": decimal_to_float(s.lift_pct),
        }
        for s in stats
    ]
    return records_frame(rows, HOLIDAY_COLUMNS)


def grid_to_dataframe(cells: Sequence[GridCell]) -> pd.DataFrame:
    """Convert RFM grid cells to a long-form DataFrame.

    Args:
        cells: Grid cells as returned by rfm_grid

    Returns:
        DataFrame with columns r_score, f_score, segment and customer_count,
        in grid order

    Example:
        >>> df = grid_to_dataframe(rfm_grid(profiles))
        >>> df.pivot(index="r_score", columns="f_score", values="customer_count")
    """
    rows = [
        {
            "r_score": cell.r_score,
            "f_score": cell.f_score,
            "segment": cell.segment.value,
            "customer_count": cell.customer_count,
        }
        for cell in cells
    ]
    return records_frame(rows, GRID_COLUMNS)


def analyze_dataframe(
    df: pd.DataFrame,
    now: datetime,
    field_mapping: Optional[Mapping[str, str]] = None,
    config: Optional[AnalysisConfig] = None,
) -> pd.DataFrame:
    """Run the full analysis on a source DataFrame and return profiles.

    Convenience function combining conversion, analysis and conversion back.

    Example:
        >>> sales_df = pd.read_csv("sales.csv")
        >>> profiles_df = analyze_dataframe(sales_df, datetime(2023, 12, 31))
        >>> profiles_df.to_csv("customers.csv", index=False)
    """
    analysis = run_analysis(dataframe_to_rows(df), now, field_mapping, config)
    return profiles_to_dataframe(analysis.profiles)
