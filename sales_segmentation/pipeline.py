"""End-to-end analysis run over one uploaded dataset.

``run_analysis`` normalises raw rows once, then derives every view from the
same immutable transaction store with a single reference instant, so
recency and holiday figures never drift between components.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from sales_segmentation.analyses.holidays import (
    DEFAULT_HOLIDAYS,
    HOLIDAY_WINDOW_DAYS,
    HolidayAnchor,
    HolidayStat,
    analyze_holidays,
)
from sales_segmentation.analyses.temporal import TemporalBuckets, aggregate_temporal
from sales_segmentation.foundation.clusters import (
    ClusterSummary,
    ClusterThresholds,
    summarize_clusters,
)
from sales_segmentation.foundation.normalizer import (
    AmountConvention,
    normalize_records,
)
from sales_segmentation.foundation.profiles import (
    CustomerProfile,
    build_customer_profiles,
)
from sales_segmentation.foundation.segments import (
    GridCell,
    SegmentSummary,
    rfm_grid,
    summarize_segments,
)
from sales_segmentation.foundation.store import TransactionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for an analysis run.

    Attributes
    ----------
    amount_convention:
        Whether the mapped Amount column is a unit price or a line total
    cluster_thresholds:
        Boundaries for the threshold cluster rules
    holidays:
        Calendar anchors evaluated by the holiday analysis
    holiday_window_days:
        Days either side of each anchor included in its window
    """

    amount_convention: AmountConvention = AmountConvention.UNIT_PRICE
    cluster_thresholds: ClusterThresholds = field(default_factory=ClusterThresholds)
    holidays: Sequence[HolidayAnchor] = DEFAULT_HOLIDAYS
    holiday_window_days: int = HOLIDAY_WINDOW_DAYS


@dataclass(frozen=True)
class SalesAnalysis:
    """Everything derived from one dataset in one run."""

    now: datetime
    store: TransactionStore
    profiles: list[CustomerProfile]
    segments: list[SegmentSummary]
    grid: list[GridCell]
    clusters: list[ClusterSummary]
    temporal: TemporalBuckets
    holidays: list[HolidayStat]

    @property
    def is_empty(self) -> bool:
        return not self.store

    def as_dict(self, include_transactions: bool = False) -> dict[str, object]:
        """Return JSON-serialisable representation of the analysis."""
        payload: dict[str, object] = {
            "now": self.now.isoformat(),
            "transaction_count": len(self.store),
            "dropped_rows": self.store.dropped_rows,
            "customer_count": len(self.profiles),
            "profiles": [profile.as_dict() for profile in self.profiles],
            "segments": [summary.as_dict() for summary in self.segments],
            "rfm_grid": [cell.as_dict() for cell in self.grid],
            "clusters": [summary.as_dict() for summary in self.clusters],
            "temporal": self.temporal.as_dict(),
            "holidays": [stat.as_dict() for stat in self.holidays],
        }
        if include_transactions:
            payload["transactions"] = self.store.as_dict()["transactions"]
        return payload


def analyze_store(
    store: TransactionStore,
    now: datetime,
    config: AnalysisConfig | None = None,
) -> SalesAnalysis:
    """Derive profiles and aggregates from an already normalised store."""
    if config is None:
        config = AnalysisConfig()

    profiles = build_customer_profiles(store, now, config.cluster_thresholds)
    logger.info(f"Built {len(profiles)} customer profiles from {len(store)} transactions")

    return SalesAnalysis(
        now=now,
        store=store,
        profiles=profiles,
        segments=summarize_segments(profiles),
        grid=rfm_grid(profiles),
        clusters=summarize_clusters(profiles),
        temporal=aggregate_temporal(store),
        holidays=analyze_holidays(
            store,
            config.holidays,
            window_days=config.holiday_window_days,
            fallback_year=now.year,
        ),
    )


def run_analysis(
    rows: Iterable[Mapping[str, Any]],
    now: datetime,
    field_mapping: Mapping[str, str] | None = None,
    config: AnalysisConfig | None = None,
) -> SalesAnalysis:
    """Normalise raw rows and run every analysis against them.

    Parameters
    ----------
    rows:
        Decoded source rows
    now:
        Reference instant for recency; must be timezone-naive
    field_mapping:
        Canonical field -> source column. Detected from the rows when omitted.
    config:
        Run configuration; defaults to :class:`AnalysisConfig` defaults

    Returns
    -------
    SalesAnalysis
        Empty views (no profiles, zero buckets, zero lift) when no row
        survives normalisation.
    """
    if config is None:
        config = AnalysisConfig()

    store = normalize_records(
        rows, field_mapping, amount_convention=config.amount_convention
    )
    if not store:
        logger.warning("No transactions survived normalisation")
    return analyze_store(store, now, config)
