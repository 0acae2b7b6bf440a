"""Foundational building blocks for the segmentation engine.

This package exposes the record normaliser and transaction store, RFM
aggregation and quintile scoring, and the two customer classification
tables (RFM segments and threshold clusters).
"""

from .clusters import (
    Cluster,
    ClusterSummary,
    ClusterThresholds,
    classify_cluster,
    summarize_clusters,
)
from .normalizer import (
    AmountConvention,
    CanonicalField,
    detect_field_mapping,
    missing_required_fields,
    normalize_records,
    resolve_timestamp,
)
from .profiles import CustomerProfile, build_customer_profiles
from .rfm import (
    RFMMetrics,
    RFMScore,
    calculate_rfm,
    calculate_rfm_scores,
    percentile_cut_points,
    quintile_score,
    round_monetary,
)
from .segments import (
    GridCell,
    Segment,
    SegmentSummary,
    classify_segment,
    rfm_grid,
    summarize_segments,
)
from .store import Transaction, TransactionStore

__all__ = [
    "AmountConvention",
    "CanonicalField",
    "Cluster",
    "ClusterSummary",
    "ClusterThresholds",
    "CustomerProfile",
    "GridCell",
    "RFMMetrics",
    "RFMScore",
    "Segment",
    "SegmentSummary",
    "Transaction",
    "TransactionStore",
    "build_customer_profiles",
    "calculate_rfm",
    "calculate_rfm_scores",
    "classify_cluster",
    "classify_segment",
    "detect_field_mapping",
    "missing_required_fields",
    "normalize_records",
    "percentile_cut_points",
    "quintile_score",
    "resolve_timestamp",
    "rfm_grid",
    "round_monetary",
    "summarize_clusters",
    "summarize_segments",
]
