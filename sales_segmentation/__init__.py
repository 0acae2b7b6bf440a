"""Sales segmentation engine.

Turns raw sales-transaction rows into RFM customer profiles, segment and
cluster labels, temporal revenue buckets and holiday lift figures.
"""

from .pipeline import AnalysisConfig, SalesAnalysis, analyze_store, run_analysis

__all__ = [
    "AnalysisConfig",
    "SalesAnalysis",
    "analyze_store",
    "run_analysis",
]
