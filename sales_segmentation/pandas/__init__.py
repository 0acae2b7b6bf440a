"""Pandas DataFrame adapters for segmentation engine components."""

from .transactions import (
    dataframe_to_rows,
    normalize_dataframe,
    transactions_to_dataframe,
)
from .profiles import (
    analyze_dataframe,
    grid_to_dataframe,
    holidays_to_dataframe,
    profiles_to_dataframe,
    temporal_to_dataframes,
)

__all__ = [
    # Transaction adapters
    "dataframe_to_rows",
    "normalize_dataframe",
    "transactions_to_dataframe",
    # Profile and aggregate adapters
    "analyze_dataframe",
    "grid_to_dataframe",
    "holidays_to_dataframe",
    "profiles_to_dataframe",
    "temporal_to_dataframes",
]
