"""Shared helpers for the DataFrame adapters."""

from decimal import Decimal
from typing import Any, Dict, List, Sequence

import pandas as pd  # type: ignore


def decimal_to_float(value: Decimal) -> float:
    """Convert money values to float for pandas columns."""
    return float(value)


def records_frame(records: List[Dict[str, Any]], columns: Sequence[str]) -> pd.DataFrame:
    """Build a DataFrame with a fixed column order.

    An empty record list still yields the full set of columns, so callers
    can select or concatenate without special-casing empty results.
    """
    if not records:
        return pd.DataFrame(columns=list(columns))
    return pd.DataFrame(records, columns=list(columns))
