"""Pandas DataFrame adapters for raw rows and the transaction store."""

from typing import Any, Dict, List, Mapping, Optional

import pandas as pd  # type: ignore

from sales_segmentation.foundation.normalizer import (
    AmountConvention,
    normalize_records,
)
from sales_segmentation.foundation.store import TransactionStore
from ._utils import decimal_to_float, records_frame

TRANSACTION_COLUMNS = [
    "customer_id",
    "timestamp",
    "quantity",
    "unit_price",
    "revenue",
    "country",
    "product_name",
]


def dataframe_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a decoded source table into row dictionaries.

    Missing cells (NaN/NaT) become None so the normaliser treats them as
    absent rather than as non-numeric values.

    Args:
        df: DataFrame as read from a CSV or spreadsheet

    Returns:
        One dictionary per row, keyed by column name

    Example:
        >>> df = pd.read_csv("sales.csv")
        >>> rows = dataframe_to_rows(df)
        >>> store = normalize_records(rows)
    """
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict("records")


def normalize_dataframe(
    df: pd.DataFrame,
    field_mapping: Optional[Mapping[str, str]] = None,
    amount_convention: AmountConvention = AmountConvention.UNIT_PRICE,
) -> TransactionStore:
    """Normalise a source DataFrame into a transaction store.

    Convenience function combining conversion and normalisation. When no
    field mapping is given it is detected from the DataFrame's columns.
    """
    return normalize_records(
        dataframe_to_rows(df), field_mapping, amount_convention=amount_convention
    )


def transactions_to_dataframe(store: TransactionStore) -> pd.DataFrame:
    """Convert a transaction store to a DataFrame.

    Args:
        store: Normalised transactions

    Returns:
        DataFrame with columns: customer_id, timestamp, quantity, unit_price,
        revenue, country, product_name (in store order)
    """
    rows = [
        {
            "customer_id": txn.customer_id,
            "timestamp": txn.timestamp,
            "quantity": decimal_to_float(txn.quantity),
            "unit_price": decimal_to_float(txn.unit_price),
            "revenue": decimal_to_float(txn.revenue),
            "country": txn.country,
            "product_name": txn.product_name,
        }
        for txn in store
    ]
    return records_frame(rows, TRANSACTION_COLUMNS)
