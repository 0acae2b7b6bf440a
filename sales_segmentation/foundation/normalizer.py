"""Normalise heterogeneous sales rows into canonical transactions.

Upstream decoders (CSV readers, spreadsheet exports) hand over one mapping
per row with whatever column names and value types the source happened to
use. The normaliser maps those columns onto the canonical transaction shape
through a field mapping, coerces numbers, resolves the date encodings seen
in practice, and silently drops rows that cannot be attributed to a customer
or priced.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation, Overflow
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

from sales_segmentation.foundation.store import (
    UNKNOWN_COUNTRY,
    Transaction,
    TransactionStore,
)

logger = logging.getLogger(__name__)

# Spreadsheet serial 25569 is 1970-01-01 (serials count days from 1899-12-30)
SPREADSHEET_EPOCH_SERIAL = 25569
SECONDS_PER_DAY = 86400
UNIX_EPOCH = datetime(1970, 1, 1)
CENT = Decimal("0.01")

_DOTTED_DATE = re.compile(
    r"^(\d{1,2})\.(\d{1,2})\.(\d{4})(?:[ T](\d{1,2}):(\d{2})(?::(\d{2}))?)?$"
)
_NON_ALNUM = re.compile(r"[^a-z0-9]")


class CanonicalField(str, Enum):
    """Canonical transaction fields a source column can be mapped onto."""

    CUSTOMER_ID = "CustomerID"
    INVOICE_DATE = "InvoiceDate"
    AMOUNT = "Amount"
    QUANTITY = "Quantity"
    COUNTRY = "Country"
    PRODUCT_NAME = "ProductName"


class AmountConvention(str, Enum):
    """How the mapped Amount column relates to revenue.

    ``UNIT_PRICE`` treats the amount as a price per unit (revenue is
    quantity × amount). ``LINE_TOTAL`` treats it as the already-multiplied
    line total, so the unit price is derived as amount / quantity.
    """

    UNIT_PRICE = "unit_price"
    LINE_TOTAL = "line_total"


REQUIRED_FIELDS = (
    CanonicalField.CUSTOMER_ID,
    CanonicalField.INVOICE_DATE,
    CanonicalField.AMOUNT,
)

# Extra header fragments recognised per field on top of the field name itself
_FIELD_ALIASES: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.CUSTOMER_ID: ("client", "user"),
    CanonicalField.AMOUNT: ("price", "revenue", "total"),
    CanonicalField.INVOICE_DATE: ("date", "time"),
}


def detect_field_mapping(headers: Sequence[str]) -> dict[str, str]:
    """Guess a field mapping from source column headers.

    For every canonical field the first header whose lower-cased alphanumeric
    form contains the field name (or one of its aliases) wins. Fields without
    a matching header are left out of the result.

    Examples
    --------
    >>> detect_field_mapping(["Customer ID", "Invoice Date", "Unit Price", "Qty"])
    {'CustomerID': 'Customer ID', 'InvoiceDate': 'Invoice Date', 'Amount': 'Unit Price'}
    """
    mapping: dict[str, str] = {}
    for field in CanonicalField:
        needles = (field.value.lower(),) + _FIELD_ALIASES.get(field, ())
        for header in headers:
            folded = _NON_ALNUM.sub("", str(header).lower())
            if any(needle in folded for needle in needles):
                mapping[field.value] = header
                break
    return mapping


def missing_required_fields(mapping: Mapping[str, str]) -> list[str]:
    """Return the required canonical fields that have no source column."""
    return [field.value for field in REQUIRED_FIELDS if not mapping.get(field.value)]


def reorder_dotted_date(text: str) -> str | None:
    """Rewrite ``DD.MM.YYYY[ HH:mm[:ss]]`` as ``YYYY-MM-DD HH:mm[:ss]``.

    Returns None when ``text`` does not follow the dotted pattern.
    """
    match = _DOTTED_DATE.match(text.strip())
    if match is None:
        return None
    day, month, year, hour, minute, second = match.groups()
    result = f"{year}-{int(month):02d}-{int(day):02d} {int(hour or 0):02d}:{minute or '00'}"
    if second is not None:
        result += f":{second}"
    return result


def resolve_timestamp(value: Any) -> datetime | None:
    """Resolve a raw date cell into a naive datetime.

    Accepts spreadsheet serial numbers, ``datetime``/``date`` objects,
    dotted day-first strings and any string pandas can parse. Timezone-aware
    values are converted to UTC and made naive. Returns None when the value
    cannot be interpreted as a point in time.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return _as_naive(value.to_pydatetime())

    if isinstance(value, datetime):
        return _as_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time())

    if isinstance(value, (numbers.Real, Decimal)):
        serial = float(value)
        if not math.isfinite(serial):
            return None
        try:
            return UNIX_EPOCH + timedelta(
                seconds=(serial - SPREADSHEET_EPOCH_SERIAL) * SECONDS_PER_DAY
            )
        except OverflowError:
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    dotted = reorder_dotted_date(text)
    if dotted is not None:
        fmt = "%Y-%m-%d %H:%M:%S" if dotted.count(":") == 2 else "%Y-%m-%d %H:%M"
        try:
            return datetime.strptime(dotted, fmt)
        except ValueError:
            return None

    try:
        return _as_naive(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return _as_naive(parsed.to_pydatetime())


def _as_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_decimal(value: Any) -> Decimal | None:
    """Parse a numeric cell, returning None when it is not a number at all."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, numbers.Real):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None
    return None


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        # Spreadsheet readers turn numeric ids into floats (17850 -> 17850.0)
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def normalize_records(
    rows: Iterable[Mapping[str, Any]],
    field_mapping: Mapping[str, str] | None = None,
    *,
    amount_convention: AmountConvention = AmountConvention.UNIT_PRICE,
) -> TransactionStore:
    """Map raw rows onto canonical transactions.

    Parameters
    ----------
    rows:
        Row mappings as produced by a file decoder.
    field_mapping:
        Canonical field name -> source column name. When omitted, the
        mapping is detected from the keys of the first row.
    amount_convention:
        Whether the Amount column is a unit price (default) or a line total.

    Returns
    -------
    TransactionStore
        Surviving transactions in input order. Rows without a customer id,
        without a resolvable timestamp, or whose amount/quantity is not a
        finite non-negative number are dropped, as are lines whose revenue
        is too large to be expressed in cents. Unparseable amounts count
        as 0 and unparseable quantities as 1.

    Examples
    --------
    >>> store = normalize_records(
    ...     [{"Client": "C1", "Date": 44927, "Price": "10.5"}],
    ...     {"CustomerID": "Client", "InvoiceDate": "Date", "Amount": "Price"},
    ... )
    >>> store.transactions[0].timestamp
    datetime.datetime(2023, 1, 1, 0, 0)
    """
    rows = list(rows)
    if field_mapping is None:
        field_mapping = detect_field_mapping(list(rows[0].keys())) if rows else {}
    mapping = {str(getattr(key, "value", key)): column for key, column in field_mapping.items()}

    def cell(row: Mapping[str, Any], field: CanonicalField) -> Any:
        column = mapping.get(field.value)
        if not column:
            return None
        return row.get(column)

    transactions: list[Transaction] = []
    for row in rows:
        customer_id = _to_text(cell(row, CanonicalField.CUSTOMER_ID))
        if not customer_id:
            continue

        amount = _to_decimal(cell(row, CanonicalField.AMOUNT))
        if amount is None:
            amount = Decimal("0")
        if not amount.is_finite() or amount < 0:
            continue

        quantity = _to_decimal(cell(row, CanonicalField.QUANTITY))
        if quantity is None or not quantity.is_finite():
            quantity = Decimal("1")
        if quantity < 0:
            continue

        timestamp = resolve_timestamp(cell(row, CanonicalField.INVOICE_DATE))
        if timestamp is None:
            continue

        try:
            if amount_convention is AmountConvention.LINE_TOTAL and quantity > 0:
                unit_price = amount / quantity
            else:
                unit_price = amount
            # Every aggregate rounds revenue to cents, so the line must fit the context
            (quantity * unit_price).quantize(CENT)
        except (Overflow, InvalidOperation):
            continue

        country = _to_text(cell(row, CanonicalField.COUNTRY)) or UNKNOWN_COUNTRY
        product_name = _to_text(cell(row, CanonicalField.PRODUCT_NAME)) or None

        transactions.append(
            Transaction(
                customer_id=customer_id,
                timestamp=timestamp,
                quantity=quantity,
                unit_price=unit_price,
                country=country,
                product_name=product_name,
            )
        )

    dropped = len(rows) - len(transactions)
    logger.info(
        f"Normalised {len(transactions)} of {len(rows)} rows ({dropped} dropped)"
    )
    return TransactionStore.from_transactions(transactions, dropped_rows=dropped)
