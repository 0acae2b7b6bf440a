"""Canonical transaction records and the in-memory transaction store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Sequence

UNKNOWN_COUNTRY = "Unknown"


@dataclass(frozen=True)
class Transaction:
    """A single sales line after normalisation.

    Attributes
    ----------
    customer_id:
        Non-empty customer identifier
    timestamp:
        Timezone-naive purchase timestamp
    quantity:
        Units purchased (>= 0)
    unit_price:
        Price per unit (>= 0)
    country:
        Customer country, ``"Unknown"`` when the source has none
    product_name:
        Optional product label
    """

    customer_id: str
    timestamp: datetime
    quantity: Decimal
    unit_price: Decimal
    country: str = UNKNOWN_COUNTRY
    product_name: str | None = None

    def __post_init__(self) -> None:
        if not self.customer_id:
            raise ValueError("Transaction customer_id cannot be empty")
        if self.quantity < 0:
            raise ValueError(
                f"Quantity cannot be negative: {self.quantity} (customer_id={self.customer_id})"
            )
        if self.unit_price < 0:
            raise ValueError(
                f"Unit price cannot be negative: {self.unit_price} (customer_id={self.customer_id})"
            )

    @property
    def revenue(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class TransactionStore:
    """Ordered, immutable sequence of transactions for one analysis run.

    ``dropped_rows`` records how many source rows the normaliser discarded.
    """

    transactions: tuple[Transaction, ...] = ()
    dropped_rows: int = 0

    @classmethod
    def from_transactions(
        cls, transactions: Sequence[Transaction], dropped_rows: int = 0
    ) -> TransactionStore:
        return cls(transactions=tuple(transactions), dropped_rows=dropped_rows)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __bool__(self) -> bool:
        return bool(self.transactions)

    def total_revenue(self) -> Decimal:
        return sum((t.revenue for t in self.transactions), Decimal("0"))

    def latest_timestamp(self) -> datetime | None:
        if not self.transactions:
            return None
        return max(t.timestamp for t in self.transactions)

    def as_dict(self) -> dict[str, object]:
        """Return JSON-serialisable representation of the store."""

        def serialise(txn: Transaction) -> dict[str, object]:
            return {
                "customer_id": txn.customer_id,
                "timestamp": txn.timestamp.isoformat(),
                "quantity": float(txn.quantity),
                "unit_price": float(txn.unit_price),
                "revenue": float(txn.revenue),
                "country": txn.country,
                "product_name": txn.product_name,
            }

        return {
            "transactions": [serialise(txn) for txn in self.transactions],
            "dropped_rows": self.dropped_rows,
        }
