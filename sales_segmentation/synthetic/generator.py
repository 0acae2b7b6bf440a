from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import random
from typing import Dict, List, Optional, Sequence

DEFAULT_COUNTRIES = ("United Kingdom", "France", "Germany", "USA", "Spain")

# Column layout of a typical retail export; maps onto the canonical fields
DEFAULT_SAMPLE_MAPPING: Dict[str, str] = {
    "CustomerID": "CustomerID",
    "InvoiceDate": "InvoiceDate",
    "Amount": "UnitPrice",
    "Quantity": "Quantity",
    "Country": "Country",
    "ProductName": "Description",
}


@dataclass(frozen=True)
class SampleConfig:
    """Configuration for sample sales rows.

    Attributes
    ----------
    customer_pool: Number of distinct customers rows are drawn from.
    first_customer_number: Numeric suffix of the first customer id.
    lookback_days: Rows are dated uniformly within this many days before ``now``.
    max_quantity: Quantities are drawn uniformly from 1..max_quantity.
    min_unit_price: Lower bound of the uniform unit price draw.
    unit_price_spread: Width of the uniform unit price draw.
    product_count: Number of distinct product descriptions.
    countries: Countries rows are assigned to.
    seed: Optional RNG seed for reproducibility.
    """

    customer_pool: int = 200
    first_customer_number: int = 1000
    lookback_days: int = 365
    max_quantity: int = 10
    min_unit_price: float = 5.0
    unit_price_spread: float = 100.0
    product_count: int = 50
    countries: Sequence[str] = DEFAULT_COUNTRIES
    seed: Optional[int] = None


def generate_sample_rows(
    n: int,
    now: datetime,
    config: Optional[SampleConfig] = None,
) -> List[Dict[str, object]]:
    """Generate ``n`` raw sales rows shaped like a retail export.

    Rows use the column names of :data:`DEFAULT_SAMPLE_MAPPING`, carry
    ``YYYY-MM-DD HH:MM:SS`` date strings and are meant to be fed through the
    normaliser exactly like decoded upload rows.
    """
    if n <= 0:
        return []
    if config is None:
        config = SampleConfig()
    if config.customer_pool <= 0:
        raise ValueError("customer_pool must be positive")
    if config.lookback_days <= 0:
        raise ValueError("lookback_days must be positive")

    rng = random.Random(config.seed)
    rows: List[Dict[str, object]] = []
    for _ in range(n):
        customer_number = config.first_customer_number + rng.randrange(config.customer_pool)
        invoice_ts = now - timedelta(
            days=rng.randrange(config.lookback_days),
            seconds=rng.randrange(24 * 60 * 60),
        )
        unit_price = round(
            rng.random() * config.unit_price_spread + config.min_unit_price, 2
        )
        rows.append(
            {
                "CustomerID": f"CUST-{customer_number}",
                "InvoiceDate": invoice_ts.strftime("%Y-%m-%d %H:%M:%S"),
                "Quantity": rng.randint(1, config.max_quantity),
                "UnitPrice": unit_price,
                "Country": rng.choice(list(config.countries)),
                "InvoiceNo": f"INV-{rng.randrange(10000)}",
                "Description": f"Product {rng.randrange(config.product_count)}",
            }
        )
    return rows
