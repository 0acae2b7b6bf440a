from datetime import datetime, timedelta

import pytest

from sales_segmentation.foundation.normalizer import (
    detect_field_mapping,
    missing_required_fields,
    normalize_records,
)
from sales_segmentation.synthetic import (
    DEFAULT_COUNTRIES,
    DEFAULT_SAMPLE_MAPPING,
    SampleConfig,
    generate_sample_rows,
)

NOW = datetime(2024, 6, 30, 18, 0)


def test_generate_sample_rows_basic() -> None:
    rows = generate_sample_rows(100, NOW, SampleConfig(seed=7))
    assert len(rows) == 100
    assert set(rows[0]) == {
        "CustomerID",
        "InvoiceDate",
        "Quantity",
        "UnitPrice",
        "Country",
        "InvoiceNo",
        "Description",
    }
    for row in rows:
        assert row["CustomerID"].startswith("CUST-")
        assert 1 <= row["Quantity"] <= 10
        assert 5.0 <= row["UnitPrice"] <= 105.0
        assert row["Country"] in DEFAULT_COUNTRIES


def test_rows_fall_inside_lookback_window() -> None:
    rows = generate_sample_rows(200, NOW, SampleConfig(seed=3, lookback_days=30))
    for row in rows:
        ts = datetime.strptime(row["InvoiceDate"], "%Y-%m-%d %H:%M:%S")
        assert NOW - timedelta(days=31) < ts <= NOW


def test_same_seed_is_reproducible() -> None:
    first = generate_sample_rows(50, NOW, SampleConfig(seed=42))
    second = generate_sample_rows(50, NOW, SampleConfig(seed=42))
    assert first == second


def test_customer_pool_bounds_distinct_customers() -> None:
    rows = generate_sample_rows(500, NOW, SampleConfig(seed=1, customer_pool=5))
    assert len({row["CustomerID"] for row in rows}) <= 5


def test_rows_normalise_without_drops() -> None:
    rows = generate_sample_rows(150, NOW, SampleConfig(seed=11))

    store = normalize_records(rows, DEFAULT_SAMPLE_MAPPING)

    assert len(store) == 150
    assert store.dropped_rows == 0
    # The export headers are also recognised automatically
    assert missing_required_fields(detect_field_mapping(list(rows[0]))) == []


def test_empty_and_invalid_inputs() -> None:
    assert generate_sample_rows(0, NOW) == []
    assert generate_sample_rows(-3, NOW) == []
    with pytest.raises(ValueError, match="customer_pool must be positive"):
        generate_sample_rows(10, NOW, SampleConfig(customer_pool=0))
    with pytest.raises(ValueError, match="lookback_days must be positive"):
        generate_sample_rows(10, NOW, SampleConfig(lookback_days=0))
