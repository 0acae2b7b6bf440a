"""Tests for month, weekday and hour revenue buckets."""

from datetime import datetime
from decimal import Decimal

from sales_segmentation.analyses.temporal import (
    WEEKDAY_NAMES,
    aggregate_by_hour,
    aggregate_by_month,
    aggregate_by_weekday,
    aggregate_temporal,
    month_key,
    weekday_index,
)
from sales_segmentation.foundation.store import Transaction, TransactionStore


def _txn(timestamp, price, quantity="1"):
    return Transaction(
        customer_id="C1",
        timestamp=timestamp,
        quantity=Decimal(quantity),
        unit_price=Decimal(price),
    )


class TestKeys:
    """Test bucket key helpers."""

    def test_month_key_is_zero_padded(self):
        assert month_key(datetime(2023, 3, 9)) == "2023-03"

    def test_weekday_index_starts_on_sunday(self):
        assert weekday_index(datetime(2023, 1, 1)) == 0  # Sunday
        assert weekday_index(datetime(2023, 1, 2)) == 1  # Monday
        assert weekday_index(datetime(2023, 1, 7)) == 6  # Saturday
        assert WEEKDAY_NAMES[weekday_index(datetime(2023, 1, 4))] == "Wed"


class TestAggregates:
    """Test the three bucket aggregations."""

    def test_empty_input(self):
        """No transactions: no months, but full weekday and hour axes."""
        buckets = aggregate_temporal(TransactionStore())
        assert buckets.monthly == {}
        assert list(buckets.weekday) == list(range(7))
        assert list(buckets.hourly) == list(range(24))
        assert all(v == Decimal("0") for v in buckets.weekday.values())
        assert all(v == Decimal("0") for v in buckets.hourly.values())

    def test_monthly_is_sorted_and_summed(self):
        txns = [
            _txn(datetime(2023, 3, 5, 10), "10", quantity="2"),
            _txn(datetime(2022, 12, 31, 23), "5"),
            _txn(datetime(2023, 3, 28, 8), "1.5"),
        ]
        assert aggregate_by_month(txns) == {
            "2022-12": Decimal("5.00"),
            "2023-03": Decimal("21.50"),
        }
        assert list(aggregate_by_month(txns)) == ["2022-12", "2023-03"]

    def test_weekday_and_hour_buckets(self):
        txns = [
            _txn(datetime(2023, 1, 1, 9, 59), "10"),  # Sunday
            _txn(datetime(2023, 1, 8, 9, 0), "20"),  # Sunday
            _txn(datetime(2023, 1, 3, 23, 30), "7"),  # Tuesday
        ]

        weekday = aggregate_by_weekday(txns)
        hourly = aggregate_by_hour(txns)

        assert weekday[0] == Decimal("30.00")
        assert weekday[2] == Decimal("7.00")
        assert weekday[1] == Decimal("0")
        assert hourly[9] == Decimal("30.00")
        assert hourly[23] == Decimal("7.00")

    def test_each_view_sums_to_total_revenue(self):
        """Every transaction lands in exactly one bucket of each view."""
        txns = [
            _txn(datetime(2023, 1 + i % 12, 1 + i % 27, i % 24), f"{i}.25")
            for i in range(100)
        ]
        total = sum(t.revenue for t in txns)
        buckets = aggregate_temporal(txns)
        assert sum(buckets.monthly.values()) == total
        assert sum(buckets.weekday.values()) == total
        assert sum(buckets.hourly.values()) == total

    def test_as_dict_shape(self):
        payload = aggregate_temporal([_txn(datetime(2023, 1, 1, 12), "10")]).as_dict()
        assert payload["monthly"] == [{"month": "2023-01", "revenue": 10.0}]
        assert payload["weekday"][0] == {"weekday": 0, "name": "Sun", "revenue": 10.0}
        assert len(payload["hourly"]) == 24
        assert payload["hourly"][12]["revenue"] == 10.0
