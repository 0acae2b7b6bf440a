"""Tests for customer profiles and the RFM grid."""

from datetime import datetime
from decimal import Decimal

from sales_segmentation.foundation.clusters import Cluster
from sales_segmentation.foundation.normalizer import normalize_records
from sales_segmentation.foundation.profiles import build_customer_profiles
from sales_segmentation.foundation.segments import Segment, rfm_grid
from sales_segmentation.foundation.store import Transaction

NOW = datetime(2023, 2, 1)
MAPPING = {"CustomerID": "c", "InvoiceDate": "d", "Amount": "a"}


def _txn(customer_id, timestamp, price):
    return Transaction(
        customer_id=customer_id,
        timestamp=timestamp,
        quantity=Decimal("1"),
        unit_price=Decimal(price),
    )


class TestBuildCustomerProfiles:
    """Test build_customer_profiles."""

    def test_empty_input_returns_empty_list(self):
        assert build_customer_profiles([], NOW) == []

    def test_vip_threshold_compares_unrounded_spend(self):
        """Spend of 2000.004 is above 2000 even though it reports as 2000.00."""
        store = normalize_records([{"c": "C1", "d": "2023-01-01", "a": "2000.004"}], MAPPING)

        profile = build_customer_profiles(store, NOW)[0]

        assert profile.monetary == Decimal("2000.004")
        assert profile.cluster is Cluster.VIP
        assert profile.as_dict()["monetary"] == 2000.0

    def test_spend_exactly_at_threshold_is_not_vip(self):
        profile = build_customer_profiles([_txn("C1", datetime(2023, 1, 1), "2000.00")], NOW)[0]
        assert profile.cluster is Cluster.OCCASIONAL

    def test_monetary_score_separates_sub_cent_differences(self):
        """Customers that round to the same cents still rank by their exact spend."""
        txns = [
            _txn("C1", datetime(2023, 1, 1), "10.001"),
            _txn("C2", datetime(2023, 1, 1), "10.004"),
        ]
        profiles = {p.customer_id: p for p in build_customer_profiles(txns, NOW)}
        assert profiles["C1"].m_score < profiles["C2"].m_score

    def test_segment_follows_scores(self):
        profiles = build_customer_profiles([_txn("C1", datetime(2023, 1, 31), "10")], NOW)
        assert profiles[0].rfm_score == "511"
        assert profiles[0].segment is Segment.PROMISING


class TestRfmGrid:
    """Test rfm_grid."""

    def test_empty_profiles_give_every_cell(self):
        cells = rfm_grid([])

        assert len(cells) == 25
        assert all(cell.customer_count == 0 for cell in cells)
        assert [(c.r_score, c.f_score) for c in cells[:6]] == [
            (5, 1),
            (5, 2),
            (5, 3),
            (5, 4),
            (5, 5),
            (4, 1),
        ]
        assert (cells[-1].r_score, cells[-1].f_score) == (1, 5)

    def test_cells_are_labelled_by_segment(self):
        labels = {(c.r_score, c.f_score): c.segment for c in rfm_grid([])}
        assert labels[(5, 5)] is Segment.CHAMPIONS
        assert labels[(4, 2)] is Segment.POTENTIAL_LOYALISTS
        assert labels[(1, 5)] is Segment.CANT_LOSE_THEM
        assert labels[(1, 1)] is Segment.LOST

    def test_counts_match_profiles(self):
        txns = [
            _txn(f"C{i}", datetime(2023, 1, 1 + i % 28), str(10 + i))
            for i in range(30)
        ] + [_txn("C0", datetime(2023, 1, 2), "5")]
        profiles = build_customer_profiles(txns, NOW)

        cells = rfm_grid(profiles)

        assert sum(cell.customer_count for cell in cells) == len(profiles)
        for cell in cells:
            expected = sum(
                1 for p in profiles if (p.r_score, p.f_score) == (cell.r_score, cell.f_score)
            )
            assert cell.customer_count == expected

    def test_as_dict(self):
        cell = rfm_grid([])[0]
        assert cell.as_dict() == {
            "r_score": 5,
            "f_score": 1,
            "segment": "Promising",
            "customer_count": 0,
        }
