"""RFM segment taxonomy.

Segments are assigned from the recency and frequency scores only, by walking
an ordered decision table top to bottom and taking the first rule that
matches. Rule order matters: a customer scored r=4, f=4 satisfies both the
Champions and the Potential Loyalists rules and must land in Champions.
The monetary score is descriptive and never participates.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Sequence

from sales_segmentation.foundation.rfm import MAX_SCORE, MIN_SCORE

PERCENTAGE_PRECISION = Decimal("0.01")


class Segment(str, Enum):
    """Eight-way RFM segment taxonomy."""

    CHAMPIONS = "Champions"
    LOYAL_CUSTOMERS = "Loyal Customers"
    POTENTIAL_LOYALISTS = "Potential Loyalists"
    PROMISING = "Promising"
    NEEDS_ATTENTION = "Needs Attention"
    AT_RISK = "At Risk"
    CANT_LOSE_THEM = "Can't Lose Them"
    LOST = "Lost"


SegmentRule = tuple[Callable[[int, int], bool], Segment]

# (predicate over (r_score, f_score), segment); first match wins
SEGMENT_RULES: tuple[SegmentRule, ...] = (
    (lambda r, f: r >= 4 and f >= 4, Segment.CHAMPIONS),
    (lambda r, f: r >= 3 and f >= 3, Segment.LOYAL_CUSTOMERS),
    (lambda r, f: r >= 4 and f >= 2, Segment.POTENTIAL_LOYALISTS),
    (lambda r, f: r >= 3 and f <= 2, Segment.PROMISING),
    (lambda r, f: r <= 2 and f >= 4, Segment.CANT_LOSE_THEM),
    (lambda r, f: r <= 2 and f >= 2, Segment.AT_RISK),
    (lambda r, f: r <= 2 and f <= 1, Segment.LOST),
)
DEFAULT_SEGMENT = Segment.NEEDS_ATTENTION


def classify_segment(r_score: int, f_score: int) -> Segment:
    """Map recency and frequency scores onto a segment.

    >>> classify_segment(4, 4).value
    'Champions'
    >>> classify_segment(1, 1).value
    'Lost'
    """
    for score_name, score_value in (("r_score", r_score), ("f_score", f_score)):
        if not MIN_SCORE <= score_value <= MAX_SCORE:
            raise ValueError(f"{score_name} must be between 1 and 5: {score_value}")
    for predicate, segment in SEGMENT_RULES:
        if predicate(r_score, f_score):
            return segment
    return DEFAULT_SEGMENT


@dataclass(frozen=True)
class SegmentSummary:
    """Distribution statistics for one segment.

    Attributes
    ----------
    segment:
        Segment label
    customer_count:
        Customers assigned to the segment
    customer_pct:
        Share of all customers, in percent
    total_monetary:
        Combined spend of the segment's customers
    avg_monetary:
        Mean spend per customer (0 for empty segments)
    avg_recency_days:
        Mean recency in days (0 for empty segments)
    """

    segment: Segment
    customer_count: int
    customer_pct: Decimal
    total_monetary: Decimal
    avg_monetary: Decimal
    avg_recency_days: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "segment": self.segment.value,
            "customer_count": self.customer_count,
            "customer_pct": float(self.customer_pct),
            "total_monetary": float(self.total_monetary),
            "avg_monetary": float(self.avg_monetary),
            "avg_recency_days": float(self.avg_recency_days),
        }


def summarize_segments(profiles: Sequence) -> list[SegmentSummary]:
    """Aggregate customer profiles per segment.

    Every segment of the taxonomy is reported in taxonomy order, including
    segments nobody falls into.

    Parameters
    ----------
    profiles:
        Customer profiles exposing ``segment``, ``monetary`` and
        ``recency_days``
    """
    totals: dict[Segment, dict[str, Decimal | int]] = {
        segment: {"count": 0, "monetary": Decimal("0"), "recency": 0}
        for segment in Segment
    }
    for profile in profiles:
        bucket = totals[Segment(profile.segment)]
        bucket["count"] += 1
        bucket["monetary"] += profile.monetary
        bucket["recency"] += profile.recency_days

    total_customers = len(profiles)
    summaries: list[SegmentSummary] = []
    for segment, bucket in totals.items():
        count = bucket["count"]
        if count:
            pct = Decimal(count) / Decimal(total_customers) * 100
            avg_monetary = bucket["monetary"] / count
            avg_recency = Decimal(bucket["recency"]) / count
        else:
            pct = avg_monetary = avg_recency = Decimal("0")
        summaries.append(
            SegmentSummary(
                segment=segment,
                customer_count=count,
                customer_pct=pct.quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP),
                total_monetary=Decimal(bucket["monetary"]).quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
                avg_monetary=avg_monetary.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
                avg_recency_days=avg_recency.quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                ),
            )
        )
    return summaries


@dataclass(frozen=True)
class GridCell:
    """Customer count for one (r_score, f_score) cell of the RFM grid."""

    r_score: int
    f_score: int
    segment: Segment
    customer_count: int

    def as_dict(self) -> dict[str, object]:
        return {
            "r_score": self.r_score,
            "f_score": self.f_score,
            "segment": self.segment.value,
            "customer_count": self.customer_count,
        }


def rfm_grid(profiles: Sequence) -> list[GridCell]:
    """Count customers per recency/frequency score pair.

    All 25 cells are returned, including empty ones, ordered by r_score
    descending and then f_score ascending (most recent row first). Each cell
    carries the segment its score pair classifies into.

    >>> cells = rfm_grid([])
    >>> len(cells), cells[0].r_score, cells[0].f_score, cells[0].segment.value
    (25, 5, 1, 'Promising')
    """
    counts = {
        (r, f): 0
        for r in range(MAX_SCORE, MIN_SCORE - 1, -1)
        for f in range(MIN_SCORE, MAX_SCORE + 1)
    }
    for profile in profiles:
        counts[(profile.r_score, profile.f_score)] += 1
    return [
        GridCell(r_score=r, f_score=f, segment=classify_segment(r, f), customer_count=count)
        for (r, f), count in counts.items()
    ]
