"""Customer profiles: raw RFM metrics, quintile scores, segment and cluster."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from sales_segmentation.foundation.clusters import (
    Cluster,
    ClusterThresholds,
    classify_cluster,
)
from sales_segmentation.foundation.rfm import (
    MAX_SCORE,
    MIN_SCORE,
    calculate_rfm,
    calculate_rfm_scores,
    round_monetary,
)
from sales_segmentation.foundation.segments import Segment, classify_segment
from sales_segmentation.foundation.store import Transaction


@dataclass(frozen=True)
class CustomerProfile:
    """Behavioural profile of one customer for one analysis run.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_days:
        Days since the customer's most recent transaction
    frequency:
        Number of transactions
    monetary:
        Total spend, unrounded (rounded to cents in ``as_dict``)
    r_score, f_score, m_score:
        Quintile scores (1-5)
    segment:
        RFM segment derived from r_score and f_score
    cluster:
        Threshold cluster derived from the raw values
    country:
        Country of the last transaction seen
    """

    customer_id: str
    recency_days: int
    frequency: int
    monetary: Decimal
    r_score: int
    f_score: int
    m_score: int
    segment: Segment
    cluster: Cluster
    country: str

    def __post_init__(self) -> None:
        if self.frequency <= 0:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_id={self.customer_id})"
            )
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not MIN_SCORE <= score_value <= MAX_SCORE:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )

    @property
    def rfm_score(self) -> str:
        return f"{self.r_score}{self.f_score}{self.m_score}"

    def as_dict(self) -> dict[str, object]:
        return {
            "customer_id": self.customer_id,
            "recency_days": self.recency_days,
            "frequency": self.frequency,
            "monetary": float(round_monetary(self.monetary)),
            "r_score": self.r_score,
            "f_score": self.f_score,
            "m_score": self.m_score,
            "rfm_score": self.rfm_score,
            "segment": self.segment.value,
            "cluster": self.cluster.value,
            "country": self.country,
        }


def build_customer_profiles(
    transactions: Iterable[Transaction],
    now: datetime,
    cluster_thresholds: ClusterThresholds | None = None,
) -> list[CustomerProfile]:
    """Aggregate, score and classify every customer in the transaction set.

    Returns an empty list when there are no transactions, so the quintile
    scorer is never asked to rank an empty population.
    """
    rfm_metrics = calculate_rfm(transactions, now)
    if not rfm_metrics:
        return []

    scores = {score.customer_id: score for score in calculate_rfm_scores(rfm_metrics)}
    profiles: list[CustomerProfile] = []
    for metrics in rfm_metrics:
        score = scores[metrics.customer_id]
        profiles.append(
            CustomerProfile(
                customer_id=metrics.customer_id,
                recency_days=metrics.recency_days,
                frequency=metrics.frequency,
                monetary=metrics.monetary,
                r_score=score.r_score,
                f_score=score.f_score,
                m_score=score.m_score,
                segment=classify_segment(score.r_score, score.f_score),
                cluster=classify_cluster(
                    metrics.recency_days,
                    metrics.frequency,
                    metrics.monetary,
                    cluster_thresholds,
                ),
                country=metrics.country,
            )
        )
    return profiles
