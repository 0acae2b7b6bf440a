"""Threshold-based customer clusters.

Clusters are a coarse, marketing-facing grouping built straight from raw
recency/frequency/monetary values rather than quintile scores. They are
fixed rules, not a statistical clustering, and are independent of the RFM
segment taxonomy.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Sequence


class Cluster(str, Enum):
    """Five-way threshold cluster taxonomy."""

    VIP = "VIP"
    REGULAR = "Regular"
    OCCASIONAL = "Occasional"
    NEW_LOW_SPEND = "New/Low-spend"
    SLEEPING = "Sleeping"


@dataclass(frozen=True)
class ClusterThresholds:
    """Boundaries used by the cluster rules.

    Attributes
    ----------
    vip_monetary:
        Spend strictly above which a customer is VIP
    regular_frequency:
        Transaction count strictly above which a customer is Regular
    new_recency_days:
        Recency strictly below which a low-frequency customer counts as new
    new_max_frequency:
        Highest transaction count still considered new/low-spend
    sleeping_recency_days:
        Recency strictly above which a customer is Sleeping
    """

    vip_monetary: Decimal = Decimal("2000")
    regular_frequency: int = 10
    new_recency_days: int = 30
    new_max_frequency: int = 2
    sleeping_recency_days: int = 90

    def __post_init__(self) -> None:
        if self.vip_monetary < 0:
            raise ValueError(f"vip_monetary cannot be negative: {self.vip_monetary}")
        if self.regular_frequency < 0 or self.new_max_frequency < 0:
            raise ValueError("Frequency thresholds cannot be negative")


ClusterRule = tuple[Callable[[int, int, Decimal, ClusterThresholds], bool], Cluster]

# (predicate over (recency_days, frequency, monetary, thresholds), cluster); first match wins
CLUSTER_RULES: tuple[ClusterRule, ...] = (
    (lambda r, f, m, t: m > t.vip_monetary, Cluster.VIP),
    (lambda r, f, m, t: f > t.regular_frequency, Cluster.REGULAR),
    (
        lambda r, f, m, t: r < t.new_recency_days and f <= t.new_max_frequency,
        Cluster.NEW_LOW_SPEND,
    ),
    (lambda r, f, m, t: r > t.sleeping_recency_days, Cluster.SLEEPING),
)
DEFAULT_CLUSTER = Cluster.OCCASIONAL


def classify_cluster(
    recency_days: int,
    frequency: int,
    monetary: Decimal,
    thresholds: ClusterThresholds | None = None,
) -> Cluster:
    """Assign a cluster from raw RFM values.

    >>> classify_cluster(5, 1, Decimal("2500")).value
    'VIP'
    >>> classify_cluster(120, 3, Decimal("300")).value
    'Sleeping'
    """
    if thresholds is None:
        thresholds = ClusterThresholds()
    for predicate, cluster in CLUSTER_RULES:
        if predicate(recency_days, frequency, monetary, thresholds):
            return cluster
    return DEFAULT_CLUSTER


@dataclass(frozen=True)
class ClusterSummary:
    """Per-cluster averages over the customers it contains."""

    cluster: Cluster
    customer_count: int
    avg_monetary: Decimal
    avg_frequency: Decimal
    avg_recency_days: Decimal

    def as_dict(self) -> dict[str, object]:
        return {
            "cluster": self.cluster.value,
            "customer_count": self.customer_count,
            "avg_monetary": float(self.avg_monetary),
            "avg_frequency": float(self.avg_frequency),
            "avg_recency_days": float(self.avg_recency_days),
        }


def summarize_clusters(profiles: Sequence) -> list[ClusterSummary]:
    """Accumulate count and averages per cluster in a single pass.

    All five clusters are reported in taxonomy order; empty clusters carry
    zero averages.

    Parameters
    ----------
    profiles:
        Customer profiles exposing ``cluster``, ``monetary``, ``frequency``
        and ``recency_days``
    """
    totals = {
        cluster: {"count": 0, "monetary": Decimal("0"), "frequency": 0, "recency": 0}
        for cluster in Cluster
    }
    for profile in profiles:
        bucket = totals[Cluster(profile.cluster)]
        bucket["count"] += 1
        bucket["monetary"] += profile.monetary
        bucket["frequency"] += profile.frequency
        bucket["recency"] += profile.recency_days

    summaries: list[ClusterSummary] = []
    for cluster, bucket in totals.items():
        count = bucket["count"]
        if count:
            averages = (
                bucket["monetary"] / count,
                Decimal(bucket["frequency"]) / count,
                Decimal(bucket["recency"]) / count,
            )
        else:
            averages = (Decimal("0"),) * 3
        avg_monetary, avg_frequency, avg_recency = (
            value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) for value in averages
        )
        summaries.append(
            ClusterSummary(
                cluster=cluster,
                customer_count=count,
                avg_monetary=avg_monetary,
                avg_frequency=avg_frequency,
                avg_recency_days=avg_recency,
            )
        )
    return summaries
