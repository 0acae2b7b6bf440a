"""RFM (Recency-Frequency-Monetary) calculation utilities.

RFM analysis describes customers along three dimensions:
- Recency: How recently did the customer make a purchase?
- Frequency: How often do they purchase?
- Monetary: How much do they spend?

Each dimension is turned into a 1-5 quintile score relative to the whole
customer population. The scores feed the segment taxonomy in
:mod:`sales_segmentation.foundation.segments`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence, TypeVar

from sales_segmentation.foundation.store import Transaction

# Quintile boundaries expressed as fifths, so cut point k sits at floor(n * k / 5)
QUINTILE_FIFTHS = (1, 2, 3, 4)
MIN_SCORE = 1
MAX_SCORE = 5

MONETARY_PRECISION = Decimal("0.01")

_Number = TypeVar("_Number", int, Decimal)


def round_monetary(value: Decimal) -> Decimal:
    """Round a spend figure to cents for reporting.

    >>> round_monetary(Decimal("2000.004"))
    Decimal('2000.00')
    """
    return value.quantize(MONETARY_PRECISION, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RFMMetrics:
    """Raw RFM metrics for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_days:
        Whole days between the reference instant and the customer's most
        recent transaction. Negative only for transactions dated after the
        reference instant.
    frequency:
        Number of transactions attributed to the customer
    monetary:
        Total spend (sum of quantity × unit price), unrounded; scores and
        cluster thresholds compare the exact sum
    country:
        Country of the last transaction seen for the customer
    """

    customer_id: str
    recency_days: int
    frequency: int
    monetary: Decimal
    country: str

    def __post_init__(self) -> None:
        """Validate RFM metrics."""
        if self.frequency <= 0:
            raise ValueError(
                f"Frequency must be positive: {self.frequency} (customer_id={self.customer_id})"
            )
        if self.monetary < 0:
            raise ValueError(
                f"Monetary value cannot be negative: {self.monetary} (customer_id={self.customer_id})"
            )


def days_between(now: datetime, then: datetime) -> int:
    """Whole days from ``then`` to ``now``, truncated toward zero.

    >>> days_between(datetime(2023, 1, 10, 9), datetime(2023, 1, 1, 12))
    8
    """
    delta = now - then
    if delta < timedelta(0):
        return -((-delta).days)
    return delta.days


def calculate_rfm(
    transactions: Iterable[Transaction], now: datetime
) -> list[RFMMetrics]:
    """Fold transactions into one RFM record per customer.

    Recency is the minimum day gap between ``now`` and any of the customer's
    transactions; the first transaction seen is folded exactly like the rest.
    The country is whichever one the customer's last transaction carried, so
    customers buying from several countries keep only one of them.

    **Timezone Assumptions**: ``now`` and every transaction timestamp must be
    timezone-naive (the normaliser guarantees this for transactions).

    Parameters
    ----------
    transactions:
        Transaction store (or any iterable of transactions) for the run
    now:
        Reference instant held constant for the whole analysis run

    Returns
    -------
    list[RFMMetrics]
        One record per distinct customer, sorted by customer_id

    Examples
    --------
    >>> from decimal import Decimal
    >>> txns = [
    ...     Transaction("C1", datetime(2023, 3, 1), Decimal("2"), Decimal("25")),
    ...     Transaction("C1", datetime(2023, 3, 20), Decimal("1"), Decimal("100")),
    ... ]
    >>> rfm = calculate_rfm(txns, datetime(2023, 4, 1))
    >>> rfm[0].frequency, rfm[0].monetary, rfm[0].recency_days
    (2, Decimal('150'), 12)
    """
    accumulators: dict[str, dict[str, object]] = {}
    for txn in transactions:
        gap = days_between(now, txn.timestamp)
        acc = accumulators.get(txn.customer_id)
        if acc is None:
            accumulators[txn.customer_id] = {
                "recency_days": gap,
                "frequency": 1,
                "monetary": txn.revenue,
                "country": txn.country,
            }
            continue
        acc["recency_days"] = min(acc["recency_days"], gap)
        acc["frequency"] += 1
        acc["monetary"] += txn.revenue
        acc["country"] = txn.country

    rfm_metrics = [
        RFMMetrics(
            customer_id=customer_id,
            recency_days=acc["recency_days"],
            frequency=acc["frequency"],
            monetary=Decimal(acc["monetary"]),
            country=str(acc["country"]),
        )
        for customer_id, acc in accumulators.items()
    ]
    rfm_metrics.sort(key=lambda m: m.customer_id)
    return rfm_metrics


def percentile_cut_points(
    sorted_values: Sequence[_Number],
) -> tuple[_Number, _Number, _Number, _Number]:
    """Return the 20th/40th/60th/80th percentile values of a sorted population.

    The value at each cut is taken at index ``floor(n * p)`` of the ascending
    population; no interpolation is performed.

    Raises
    ------
    ValueError
        If the population is empty. Callers must not score an empty
        customer set.

    >>> percentile_cut_points([1, 2, 3, 4, 5, 6, 7, 8, 9, 10])
    (3, 5, 7, 9)
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("Cannot compute percentile cut points of an empty population")
    p20, p40, p60, p80 = (sorted_values[n * k // 5] for k in QUINTILE_FIFTHS)
    return p20, p40, p60, p80


def quintile_score(
    value: _Number,
    cut_points: Sequence[_Number],
    reverse: bool = False,
) -> int:
    """Score ``value`` 1-5 against precomputed quintile cut points.

    Forward scoring gives higher raw values higher scores. With
    ``reverse=True`` (recency) lower raw values score higher. A value equal
    to a cut point falls into the lower bucket of the forward ordering.

    >>> quintile_score(7, (3, 5, 7, 9))
    3
    >>> quintile_score(7, (3, 5, 7, 9), reverse=True)
    3
    >>> quintile_score(2, (3, 5, 7, 9), reverse=True)
    5
    """
    bucket = MAX_SCORE
    for idx, cut in enumerate(cut_points):
        if value <= cut:
            bucket = idx + 1
            break
    if reverse:
        return MAX_SCORE + MIN_SCORE - bucket
    return bucket


@dataclass(frozen=True)
class RFMScore:
    """RFM scores (1-5 quintiles) for a single customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    r_score:
        Recency score (1-5, where 5 = most recent)
    f_score:
        Frequency score (1-5, where 5 = most frequent)
    m_score:
        Monetary score (1-5, where 5 = highest spend)
    rfm_score:
        Combined RFM score string (e.g., "555" for best customers)
    """

    customer_id: str
    r_score: int
    f_score: int
    m_score: int
    rfm_score: str

    def __post_init__(self) -> None:
        """Validate RFM scores."""
        for score_name, score_value in [
            ("r_score", self.r_score),
            ("f_score", self.f_score),
            ("m_score", self.m_score),
        ]:
            if not MIN_SCORE <= score_value <= MAX_SCORE:
                raise ValueError(
                    f"{score_name} must be between 1 and 5: {score_value} (customer_id={self.customer_id})"
                )
        expected_rfm = f"{self.r_score}{self.f_score}{self.m_score}"
        if self.rfm_score != expected_rfm:
            raise ValueError(
                f"rfm_score ({self.rfm_score}) does not match r/f/m scores ({expected_rfm}) (customer_id={self.customer_id})"
            )


def calculate_rfm_scores(rfm_metrics: Sequence[RFMMetrics]) -> list[RFMScore]:
    """Score RFM metrics into quintiles (1-5).

    Each dimension's population is sorted once; every customer is then
    scored against the same four cut points. Recency is scored in reverse
    (fewer days since the last purchase scores higher).

    **Note on Small Datasets**: with fewer than five distinct values several
    cut points coincide and the ``<=`` comparisons push tied customers into
    the lowest matching bucket, so not every score value has to appear.

    Returns
    -------
    list[RFMScore]
        Scores for each customer, sorted by customer_id. Empty input
        returns an empty list.
    """
    if not rfm_metrics:
        return []

    recency_cuts = percentile_cut_points(sorted(m.recency_days for m in rfm_metrics))
    frequency_cuts = percentile_cut_points(sorted(m.frequency for m in rfm_metrics))
    monetary_cuts = percentile_cut_points(sorted(m.monetary for m in rfm_metrics))

    rfm_scores: list[RFMScore] = []
    for metrics in rfm_metrics:
        r_score = quintile_score(metrics.recency_days, recency_cuts, reverse=True)
        f_score = quintile_score(metrics.frequency, frequency_cuts)
        m_score = quintile_score(metrics.monetary, monetary_cuts)
        rfm_scores.append(
            RFMScore(
                customer_id=metrics.customer_id,
                r_score=r_score,
                f_score=f_score,
                m_score=m_score,
                rfm_score=f"{r_score}{f_score}{m_score}",
            )
        )

    rfm_scores.sort(key=lambda s: s.customer_id)
    return rfm_scores
