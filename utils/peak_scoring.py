"""Scoring functions for the peak ranking.

A peak scorer takes no arguments and returns a SQL expression over the
``BookStats`` columns; the calculator orders and filters by it, so scoring
runs inside the database. The default is a weighted sum of the cumulative
counters with weights taken from settings:

    score = view_count * peak_weight_view
          + recommend_count * peak_weight_recommend
          + monthly_ticket_count * peak_weight_monthly_ticket
          + collection_count * peak_weight_collection

Pass a different scorer to ``RankingCalculator.compute_peak_ranking`` to
change the formula.
"""

from dataclasses import dataclass
from typing import Callable

from sqlalchemy.sql.elements import ColumnElement

from db.config import settings
from db.models import BookStats

PeakScorer = Callable[[], ColumnElement]


@dataclass(frozen=True)
class PeakWeights:
    view: float = 1.0
    recommend: float = 5.0
    monthly_ticket: float = 10.0
    collection: float = 3.0

    @classmethod
    def from_settings(cls) -> "PeakWeights":
        return cls(
            view=settings.peak_weight_view,
            recommend=settings.peak_weight_recommend,
            monthly_ticket=settings.peak_weight_monthly_ticket,
            collection=settings.peak_weight_collection,
        )


def weighted_peak_score(weights: PeakWeights | None = None) -> ColumnElement:
    weights = weights or PeakWeights.from_settings()
    return (
        BookStats.view_count * weights.view
        + BookStats.recommend_count * weights.recommend
        + BookStats.monthly_ticket_count * weights.monthly_ticket
        + BookStats.collection_count * weights.collection
    )


def view_count_score() -> ColumnElement:
    """Rank purely by cumulative reads."""
    return BookStats.view_count * 1.0


DEFAULT_PEAK_SCORER: PeakScorer = weighted_peak_score
