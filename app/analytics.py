"""
Live survey analytics, computed from the stored response records on every read.

Nothing computed here is written back: the ``analytics`` column of a survey only
holds the seed shape created together with the survey.
"""

import copy
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional

from .models import Sentiment

PROMOTER_MIN_SCORE = 9
DETRACTOR_MAX_SCORE = 6

ANALYTICS_SEED: Dict[str, Any] = {
    "total_responses": 0,
    "completion_rate": 0,
    "average_time": 0,
    "nps_score": None,
    "sentiment_breakdown": {"positive": 0, "neutral": 0, "negative": 0},
}


def analytics_seed() -> Dict[str, Any]:
    return copy.deepcopy(ANALYTICS_SEED)


def round_half_up(value: float, digits: int = 0):
    """Round like a person would (2.5 -> 3, -2.5 -> -3), not banker's rounding."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def _value(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def compute_nps(scores: Iterable[int]) -> Optional[int]:
    """Net Promoter Score over the given 0-10 scores, None without scores."""
    scores = list(scores)
    if not scores:
        return None
    promoters = sum(1 for score in scores if score >= PROMOTER_MIN_SCORE)
    detractors = sum(1 for score in scores if score <= DETRACTOR_MAX_SCORE)
    return round_half_up((promoters - detractors) / len(scores) * 100)


def compute_analytics(
    responses: Iterable[Any],
    computed_at: datetime,
    seed: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Aggregate one survey's responses into its analytics snapshot.

    ``responses`` may be ORM rows or plain dicts exposing ``nps_score``,
    ``sentiment`` and ``completion_time``. Computed values are merged over
    ``seed`` so unknown seed keys survive.
    """
    total = 0
    completion_times = []
    nps_scores = []
    sentiment_breakdown = {s.value: 0 for s in Sentiment}

    for record in responses:
        total += 1
        completion_time = _value(record, "completion_time")
        if completion_time is not None:
            completion_times.append(completion_time)
        nps_score = _value(record, "nps_score")
        if nps_score is not None:
            nps_scores.append(nps_score)
        sentiment = _value(record, "sentiment")
        if sentiment is not None:
            key = sentiment.value if isinstance(sentiment, Sentiment) else sentiment
            if key in sentiment_breakdown:
                sentiment_breakdown[key] += 1

    completion_rate = (
        round_half_up(len(completion_times) / total * 100, 2) if total > 0 else 0
    )
    average_time = (
        round_half_up(sum(completion_times) / len(completion_times))
        if completion_times
        else 0
    )

    analytics = dict(seed or {})
    analytics.update(
        {
            "total_responses": total,
            "completion_rate": completion_rate,
            "average_time": average_time,
            "nps_score": compute_nps(nps_scores),
            "sentiment_breakdown": sentiment_breakdown,
            "last_updated": computed_at.isoformat(),
        }
    )
    return analytics
