"""Filtering and best-match ranking of fetched venues."""

from typing import AbstractSet, Iterable, List

from foodswipe.core.models import VenueRecord
from foodswipe.core.search_config import SearchConfig, SortMode

# Best-match weights. These values are part of the ranking contract.
RATING_WEIGHT = 2.0
IMAGE_BONUS = 3.0
DISTANCE_PENALTY_PER_KM = 0.5


def composite_score(record: VenueRecord) -> float:
    """Blend of rating, photo presence and distance; higher ranks first."""
    score = 0.0
    if record.rating is not None and record.rating > 0:
        score += record.rating * RATING_WEIGHT
    if record.has_image:
        score += IMAGE_BONUS
    score -= (record.distance_meters / 1000.0) * DISTANCE_PENALTY_PER_KM
    return score


def passes_rating(record: VenueRecord, minimum_rating: float) -> bool:
    if minimum_rating <= 0:
        return True
    return record.rating is not None and record.rating >= minimum_rating


def rank_candidates(
    all_fetched: Iterable[VenueRecord],
    seen: AbstractSet[str],
    config: SearchConfig,
) -> List[VenueRecord]:
    """Compute the ordered candidate list.

    Pure function of its inputs: unseen venues that meet the minimum rating,
    reordered by :func:`composite_score` in best-match mode and otherwise left
    in upstream order. ``sorted`` is stable, so equal scores keep upstream order.
    """
    filtered = [
        record
        for record in all_fetched
        if record.id not in seen and passes_rating(record, config.minimum_rating)
    ]
    if config.sort_mode is SortMode.BEST_MATCH:
        return sorted(filtered, key=composite_score, reverse=True)
    return filtered
