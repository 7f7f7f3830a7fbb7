"""Utilities for transforming Yelp search responses into venue records."""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from foodswipe.core.errors import DecodeFailure
from foodswipe.core.models import Coordinate, VenueRecord

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371008.8


def haversine_meters(a: Coordinate, b: Coordinate) -> float:
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _first_category(categories: Any) -> Optional[str]:
    if not isinstance(categories, list):
        return None
    for category in categories:
        if isinstance(category, dict):
            return _strip_or_none(category.get("title"))
    return None


def _rating(value: Any) -> Optional[float]:
    rating = _safe_float(value)
    if rating is None or math.isnan(rating):
        return None
    return max(0.0, min(5.0, rating))


def to_venue_record(business: Dict[str, Any], reference: Optional[Coordinate]) -> VenueRecord:
    """Normalize a single Yelp business; distance is measured from ``reference`` when given."""
    if not isinstance(business, dict):
        raise DecodeFailure(f"business entry is not an object: {business!r}")

    venue_id = _strip_or_none(business.get("id"))
    name = _strip_or_none(business.get("name"))
    if not venue_id or not name:
        raise DecodeFailure("business entry is missing id or name")

    coords = business.get("coordinates") or {}
    if not isinstance(coords, dict):
        raise DecodeFailure(f"business {venue_id} has malformed coordinates")
    latitude = _safe_float(coords.get("latitude"))
    longitude = _safe_float(coords.get("longitude"))
    if latitude is None or longitude is None:
        raise DecodeFailure(f"business {venue_id} has no coordinates")
    try:
        coordinate = Coordinate(latitude, longitude)
    except ValueError as exc:
        raise DecodeFailure(f"business {venue_id} has invalid coordinates") from exc

    if reference is not None:
        distance = haversine_meters(reference, coordinate)
    else:
        distance = _safe_float(business.get("distance")) or 0.0

    # A missing closed flag counts as open.
    is_open_now = business.get("is_closed") is not True

    return VenueRecord(
        id=venue_id,
        name=name,
        coordinate=coordinate,
        distance_meters=distance,
        category=_first_category(business.get("categories")),
        image_url=_strip_or_none(business.get("image_url")),
        display_phone=_strip_or_none(business.get("display_phone")),
        raw_phone=_strip_or_none(business.get("phone")),
        rating=_rating(business.get("rating")),
        is_open_now=is_open_now,
    )


def to_venue_records(businesses: Iterable[Dict[str, Any]], reference: Optional[Coordinate]) -> List[VenueRecord]:
    """Normalize a page of businesses, keeping one record per id (last occurrence wins)."""
    by_id: Dict[str, VenueRecord] = {}
    for business in businesses:
        record = to_venue_record(business, reference)
        if record.id in by_id:
            logger.debug("Duplicate venue %s within one page", record.id)
        by_id[record.id] = record
    return list(by_id.values())


def merge_pool(pool: List[VenueRecord], page: Iterable[VenueRecord]) -> List[VenueRecord]:
    """Append ``page`` to ``pool``; refetched ids replace the old record in place."""
    merged = list(pool)
    positions = {record.id: index for index, record in enumerate(merged)}
    for record in page:
        index = positions.get(record.id)
        if index is None:
            positions[record.id] = len(merged)
            merged.append(record)
        else:
            merged[index] = record
    return merged
