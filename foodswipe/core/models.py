"""Core data models shared by the candidate pipeline and the liked store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

_DIRECTIONS_URL = "https://www.google.com/maps/dir/?api=1&destination={lat},{lng}"


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")


@dataclass(frozen=True, slots=True, eq=False)
class VenueRecord:
    """Normalized snapshot of a venue returned by the search service.

    Identity is the upstream ``id`` alone: two records with the same id are the
    same venue even if their other fields differ.
    """

    id: str
    name: str
    coordinate: Coordinate
    distance_meters: float = 0.0
    category: Optional[str] = None
    image_url: Optional[str] = None
    display_phone: Optional[str] = None
    raw_phone: Optional[str] = None
    rating: Optional[float] = None
    is_open_now: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("venue id must not be empty")
        if self.rating is not None and not 0.0 <= self.rating <= 5.0:
            raise ValueError(f"rating must lie in [0, 5], got {self.rating}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VenueRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def has_image(self) -> bool:
        return self.image_url is not None

    @property
    def directions_url(self) -> str:
        return _DIRECTIONS_URL.format(lat=self.coordinate.latitude, lng=self.coordinate.longitude)

    @property
    def tel_url(self) -> Optional[str]:
        if not self.raw_phone:
            return None
        return "tel:" + quote(self.raw_phone, safe="+")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "image_url": self.image_url,
            "latitude": self.coordinate.latitude,
            "longitude": self.coordinate.longitude,
            "distance_meters": self.distance_meters,
            "display_phone": self.display_phone,
            "raw_phone": self.raw_phone,
            "rating": self.rating,
            "is_open_now": self.is_open_now,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VenueRecord":
        """Rebuild a record written by :meth:`to_dict`; raises on malformed input."""
        rating = data.get("rating")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            coordinate=Coordinate(float(data["latitude"]), float(data["longitude"])),
            distance_meters=float(data.get("distance_meters") or 0.0),
            category=data.get("category"),
            image_url=data.get("image_url"),
            display_phone=data.get("display_phone"),
            raw_phone=data.get("raw_phone"),
            rating=float(rating) if rating is not None else None,
            is_open_now=bool(data.get("is_open_now", True)),
        )
