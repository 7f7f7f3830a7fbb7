"""Tunable search parameters and their mapping to Yelp query tokens."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace as dc_replace
from enum import Enum
from typing import Any, Dict, Union

MIN_RADIUS_METERS = 500
MAX_RADIUS_METERS = 40000
RATING_STEP = 0.5

# Changing any of these needs a new upstream query; the rest are local refinements.
REFETCH_FIELDS = ("radius_meters", "category", "open_only")


class Category(Enum):
    ALL = "all"
    RESTAURANT = "restaurant"
    JAPANESE = "japanese"
    KOREAN = "korean"
    ITALIAN = "italian"
    THAI = "thai"
    CHINESE = "chinese"
    AMERICAN = "american"
    CAFE = "cafe"
    FAST_FOOD = "fast_food"
    HOTPOT = "hotpot"
    BBQ = "bbq"
    RAMEN = "ramen"
    IZAKAYA = "izakaya"
    BREAKFAST = "breakfast"
    DESSERT = "dessert"
    BUBBLE_TEA = "bubble_tea"
    VEGETARIAN = "vegetarian"

    @property
    def token(self) -> str:
        return CATEGORY_TOKENS[self]

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]


class SortMode(Enum):
    BEST_MATCH = "best_match"
    DISTANCE = "distance"

    @property
    def token(self) -> str:
        return SORT_TOKENS[self]


CATEGORY_TOKENS: Dict[Category, str] = {
    Category.ALL: "restaurants",
    Category.RESTAURANT: "restaurants",
    Category.JAPANESE: "japanese",
    Category.KOREAN: "korean",
    Category.ITALIAN: "italian",
    Category.THAI: "thai",
    Category.CHINESE: "chinese",
    Category.AMERICAN: "newamerican,tradamerican",
    Category.CAFE: "cafes",
    Category.FAST_FOOD: "hotdogs",  # Yelp files fast food under "hotdogs"
    Category.HOTPOT: "hotpot",
    Category.BBQ: "bbq",
    Category.RAMEN: "ramen",
    Category.IZAKAYA: "izakaya",
    Category.BREAKFAST: "breakfast_brunch",
    Category.DESSERT: "desserts",
    Category.BUBBLE_TEA: "bubbletea",
    Category.VEGETARIAN: "vegetarian",
}

CATEGORY_LABELS: Dict[Category, str] = {
    Category.ALL: "All",
    Category.RESTAURANT: "Restaurants",
    Category.JAPANESE: "Japanese",
    Category.KOREAN: "Korean",
    Category.ITALIAN: "Italian",
    Category.THAI: "Thai",
    Category.CHINESE: "Chinese",
    Category.AMERICAN: "American",
    Category.CAFE: "Cafes",
    Category.FAST_FOOD: "Fast food",
    Category.HOTPOT: "Hot pot",
    Category.BBQ: "Barbecue",
    Category.RAMEN: "Ramen",
    Category.IZAKAYA: "Izakaya",
    Category.BREAKFAST: "Breakfast & brunch",
    Category.DESSERT: "Desserts",
    Category.BUBBLE_TEA: "Bubble tea",
    Category.VEGETARIAN: "Vegetarian",
}

SORT_TOKENS: Dict[SortMode, str] = {
    SortMode.BEST_MATCH: "best_match",
    SortMode.DISTANCE: "distance",
}


def _coerce_enum(enum_cls, value: Union[str, Enum]):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip()
        try:
            return enum_cls(key.lower())
        except ValueError:
            pass
        try:
            return enum_cls[key.upper()]
        except KeyError:
            pass
    choices = ", ".join(member.value for member in enum_cls)
    raise ValueError(f"{value!r} is not a valid {enum_cls.__name__}; expected one of: {choices}")


@dataclass(frozen=True)
class SearchConfig:
    radius_meters: int = 3000
    category: Category = Category.ALL
    sort_mode: SortMode = SortMode.DISTANCE
    open_only: bool = False
    minimum_rating: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", _coerce_enum(Category, self.category))
        object.__setattr__(self, "sort_mode", _coerce_enum(SortMode, self.sort_mode))

        try:
            radius = int(self.radius_meters)
        except (TypeError, ValueError):
            raise ValueError(f"radius_meters must be an integer, got {self.radius_meters!r}") from None
        if not MIN_RADIUS_METERS <= radius <= MAX_RADIUS_METERS:
            raise ValueError(
                f"radius_meters must be between {MIN_RADIUS_METERS} and {MAX_RADIUS_METERS}, got {radius}"
            )
        object.__setattr__(self, "radius_meters", radius)

        try:
            rating = float(self.minimum_rating)
        except (TypeError, ValueError):
            raise ValueError(f"minimum_rating must be numeric, got {self.minimum_rating!r}") from None
        if not 0.0 <= rating <= 5.0 or (rating / RATING_STEP) != int(rating / RATING_STEP):
            raise ValueError(f"minimum_rating must be between 0 and 5 in steps of {RATING_STEP}, got {rating}")
        object.__setattr__(self, "minimum_rating", rating)

        if not isinstance(self.open_only, bool):
            raise ValueError(f"open_only must be a boolean, got {self.open_only!r}")

    def replace(self, **changes: Any) -> "SearchConfig":
        """Return a validated copy with ``changes`` applied."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"unknown search settings: {', '.join(unknown)}")
        return dc_replace(self, **changes)

    def requires_refetch(self, other: "SearchConfig") -> bool:
        return any(getattr(self, name) != getattr(other, name) for name in REFETCH_FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "radius_meters": self.radius_meters,
            "category": self.category.value,
            "sort_mode": self.sort_mode.value,
            "open_only": self.open_only,
            "minimum_rating": self.minimum_rating,
        }
