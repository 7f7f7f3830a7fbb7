"""Applies swipe decisions to the pipeline cursor and the liked store."""

import logging
from enum import Enum
from typing import Optional

from foodswipe.core.liked_store import LikedStore
from foodswipe.core.models import VenueRecord
from foodswipe.core.pipeline import CandidatePipeline

logger = logging.getLogger(__name__)

SWIPE_COUNT_KEY = "swipe_count"
SWIPE_HINT_LIMIT = 20


class Direction(Enum):
    SKIP = "skip"
    LIKE = "like"

    @classmethod
    def parse(cls, value) -> "Direction":
        if isinstance(value, cls):
            return value
        aliases = {"left": cls.SKIP, "right": cls.LIKE}
        key = str(value).strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"direction must be 'skip' or 'like', got {value!r}") from None


class SwipeCounter:
    """Lifetime number of decisions, used to decide when to stop showing the swipe hint."""

    def __init__(self, slots, key: str = SWIPE_COUNT_KEY) -> None:
        self._slots = slots
        self._key = key
        self.value = 0

    def load(self) -> None:
        try:
            raw = self._slots.read(self._key)
            self.value = max(0, int(raw)) if raw else 0
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not read swipe count: %s", exc)
            self.value = 0

    def increment(self) -> None:
        self.value += 1
        try:
            self._slots.write(self._key, str(self.value))
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to persist swipe count: %s", exc)

    @property
    def show_hint(self) -> bool:
        return self.value < SWIPE_HINT_LIMIT


class DecisionEngine:
    def __init__(
        self,
        pipeline: CandidatePipeline,
        liked_store: LikedStore,
        counter: Optional[SwipeCounter] = None,
    ) -> None:
        self._pipeline = pipeline
        self._liked = liked_store
        self._counter = counter

    def decide(self, direction) -> Optional[VenueRecord]:
        """Consume the current candidate; likes also land in the liked store.

        Returns the decided venue, or None when there is nothing left to decide on.
        """
        direction = Direction.parse(direction)
        record = self._pipeline.consume()
        if record is None:
            logger.warning("Ignoring %s decision: no current candidate", direction.value)
            return None

        if direction is Direction.LIKE:
            if self._liked.add(record):
                logger.info("Liked venue %s (%s)", record.id, record.name)
        if self._counter is not None:
            self._counter.increment()
        return record
