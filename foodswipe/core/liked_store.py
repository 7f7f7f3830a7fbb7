"""Persistent, ordered set of liked venues."""

import json
import logging
from typing import Iterator, List, Tuple

from foodswipe.core.models import VenueRecord

logger = logging.getLogger(__name__)

LIKED_SLOT_KEY = "liked_venues"


class LikedStore:
    """Liked venues in the order they were liked, unique by id.

    Every add or remove rewrites the whole slot. Write failures are logged and
    dropped: losing a like is preferable to interrupting the swipe flow.
    """

    def __init__(self, slots, key: str = LIKED_SLOT_KEY) -> None:
        self._slots = slots
        self._key = key
        self._records: List[VenueRecord] = []

    @property
    def records(self) -> Tuple[VenueRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[VenueRecord]:
        return iter(tuple(self._records))

    def contains(self, venue_id: str) -> bool:
        return any(record.id == venue_id for record in self._records)

    def load(self) -> None:
        self._records = []
        try:
            blob = self._slots.read(self._key)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not read liked venues: %s", exc)
            return
        if not blob:
            return

        try:
            entries = json.loads(blob)
        except ValueError as exc:
            logger.warning("Liked venues slot is not valid JSON; starting empty: %s", exc)
            return
        if not isinstance(entries, list):
            logger.warning("Liked venues slot holds %s instead of a list; starting empty", type(entries).__name__)
            return

        records: List[VenueRecord] = []
        try:
            for entry in entries:
                record = VenueRecord.from_dict(entry)
                if all(existing.id != record.id for existing in records):
                    records.append(record)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Liked venues slot holds a malformed entry; starting empty: %s", exc)
            return

        self._records = records
        logger.info("Loaded %d liked venues", len(records))

    def add(self, record: VenueRecord) -> bool:
        """Append ``record`` unless its id is already liked. Saves either way."""
        added = not self.contains(record.id)
        if added:
            self._records.append(record)
        self._save()
        return added

    def remove(self, venue_id: str) -> bool:
        before = len(self._records)
        self._records = [record for record in self._records if record.id != venue_id]
        removed = len(self._records) != before
        self._save()
        return removed

    def _save(self) -> None:
        payload = json.dumps([record.to_dict() for record in self._records], ensure_ascii=False)
        try:
            self._slots.write(self._key, payload)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to persist liked venues: %s", exc)
