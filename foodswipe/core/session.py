"""Session facade: wires the pipeline to its collaborators and publishes snapshots."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from foodswipe.core.config import Settings, get_settings
from foodswipe.core.decisions import DecisionEngine, SwipeCounter
from foodswipe.core.errors import LocationUnavailable
from foodswipe.core.liked_store import LikedStore
from foodswipe.core.models import VenueRecord
from foodswipe.core.pipeline import CandidatePipeline
from foodswipe.core.search_config import SearchConfig
from foodswipe.core.storage import build_slot_store
from foodswipe.vendors.location import build_location_provider
from foodswipe.vendors.yelp import YelpGateway

logger = logging.getLogger(__name__)


def venue_to_payload(record: VenueRecord) -> Dict[str, Any]:
    payload = record.to_dict()
    payload["directions_url"] = record.directions_url
    payload["tel_url"] = record.tel_url
    return payload


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for whatever surface displays it."""

    current: Optional[VenueRecord]
    remaining: int
    is_exhausted: bool
    has_candidates: bool
    is_loading: bool
    pagination_exhausted: bool
    last_error: Optional[str]
    error_kind: Optional[str]
    liked: Tuple[VenueRecord, ...]
    config: SearchConfig
    show_swipe_hint: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": venue_to_payload(self.current) if self.current else None,
            "remaining": self.remaining,
            "is_exhausted": self.is_exhausted,
            "has_candidates": self.has_candidates,
            "is_loading": self.is_loading,
            "pagination_exhausted": self.pagination_exhausted,
            "last_error": self.last_error,
            "error_kind": self.error_kind,
            "liked": [venue_to_payload(record) for record in self.liked],
            "config": self.config.to_dict(),
            "show_swipe_hint": self.show_swipe_hint,
        }


Listener = Callable[[SessionSnapshot], None]


class SwipeSession:
    """What a consumption surface talks to.

    Holds the desired ``SearchConfig`` and routes changes to it: category,
    radius and open-only need a new upstream query, while sort mode and
    minimum rating only re-rank what was already fetched. Listeners get a
    fresh snapshot after every mutation.
    """

    def __init__(
        self,
        pipeline: CandidatePipeline,
        liked_store: LikedStore,
        location_provider,
        counter: Optional[SwipeCounter] = None,
        config: Optional[SearchConfig] = None,
    ) -> None:
        self._pipeline = pipeline
        self._liked = liked_store
        self._location = location_provider
        self._counter = counter
        self._decisions = DecisionEngine(pipeline, liked_store, counter)
        self._config = config or pipeline.config
        self._listeners: List[Listener] = []

        self._liked.load()
        if self._counter is not None:
            self._counter.load()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        config: Optional[SearchConfig] = None,
        location_provider=None,
    ) -> "SwipeSession":
        settings = settings or get_settings()
        slots = build_slot_store(settings)
        pipeline = CandidatePipeline(YelpGateway(settings), page_size=settings.page_size, config=config)
        return cls(
            pipeline,
            LikedStore(slots),
            location_provider or build_location_provider(settings),
            counter=SwipeCounter(slots),
            config=config,
        )

    @property
    def pipeline(self) -> CandidatePipeline:
        return self._pipeline

    @property
    def config(self) -> SearchConfig:
        return self._config

    @property
    def liked(self) -> Tuple[VenueRecord, ...]:
        return self._liked.records

    def snapshot(self) -> SessionSnapshot:
        pipeline = self._pipeline
        state = pipeline.state
        error = pipeline.last_error
        return SessionSnapshot(
            current=pipeline.current_candidate(),
            remaining=max(0, len(state.candidates) - state.current_index),
            is_exhausted=pipeline.is_exhausted,
            has_candidates=bool(state.candidates),
            is_loading=pipeline.is_loading,
            pagination_exhausted=pipeline.pagination_exhausted,
            last_error=str(error) if error else None,
            error_kind=type(error).__name__ if error else None,
            liked=self._liked.records,
            config=self._config,
            show_swipe_hint=self._counter.show_hint if self._counter is not None else False,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("Session listener %r failed", listener)

    async def start_search(self, reset_seen: bool = True) -> bool:
        """Resolve the reference location, then run a fresh search with the current config."""
        if self._pipeline.is_loading:
            logger.info("Search already in flight; ignoring start_search")
            return False
        try:
            reference = await asyncio.to_thread(self._location.get_current_location)
        except LocationUnavailable as exc:
            self._pipeline.record_error(exc)
            self._notify()
            return False

        replaced = await self._pipeline.start_search(self._config, reference, reset_seen=reset_seen)
        self._notify()
        return replaced

    async def load_more(self) -> bool:
        loaded = await self._pipeline.load_more()
        if loaded:
            # Re-ranking drops seen venues, so the kept cursor would skip undecided ones.
            # Everything before it was decided, so index 0 is the first undecided venue.
            self._pipeline.apply_filters_and_sort(reset_cursor=True)
        self._notify()
        return loaded

    def decide(self, direction) -> Optional[VenueRecord]:
        record = self._decisions.decide(direction)
        self._notify()
        return record

    def remove_liked(self, venue_id: str) -> bool:
        removed = self._liked.remove(venue_id)
        self._notify()
        return removed

    async def update_config(self, **changes: Any) -> SearchConfig:
        """Apply setting changes; raises ValueError for invalid values before touching anything.

        Routing compares against the config the pipeline last fetched with, so a
        refetch that failed or was ignored is retried on the next change.
        """
        previous = self._config
        updated = previous.replace(**changes)
        self._config = updated
        fetched = self._pipeline.config

        if updated.category != fetched.category:
            await self.start_search(reset_seen=True)
        elif updated.requires_refetch(fetched):
            await self.start_search(reset_seen=False)
        elif updated != previous:
            refined = fetched.replace(sort_mode=updated.sort_mode, minimum_rating=updated.minimum_rating)
            self._pipeline.apply_filters_and_sort(reset_cursor=True, config=refined)
            self._notify()
        return updated
