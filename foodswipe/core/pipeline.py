"""Stateful candidate pipeline: fetch, dedup, filter, rank and cursor management."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set

from foodswipe.core.errors import PipelineError
from foodswipe.core.models import Coordinate, VenueRecord
from foodswipe.core.search_config import SearchConfig
from foodswipe.etl.ranking import rank_candidates
from foodswipe.etl.transform import merge_pool, to_venue_records

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


@dataclass
class SessionState:
    """Everything one browsing session knows. Replaced wholesale by a fresh search."""

    config: SearchConfig = field(default_factory=SearchConfig)
    candidates: List[VenueRecord] = field(default_factory=list)
    current_index: int = 0
    all_fetched: List[VenueRecord] = field(default_factory=list)
    next_offset: int = 0
    seen: Set[str] = field(default_factory=set)
    reference: Optional[Coordinate] = None


class CandidatePipeline:
    """Owns the session state and is the only thing that mutates it.

    ``start_search`` and ``load_more`` each await one gateway call, run in a
    worker thread. Only one of them may be in flight; an overlapping call is
    ignored. Gateway failures are kept in ``last_error`` and never touch the
    existing state, so callers can keep showing what they already have.
    """

    def __init__(self, gateway, page_size: int = DEFAULT_PAGE_SIZE, config: Optional[SearchConfig] = None) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._gateway = gateway
        self._page_size = page_size
        self._state = SessionState(config=config or SearchConfig())
        self.is_loading = False
        self.last_error: Optional[PipelineError] = None
        self.pagination_exhausted = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def config(self) -> SearchConfig:
        return self._state.config

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def is_exhausted(self) -> bool:
        return self._state.current_index >= len(self._state.candidates)

    def current_candidate(self) -> Optional[VenueRecord]:
        state = self._state
        if state.current_index >= len(state.candidates):
            return None
        return state.candidates[state.current_index]

    def record_error(self, exc: PipelineError) -> None:
        logger.warning("Pipeline error (%s): %s", type(exc).__name__, exc)
        self.last_error = exc

    async def _fetch_page(self, config: SearchConfig, reference: Coordinate, offset: int) -> List[VenueRecord]:
        businesses = await asyncio.to_thread(
            self._gateway.search,
            reference,
            config.radius_meters,
            config.category.token,
            self._page_size,
            offset,
            config.sort_mode.token,
            config.open_only,
        )
        return to_venue_records(businesses, reference)

    async def start_search(self, config: SearchConfig, reference: Coordinate, reset_seen: bool = True) -> bool:
        """Fetch page 0 and replace the session. Returns False when ignored or failed."""
        if self.is_loading:
            logger.info("Ignoring search request while another fetch is in flight")
            return False

        self.is_loading = True
        self.last_error = None
        try:
            page = await self._fetch_page(config, reference, 0)
        except PipelineError as exc:
            self.record_error(exc)
            return False
        finally:
            self.is_loading = False

        seen = set() if reset_seen else set(self._state.seen)
        self._state = SessionState(
            config=config,
            all_fetched=page,
            next_offset=0,
            seen=seen,
            reference=reference,
        )
        self.pagination_exhausted = False
        self.apply_filters_and_sort(reset_cursor=True)
        logger.info(
            "Search fetched %d venues, %d candidates (seen=%d)",
            len(page),
            len(self._state.candidates),
            len(seen),
        )
        return True

    async def load_more(self) -> bool:
        """Fetch the next page and append it. Returns True only when new venues arrived."""
        if self._state.reference is None:
            logger.debug("load_more called before any successful search; ignoring")
            return False
        if self.is_loading:
            logger.info("Ignoring load_more while another fetch is in flight")
            return False

        state = self._state
        offset = state.next_offset + self._page_size
        self.is_loading = True
        self.last_error = None
        try:
            page = await self._fetch_page(state.config, state.reference, offset)
        except PipelineError as exc:
            self.record_error(exc)
            return False
        finally:
            self.is_loading = False

        if not page:
            logger.info("No more venues past offset %d", offset)
            self.pagination_exhausted = True
            return False

        state = self._state
        state.all_fetched = merge_pool(state.all_fetched, page)
        state.next_offset = offset
        self.apply_filters_and_sort(reset_cursor=False)
        logger.info("Loaded %d more venues at offset %d", len(page), offset)
        return True

    def apply_filters_and_sort(self, reset_cursor: bool = True, config: Optional[SearchConfig] = None) -> None:
        """Recompute ``candidates`` from the fetched pool, optionally adopting ``config`` first.

        Without ``reset_cursor`` the cursor may end up past the last candidate,
        which reads as exhausted.
        """
        state = self._state
        if config is not None:
            state.config = config
        state.candidates = rank_candidates(state.all_fetched, state.seen, state.config)
        if reset_cursor:
            state.current_index = 0

    def consume(self) -> Optional[VenueRecord]:
        """Mark the current candidate as seen and step past it."""
        record = self.current_candidate()
        if record is None:
            return None
        self._state.seen.add(record.id)
        self._state.current_index += 1
        return record
