import asyncio

import pytest

from foodswipe.core.config import Settings
from foodswipe.core.decisions import SwipeCounter
from foodswipe.core.errors import LocationUnavailable, TransportFailure
from foodswipe.core.liked_store import LikedStore
from foodswipe.core.pipeline import CandidatePipeline
from foodswipe.core.search_config import Category, SearchConfig, SortMode
from foodswipe.core.session import SwipeSession
from foodswipe.core.storage import InMemorySlotStore
from foodswipe.vendors.location import FixedLocationProvider


class RecordingGateway:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    def search(self, center, radius_meters, category_token, limit, offset, sort_token, open_only):
        self.calls.append(dict(radius_meters=radius_meters, category_token=category_token, offset=offset, open_only=open_only))
        page = self.pages.get(offset, [])
        if isinstance(page, Exception):
            raise page
        return list(page)


class BrokenLocation:
    def get_current_location(self):
        raise LocationUnavailable("permission denied")


@pytest.fixture
def gateway(business_factory):
    return RecordingGateway(
        {
            0: [
                business_factory("A", rating=4.5, meters=500),
                business_factory("B", meters=100),
                business_factory("C", rating=5.0, image=False, meters=2000),
            ]
        }
    )


@pytest.fixture
def slots():
    return InMemorySlotStore()


@pytest.fixture
def session(gateway, origin, slots):
    pipeline = CandidatePipeline(gateway, page_size=3)
    return SwipeSession(pipeline, LikedStore(slots), FixedLocationProvider(origin), counter=SwipeCounter(slots))


def run(coro):
    return asyncio.run(coro)


def test_snapshot_before_search(session):
    snapshot = session.snapshot()
    assert snapshot.current is None
    assert snapshot.has_candidates is False
    assert snapshot.is_exhausted is True
    assert snapshot.last_error is None
    assert snapshot.show_swipe_hint is True


def test_start_search_and_decide(session):
    assert run(session.start_search()) is True
    assert session.snapshot().current.id == "A"

    session.decide("like")
    session.decide("skip")

    snapshot = session.snapshot()
    assert snapshot.current.id == "C"
    assert snapshot.remaining == 1
    assert [r.id for r in snapshot.liked] == ["A"]


def test_location_failure_becomes_last_error(gateway, slots):
    session = SwipeSession(CandidatePipeline(gateway, page_size=3), LikedStore(slots), BrokenLocation())

    assert run(session.start_search()) is False

    snapshot = session.snapshot()
    assert snapshot.error_kind == "LocationUnavailable"
    assert "permission denied" in snapshot.last_error
    assert gateway.calls == []


def test_gateway_failure_keeps_cards(session, gateway):
    run(session.start_search())
    gateway.pages[0] = TransportFailure("offline")

    run(session.start_search())

    snapshot = session.snapshot()
    assert snapshot.error_kind == "TransportFailure"
    assert snapshot.current.id == "A"


def test_liked_are_loaded_at_startup(session, gateway, origin, slots):
    run(session.start_search())
    session.decide("like")

    restarted = SwipeSession(CandidatePipeline(gateway, page_size=3), LikedStore(slots), FixedLocationProvider(origin))
    assert [r.id for r in restarted.liked] == ["A"]


def test_remove_liked(session):
    run(session.start_search())
    session.decide("like")

    assert session.remove_liked("A") is True
    assert session.remove_liked("A") is False
    assert session.snapshot().liked == ()


def test_local_refinements_do_not_refetch(session, gateway):
    run(session.start_search())
    session.decide("skip")

    run(session.update_config(sort_mode=SortMode.BEST_MATCH))
    assert len(gateway.calls) == 1
    assert [r.id for r in session.pipeline.state.candidates] == ["C", "B"]
    assert session.pipeline.state.current_index == 0

    run(session.update_config(minimum_rating=4.0))
    assert len(gateway.calls) == 1
    assert [r.id for r in session.pipeline.state.candidates] == ["C"]


def test_category_change_refetches_and_resets_seen(session, gateway):
    run(session.start_search())
    session.decide("skip")

    run(session.update_config(category=Category.RAMEN))

    assert len(gateway.calls) == 2
    assert gateway.calls[-1]["category_token"] == "ramen"
    assert session.pipeline.state.seen == set()
    assert session.snapshot().current.id == "A"


@pytest.mark.parametrize("changes", [{"radius_meters": 10000}, {"open_only": True}])
def test_query_changes_refetch_but_keep_seen(session, gateway, changes):
    run(session.start_search())
    session.decide("skip")

    run(session.update_config(**changes))

    assert len(gateway.calls) == 2
    assert session.pipeline.state.seen == {"A"}
    assert session.snapshot().current.id == "B"


def test_invalid_config_change_leaves_session_alone(session, gateway):
    run(session.start_search())
    with pytest.raises(ValueError):
        run(session.update_config(radius_meters=100))
    assert session.config == SearchConfig()
    assert len(gateway.calls) == 1


def test_listeners_receive_snapshots(session):
    received = []
    unsubscribe = session.subscribe(received.append)

    run(session.start_search())
    session.decide("skip")
    unsubscribe()
    session.decide("skip")

    assert len(received) == 2
    assert received[-1].current.id == "B"


def test_failing_listener_does_not_break_session(session, caplog):
    def broken(snapshot):
        raise RuntimeError("render crashed")

    session.subscribe(broken)
    with caplog.at_level("ERROR"):
        assert run(session.start_search()) is True
    assert "listener" in " ".join(caplog.messages)


def test_snapshot_to_dict(session):
    run(session.start_search())
    data = session.snapshot().to_dict()
    assert data["current"]["id"] == "A"
    assert data["current"]["directions_url"].startswith("https://www.google.com/maps/dir/")
    assert data["config"]["category"] == "all"
    assert data["remaining"] == 3


def test_from_settings_wires_collaborators():
    settings = Settings(yelp_api_key="key", store_backend="memory", page_size=20, default_latitude=1.0, default_longitude=2.0)

    session = SwipeSession.from_settings(settings)

    assert session.pipeline.page_size == 20
    assert session.snapshot().liked == ()


def test_load_more_after_exhaustion_shows_new_page(business_factory, origin, slots):
    gateway = RecordingGateway({0: [business_factory("A"), business_factory("B")], 2: [business_factory("C")]})
    session = SwipeSession(CandidatePipeline(gateway, page_size=2), LikedStore(slots), FixedLocationProvider(origin))
    run(session.start_search())
    session.decide("skip")
    session.decide("skip")
    assert session.snapshot().is_exhausted is True

    assert run(session.load_more()) is True

    assert session.snapshot().current.id == "C"
    assert gateway.calls[-1]["offset"] == 2


def test_load_more_shows_whole_page_when_filters_shrank_the_deck(business_factory, origin, slots):
    config = SearchConfig(minimum_rating=4.0)
    gateway = RecordingGateway(
        {
            0: [business_factory("A", rating=4.5), business_factory("B"), business_factory("C", rating=5.0)],
            3: [business_factory("D", rating=4.0), business_factory("E", rating=4.5), business_factory("F", rating=5.0)],
        }
    )
    session = SwipeSession(
        CandidatePipeline(gateway, page_size=3, config=config),
        LikedStore(slots),
        FixedLocationProvider(origin),
        config=config,
    )
    run(session.start_search())
    session.decide("skip")
    session.decide("skip")

    assert run(session.load_more()) is True

    assert [r.id for r in session.pipeline.state.candidates] == ["D", "E", "F"]
    assert session.snapshot().current.id == "D"
    assert session.snapshot().remaining == 3


def test_load_more_mid_deck_keeps_current_card(session, gateway, business_factory):
    run(session.start_search())
    session.decide("skip")
    gateway.pages[3] = [business_factory("D")]

    assert run(session.load_more()) is True

    assert session.snapshot().current.id == "B"
    assert [r.id for r in session.pipeline.state.candidates] == ["B", "C", "D"]


def test_failed_refetch_is_retried_on_next_change(session, gateway):
    run(session.start_search())
    first_page = gateway.pages[0]
    gateway.pages[0] = TransportFailure("offline")

    run(session.update_config(category=Category.RAMEN))
    assert session.snapshot().error_kind == "TransportFailure"
    assert session.pipeline.config.category is Category.ALL

    run(session.load_more())
    assert gateway.calls[-1]["offset"] == 3
    assert gateway.calls[-1]["category_token"] == gateway.calls[0]["category_token"]

    gateway.pages[0] = first_page
    run(session.update_config(sort_mode=SortMode.BEST_MATCH))

    assert gateway.calls[-1]["category_token"] == "ramen"
    assert session.pipeline.config.category is Category.RAMEN
    assert session.pipeline.config.sort_mode is SortMode.BEST_MATCH
    assert session.snapshot().last_error is None


def test_ignored_refetch_runs_on_next_change(session, gateway):
    run(session.start_search())
    session.pipeline.is_loading = True
    run(session.update_config(radius_meters=20000))
    session.pipeline.is_loading = False

    assert session.pipeline.config.radius_meters == 3000
    assert len(gateway.calls) == 1

    run(session.update_config(minimum_rating=4.0))

    assert len(gateway.calls) == 2
    assert gateway.calls[-1]["radius_meters"] == 20000
    assert session.pipeline.config.minimum_rating == 4.0
