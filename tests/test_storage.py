from foodswipe.core import storage
from foodswipe.core.config import Settings


def test_file_store_round_trip(tmp_path):
    store = storage.JsonFileSlotStore(tmp_path / "data")

    assert store.read("liked_venues") is None
    store.write("liked_venues", '[{"id": "A"}]')
    store.write("liked_venues", "[]")

    assert store.read("liked_venues") == "[]"
    assert sorted(p.name for p in (tmp_path / "data").iterdir()) == ["liked_venues.json"]


def test_file_store_keeps_slots_separate(tmp_path):
    store = storage.JsonFileSlotStore(tmp_path)
    store.write("a", "1")
    store.write("b", "2")
    assert store.read("a") == "1"
    assert store.read("b") == "2"


def test_build_slot_store_backends(tmp_path, monkeypatch):
    file_store = storage.build_slot_store(Settings(yelp_api_key="k", data_dir=str(tmp_path)))
    assert isinstance(file_store, storage.JsonFileSlotStore)

    memory_store = storage.build_slot_store(Settings(yelp_api_key="k", store_backend="memory"))
    assert isinstance(memory_store, storage.InMemorySlotStore)

    unknown = storage.build_slot_store(Settings(yelp_api_key="k", store_backend="redis", data_dir=str(tmp_path)))
    assert isinstance(unknown, storage.JsonFileSlotStore)


def test_build_slot_store_postgres():
    from foodswipe.core.db import PostgresSlotStore

    store = storage.build_slot_store(Settings(yelp_api_key="k", store_backend="postgres"))
    assert isinstance(store, PostgresSlotStore)
