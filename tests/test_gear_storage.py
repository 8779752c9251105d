"""Equipment store, taxonomy and record model tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from logic.validation import GearItemInput, GearPerformanceInput, TripInput
from models import taxonomy
from models.gear_item import GearItem, GearPerformance
from tools import gear_store
from tools.gear_store import NotFoundError, SQLiteGearStore


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteGearStore:
    return SQLiteGearStore(tmp_path / "gear.db")


def _gear(brand: str = "Arc'teryx", model: str = "Beta AR", category: str = "shell", **extra) -> GearItemInput:
    return GearItemInput.model_validate({"brand": brand, "model": model, "category": category, **extra})


def test_taxonomy_contains_all_categories() -> None:
    assert len(taxonomy.GEAR_CATEGORIES) == 15
    assert {"base_layer", "headwear", "specialized_equipment"}.issubset(taxonomy.GEAR_CATEGORIES)
    assert taxonomy.validate_category("Sleep System") == "sleep_system"
    with pytest.raises(ValueError):
        taxonomy.validate_category("midlayer")


def test_gear_item_rejects_unknown_category() -> None:
    with pytest.raises(ValueError):
        GearItem(id="1", brand="Black Diamond", model="Spot", category="lighting")
    with pytest.raises(ValidationError):
        _gear(category="lighting")


def test_rating_bounds_are_enforced() -> None:
    for rating in (0, 11, -3):
        with pytest.raises(ValidationError):
            GearPerformanceInput(gear_id="1", rating=rating)
        with pytest.raises(ValueError):
            GearPerformance(id="p", gear_id="1", rating=rating)

    assert GearPerformanceInput(gear_id="1", rating=1).rating == 1
    assert GearPerformanceInput(gear_id="1", rating=10).rating == 10


def test_create_and_fetch_gear_item(store: SQLiteGearStore) -> None:
    created = store.create_gear_item(
        _gear(size="M", cost=599.0, weightGrams=460, specifications={"fabric": "Gore-Tex Pro"})
    )

    fetched = store.get_gear_item(created.id)
    assert fetched is not None
    assert fetched.brand == "Arc'teryx"
    assert fetched.status == "active"
    assert fetched.weight_grams == 460
    assert fetched.specifications == {"fabric": "Gore-Tex Pro"}
    assert fetched.created_at

    payload = fetched.to_api()
    assert payload["weightGrams"] == 460
    assert payload["purchaseDate"] is None


def test_get_gear_items_filters_by_category(store: SQLiteGearStore) -> None:
    store.create_gear_item(_gear())
    store.create_gear_item(_gear("Smartwool", "Merino 150", "base_layer"))

    assert len(store.get_gear_items()) == 2
    base_layers = store.get_gear_items("base_layer")
    assert [item.model for item in base_layers] == ["Merino 150"]


def test_update_gear_item_applies_patch(store: SQLiteGearStore) -> None:
    created = store.create_gear_item(_gear())

    updated = store.update_gear_item(created.id, {"status": "retired", "id": "other", "size": "L"})

    assert updated.id == created.id
    assert updated.status == "retired"
    assert store.get_gear_item(created.id).size == "L"
    with pytest.raises(ValueError):
        store.update_gear_item(created.id, {"category": "lighting"})


def test_update_missing_rows_raise_not_found(store: SQLiteGearStore) -> None:
    with pytest.raises(NotFoundError):
        store.update_gear_item("missing", {"status": "retired"})
    with pytest.raises(NotFoundError):
        store.update_trip("missing", {"notes": "n/a"})


def test_delete_does_not_cascade_to_performance(store: SQLiteGearStore) -> None:
    created = store.create_gear_item(_gear())
    store.create_gear_performance(GearPerformanceInput(gear_id=created.id, rating=8))

    assert store.delete_gear_item(created.id) is True
    assert store.delete_gear_item(created.id) is False
    assert store.get_gear_item(created.id) is None
    assert len(store.get_gear_performance(created.id)) == 1


def test_performance_defaults_date_logged(store: SQLiteGearStore) -> None:
    record = store.create_gear_performance(
        GearPerformanceInput.model_validate(
            {"gearId": "42", "rating": 7, "performanceAspects": {"comfort": 8}}
        )
    )

    assert record.date_logged == record.created_at[:10]
    assert store.get_gear_performance("42")[0].performance_aspects == {"comfort": 8}
    assert len(store.list_gear_performance()) == 1


def test_trip_lifecycle(store: SQLiteGearStore) -> None:
    trip = store.create_trip(
        TripInput.model_validate(
            {"name": "Tour du Mont Blanc", "location": "Chamonix", "activities": ["hiking"], "gearUsed": ["1"]}
        )
    )

    assert store.get_trip(trip.id).activities == ["hiking"]
    updated = store.update_trip(trip.id, {"notes": "Book refuges early"})
    assert updated.notes == "Book refuges early"
    assert updated.gear_used == ["1"]
    assert [t.name for t in store.get_trips()] == ["Tour du Mont Blanc"]
    assert store.get_trip("missing") is None


def test_ids_are_unique_and_increasing(store: SQLiteGearStore) -> None:
    ids = [store.create_gear_item(_gear(model=f"Model {i}")).id for i in range(25)]

    assert len(set(ids)) == len(ids)
    assert [int(value) for value in ids] == sorted(int(value) for value in ids)


def test_ids_stay_increasing_after_reopen(tmp_path: Path) -> None:
    first = SQLiteGearStore(tmp_path / "gear.db")
    last = first.create_gear_item(_gear()).id

    reopened = SQLiteGearStore(tmp_path / "gear.db")
    assert int(reopened.create_gear_item(_gear()).id) > int(last)


def test_chat_history_is_chronological_and_limited(store: SQLiteGearStore) -> None:
    for i in range(5):
        store.create_chat_message(f"message {i}", f"response {i}", {"search_gear": {"index": i}} if i % 2 else None)

    history = store.get_chat_history(3)

    assert [entry.message for entry in history] == ["message 2", "message 3", "message 4"]
    timestamps = [entry.timestamp for entry in history]
    assert timestamps == sorted(timestamps)
    assert history[1].function_calls == {"search_gear": {"index": 3}}
    assert history[0].to_api()["functionCalls"] is None
    assert store.get_chat_history(0) == []


def test_chat_message_requires_text(store: SQLiteGearStore) -> None:
    with pytest.raises(ValueError):
        store.create_chat_message("")


def test_stores_sharing_a_file_never_overwrite_each_other(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    server_store = SQLiteGearStore(tmp_path / "gear.db")
    cli_store = SQLiteGearStore(tmp_path / "gear.db")
    monkeypatch.setattr(gear_store.time, "time", lambda: 2_000_000_000.0)

    houdini = server_store.create_gear_item(_gear("Patagonia", "Houdini"))
    boots = cli_store.create_gear_item(_gear("Salomon", "X Ultra 4", "footwear"))
    trip = cli_store.create_trip(TripInput(name="Tour du Mont Blanc"))
    entry = server_store.create_chat_message("hello")

    assert houdini.id == "2000000000000"
    assert boots.id == "2000000000001"
    assert cli_store.get_trip(trip.id).name == "Tour du Mont Blanc"
    assert [m.message for m in cli_store.get_chat_history(5)] == ["hello"]
    assert entry.id
    assert sorted(item.model for item in server_store.get_gear_items()) == ["Houdini", "X Ultra 4"]


def test_insert_conflict_does_not_replace_existing_row(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    first = SQLiteGearStore(tmp_path / "gear.db")
    second = SQLiteGearStore(tmp_path / "gear.db")
    monkeypatch.setattr(gear_store.time, "time", lambda: 2_000_000_000.0)

    first.create_trip(TripInput(name="Laugavegur"))
    second.create_trip(TripInput(name="Haute Route"))

    assert sorted(trip.name for trip in first.get_trips()) == ["Haute Route", "Laugavegur"]
