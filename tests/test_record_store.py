import json
from datetime import datetime

import pytest

from core.record_store import (
    ACTIVE_WEEK_KEY,
    CHECKIN_PREFIX,
    CHECKLIST_PREFIX,
    JsonFileStore,
    MemoryStore,
    StoreUnavailableError,
    WellnessRecords,
    day_nutrition,
    parse_number,
)
from helpers import day, put_checkin

NOW = datetime(2024, 3, 10, 21, 30)


def test_parse_number_is_tolerant():
    assert parse_number(7) == 7.0
    assert parse_number("7.5h") == 7.5
    assert parse_number("approx -2 points") == -2.0
    assert parse_number("mucho") is None
    assert parse_number(None) is None
    assert parse_number(True) is None
    assert parse_number(float("nan")) is None


def test_checkin_round_trip_through_legacy_aliases(records):
    """
    Regression test:
    - written with the Spanish legacy keys and string numbers
    - read back clamped, field for field
    """
    saved = records.save_checkin(
        day(0),
        {
            "sueno_horas": "7.5h",
            "estres": 9,
            "antojos": -1,
            "movimiento_min": "45 min",
        },
        now=NOW,
    )

    loaded = records.get_checkin(day(0))

    assert loaded == saved
    assert loaded["sleep_hours"] == 7.5
    assert loaded["stress"] == 5
    assert loaded["cravings"] == 0
    assert loaded["movement_minutes"] == 45
    assert loaded["created_at"] == "2024-03-10T21:30:00"


def test_canonical_and_legacy_keys_read_the_same(store, records):
    put_checkin(store, 0, sleep=8, stress=2, cravings=1, movement=30)
    store.set_item(
        CHECKIN_PREFIX + day(1),
        json.dumps({"sueno_horas": 8, "estres": 2, "antojos": 1, "movementMin": 30}),
    )

    today = records.get_checkin(day(0))
    yesterday = records.get_checkin(day(1))

    for field in ("sleep_hours", "stress", "cravings", "movement_minutes"):
        assert today[field] == yesterday[field]


def test_overwrite_replaces_checkin(records):
    records.save_checkin(day(0), {"sleepHours": 5, "stress": 4, "cravings": 2, "movementMinutes": 0}, now=NOW)
    records.save_checkin(day(0), {"sleepHours": 8, "stress": 1, "cravings": 0, "movementMinutes": 40}, now=NOW)

    assert records.get_checkin(day(0))["sleep_hours"] == 8
    assert records.checkin_date_keys() == [day(0)]


def test_save_checkin_rejects_unparseable_fields(records):
    with pytest.raises(ValueError):
        records.save_checkin(day(0), {"sleepHours": "mucho", "stress": 3, "cravings": 0, "movementMinutes": 10})

    with pytest.raises(ValueError):
        records.save_checkin("yesterday", {"sleepHours": 7, "stress": 3, "cravings": 0, "movementMinutes": 10})


def test_malformed_checkins_are_absent(store, records):
    store.set_item(CHECKIN_PREFIX + day(0), "{broken json")
    store.set_item(CHECKIN_PREFIX + day(1), json.dumps({"sleepHours": 7, "stress": 3}))
    store.set_item(CHECKIN_PREFIX + day(2), json.dumps(["not", "a", "record"]))

    assert records.get_checkin(day(0)) is None
    assert records.get_checkin(day(1)) is None
    assert records.get_checkin(day(2)) is None
    assert records.get_checkin(day(3)) is None


def test_checklist_defaults_to_all_false(store, records):
    store.set_item(CHECKLIST_PREFIX + day(1), json.dumps([True, True]))
    store.set_item(CHECKLIST_PREFIX + day(2), "nope")
    records.save_checklist(day(0), [1, 0, 1])

    assert records.get_checklist(day(0)) == [True, False, True]
    assert records.get_checklist(day(1)) == [False, False, False]
    assert records.get_checklist(day(2)) == [False, False, False]
    assert records.get_checklist(day(5)) == [False, False, False]

    with pytest.raises(ValueError):
        records.save_checklist(day(0), [True])


def test_mood_is_validated(records):
    records.save_mood(day(0), "high", "pleasant", now=NOW)

    assert records.get_mood(day(0))["energy"] == "high"
    assert records.get_mood(day(1)) is None

    with pytest.raises(ValueError):
        records.save_mood(day(0), "medium", "pleasant")


# --------------------------------------------------
# Meals
# --------------------------------------------------
def test_first_meal_key_convention_wins(store, records):
    """
    Two schema versions of the same day must not be added together.
    """
    store.set_item(
        "wr_meals_v1_" + day(0),
        json.dumps([{"id": "a", "dateKey": day(0), "source": "photo",
                     "analysis": {"totals": {"calories": 500, "protein_g": 30, "carbs_g": 40, "fat_g": 20}}}]),
    )
    store.set_item(
        "wr_comidas_" + day(0),
        json.dumps([{"id": "a-old", "totals": {"calories": 900, "protein_g": 1, "carbs_g": 1, "fat_g": 1}}]),
    )

    meals = records.get_meals_for_date(day(0))

    assert [m["id"] for m in meals] == ["a"]
    assert meals[0]["source"] == "photo"
    assert meals[0]["totals"]["calories"] == 500


def test_legacy_wrapper_shapes_are_reconciled(store, records):
    store.set_item(
        "wr_comidas_" + day(0),
        json.dumps({"items": [
            {"id": "x", "analysis": {"total": {"calories": "500 kcal", "protein": 20, "carbs": 50, "fat": 10}}},
            {"id": "x", "analysis": {"total": {"calories": 500, "protein": 20, "carbs": 50, "fat": 10}}},
            {"id": "y", "data": {"totals": {"calories": 300, "protein_g": 10}}},
        ]}),
    )

    meals = records.get_meals_for_date(day(0))

    assert len(meals) == 1
    assert meals[0]["totals"] == {"calories": 500.0, "protein_g": 20.0, "carbs_g": 50.0, "fat_g": 10.0}
    assert meals[0]["source"] == "manual"


def test_global_meal_log_found_by_scan(store, records):
    store.set_item(
        "wr_food_log_v1",
        json.dumps({"entries": [
            {"id": "m1", "dateKey": day(0), "calories": 400, "protein_g": 25, "carbs_g": 30, "fat_g": 15},
            {"id": "m2", "dateKey": day(1), "calories": 800, "protein_g": 25, "carbs_g": 30, "fat_g": 15},
            {"id": "m3", "calories": 100, "protein_g": 1, "carbs_g": 1, "fat_g": 1},
        ]}),
    )

    meals = records.get_meals_for_date(day(0))

    assert [m["id"] for m in meals] == ["m1"]


def test_unrecognized_meal_shapes_are_skipped(store, records):
    store.set_item("wr_meals_v1_" + day(0), json.dumps({"foo": 1}))
    store.set_item("wr_nutrition_" + day(0), "{broken")

    assert records.get_meals_for_date(day(0)) == []


def test_add_meal_then_day_totals(records):
    records.add_meal(day(0), {"calories": 500, "protein_g": 30, "carbs_g": 40, "fat_g": 20}, now=NOW)
    records.add_meal(day(0), {"calories": "220", "protein": 8, "carbs": 30, "fat": 8}, source="barcode", now=NOW)

    meals = records.get_meals_for_date(day(0))
    totals = day_nutrition(meals)

    assert len(meals) == 2
    assert meals[0]["source"] == "barcode"
    assert totals["count"] == 2
    assert totals["calories"] == 720
    assert totals["protein_g"] == 38

    with pytest.raises(ValueError):
        records.add_meal(day(0), {"calories": 100})


def test_active_week_plan(store, records):
    assert records.get_active_week() is None

    records.save_active_week({
        "week_index": 2,
        "title": "Semana 3",
        "focus": "Sueño",
        "daily_actions": ["Dormir 7+ horas", "Caminar 20 min", "Proteína en 2 comidas", "extra"],
    })

    week = records.get_active_week()
    assert week["week_index"] == 2
    assert week["daily_actions"] == ["Dormir 7+ horas", "Caminar 20 min", "Proteína en 2 comidas"]

    store.set_item("wr_active_week_v1", json.dumps({"title": "sin acciones"}))
    assert records.get_active_week() is None


# --------------------------------------------------
# Store failures
# --------------------------------------------------
class FlakyStore(MemoryStore):
    """Batch reads fail; one key is unreadable."""

    def __init__(self, bad_key):
        super().__init__()
        self.bad_key = bad_key

    def multi_get(self, keys):
        raise StoreUnavailableError("batch read down")

    def get_item(self, key):
        if key == self.bad_key:
            raise StoreUnavailableError("disk error")
        return super().get_item(key)


def test_batch_read_degrades_per_key():
    store = FlakyStore(CHECKIN_PREFIX + day(1))
    records = WellnessRecords(store)
    put_checkin(store, 0)
    put_checkin(store, 1)

    checkins = records.checkins_for([day(0), day(1)])

    assert checkins[day(0)] is not None
    assert checkins[day(1)] is None

    # single operations propagate
    with pytest.raises(StoreUnavailableError):
        records.get_checkin(day(1))


# --------------------------------------------------
# JSON file backend
# --------------------------------------------------
def test_json_file_store_persists(tmp_path, monkeypatch):
    data_file = tmp_path / "store.json"
    monkeypatch.setattr("core.record_store.STORE_FILE", data_file)

    records = WellnessRecords()
    records.save_checkin(day(0), {"sleepHours": 7, "stress": 2, "cravings": 1, "movementMinutes": 25}, now=NOW)

    reopened = WellnessRecords(JsonFileStore(data_file))
    assert reopened.get_checkin(day(0))["movement_minutes"] == 25
    assert CHECKIN_PREFIX + day(0) in json.loads(data_file.read_text())


def test_corrupt_store_file_reads_as_empty(tmp_path):
    data_file = tmp_path / "store.json"
    data_file.write_text("{broken json")

    records = WellnessRecords(JsonFileStore(data_file))

    assert records.get_checkin(day(0)) is None
    assert records.get_unlocked_achievements() == []
    assert records.checkin_date_keys() == []


# --------------------------------------------------
# Out-of-range payloads
# --------------------------------------------------
def test_huge_numbers_read_as_absent(store, records):
    put_checkin(store, 0, sleep=10 ** 400)
    store.set_item(CHECKIN_PREFIX + day(1), '{"sleepHours": 1e999, "stress": 2, "cravings": 1, "movementMinutes": 30}')

    assert parse_number(10 ** 400) is None
    assert parse_number("1" + "0" * 400) is None
    assert parse_number(float("inf")) is None
    assert records.get_checkin(day(0)) is None
    assert records.checkins_for([day(0), day(1)]) == {day(0): None, day(1): None}


def test_infinite_week_index_falls_back_to_zero(store, records):
    store.set_item(ACTIVE_WEEK_KEY, '{"weekIndex": 1e999, "dailyActions": ["Caminar"]}')

    week = records.get_active_week()

    assert week["week_index"] == 0
    assert week["daily_actions"] == ["Caminar"]


def test_legacy_string_checklist_values(store, records):
    store.set_item(CHECKLIST_PREFIX + day(0), json.dumps(["true", "false", "0"]))
    store.set_item(CHECKLIST_PREFIX + day(1), json.dumps(["false", "0", "no"]))
    store.set_item(CHECKLIST_PREFIX + day(2), json.dumps([1, 1.0, "Sí"]))

    assert records.get_checklist(day(0)) == [True, False, False]
    assert records.get_checklist(day(1)) == [False, False, False]
    assert records.get_checklist(day(2)) == [True, True, True]


def test_meals_by_date_map(store, records):
    store.set_item("wr_meals_by_date_v1", json.dumps({
        day(0): [{"id": "a", "totals": {"calories": 450, "protein_g": 30, "carbs_g": 40, "fat_g": 12}}],
        day(1): [{"id": "b", "totals": {"calories": 900, "protein_g": 1, "carbs_g": 1, "fat_g": 1}}],
    }))

    meals = records.get_meals_for_date(day(0))

    assert [m["id"] for m in meals] == ["a"]
    assert meals[0]["date_key"] == day(0)


class CountingStore(MemoryStore):
    def __init__(self):
        super().__init__()
        self.single_reads = 0
        self.batch_reads = 0

    def get_item(self, key):
        self.single_reads += 1
        return super().get_item(key)

    def multi_get(self, keys):
        self.batch_reads += 1
        return {k: self._items.get(k) for k in keys}


def test_meal_lookup_reads_in_batches():
    store = CountingStore()
    records = WellnessRecords(store)
    for offset in range(1, 21):
        store.set_item(
            "wr_meals_v1_" + day(offset),
            json.dumps([{"id": f"m{offset}", "totals": {"calories": 100, "protein_g": 1, "carbs_g": 1, "fat_g": 1}}]),
        )
    store.set_item("wr_food_log_v1", json.dumps([
        {"id": "log1", "dateKey": day(0), "calories": 300, "protein_g": 20, "carbs_g": 20, "fat_g": 5},
    ]))

    meals = records.get_meals_for_date(day(0))

    assert [m["id"] for m in meals] == ["log1"]
    assert store.single_reads == 0
    assert store.batch_reads == 2
