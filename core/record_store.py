# core/record_store.py
"""
Record store for WeightReset.

Every daily record lives under its own key (prefix + YYYY-MM-DD) as a
serialized JSON string. This module is the only place that knows about
storage keys, legacy field names, and the historical meal shapes.

Rules:
- Reads never raise on bad data: a malformed record is simply absent
- Store failures raise StoreUnavailableError for single operations
- Batch reads degrade key by key
"""

import json
import logging
import math
import os
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from utils.dates import parse_date_key

logger = logging.getLogger(__name__)

# ==================================================
# PATH
# ==================================================
STORE_FILE = Path(os.environ.get("WR_STORE_FILE", "data/wellness_store.json"))

# ==================================================
# KEYS
# ==================================================
CHECKIN_PREFIX = "wr_checkin_v1_"
CHECKLIST_PREFIX = "wr_checked_v1_"
MOOD_PREFIX = "wr_mood_v1_"
MEALS_PREFIX = "wr_meals_v1_"
ACHIEVEMENTS_KEY = "wr_achievements_v1"
ACTIVE_WEEK_KEY = "wr_active_week_v1"

# Tried in order; the first key with at least one valid meal wins.
MEAL_KEY_PREFIXES = [
    MEALS_PREFIX,
    "wr_meals_",
    "wr_food_v1_",
    "wr_comidas_v1_",
    "wr_comidas_",
    "wr_meal_entries_",
]
MEAL_KEY_HINT = re.compile(r"meal|comida|food|registro|nutri", re.IGNORECASE)
MEAL_CONTAINER_FIELDS = ("meals", "items", "entries", "log")
MEAL_SOURCES = {"photo", "label", "barcode", "manual"}

# ==================================================
# CONSTANTS (SCHEMA)
# ==================================================
FIELD_ALIASES = {
    "sleep_hours": ("sleepHours", "sueno_horas", "sleep_hours"),
    "stress": ("stress", "estres"),
    "cravings": ("cravings", "antojos"),
    "movement_minutes": ("movementMinutes", "movimiento_min", "movementMin", "movement_minutes"),
}

FIELD_RANGES = {
    "sleep_hours": (0, 12),
    "stress": (1, 5),
    "cravings": (0, 3),
    "movement_minutes": (0, 300),
}

STORAGE_FIELD_NAMES = {
    "sleep_hours": "sleepHours",
    "stress": "stress",
    "cravings": "cravings",
    "movement_minutes": "movementMinutes",
}

TOTAL_ALIASES = {
    "calories": ("calories", "kcal"),
    "protein_g": ("protein_g", "protein", "proteinGrams"),
    "carbs_g": ("carbs_g", "carbs", "carbsGrams"),
    "fat_g": ("fat_g", "fat", "fatGrams"),
}

TOTALS_PATHS = [
    ("analysis", "totals"),
    ("analysis", "total"),
    ("totals",),
    ("total",),
    ("data", "total"),
    ("data", "totals"),
]

CHECKLIST_SIZE = 3
CHECKED_STRINGS = {"true", "1", "yes", "si", "sí"}
MOOD_ENERGY = {"high", "low"}
MOOD_VALENCE = {"pleasant", "unpleasant"}

NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


class StoreUnavailableError(Exception):
    """The persistent store could not be read or written."""


# ==================================================
# KEY-VALUE BACKENDS
# ==================================================
class RecordStore:
    """
    Minimal key-value contract: string keys, serialized string values.
    """

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def all_keys(self) -> List[str]:
        raise NotImplementedError

    def multi_get(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        return {k: self.get_item(k) for k in keys}


class MemoryStore(RecordStore):
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._items = dict(items or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = value

    def remove_item(self, key):
        self._items.pop(key, None)

    def all_keys(self):
        return list(self._items.keys())


class JsonFileStore(RecordStore):
    """
    Whole store in one JSON object file: {key: serialized value}.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else STORE_FILE

    def _ensure_dir(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    def _load_raw(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Store file %s is corrupt; reading it as empty", self.path)
            return {}
        except OSError as exc:
            raise StoreUnavailableError(str(exc)) from exc

        if not isinstance(data, dict):
            logger.warning("Store file %s is not an object; reading it as empty", self.path)
            return {}
        return data

    def _atomic_write(self, data: Dict[str, Any]):
        self._ensure_dir()
        tmp = self.path.with_suffix(".tmp")
        try:
            with open(tmp, "w") as f:
                json.dump(data, f, indent=2)
            tmp.replace(self.path)
        except OSError as exc:
            raise StoreUnavailableError(str(exc)) from exc

    def get_item(self, key):
        return self._load_raw().get(key)

    def multi_get(self, keys):
        data = self._load_raw()
        return {k: data.get(k) for k in keys}

    def set_item(self, key, value):
        data = self._load_raw()
        data[key] = value
        self._atomic_write(data)

    def remove_item(self, key):
        data = self._load_raw()
        if key in data:
            del data[key]
            self._atomic_write(data)

    def all_keys(self):
        return list(self._load_raw().keys())


# ==================================================
# PARSING HELPERS
# ==================================================
def _decode(raw):
    if raw is None:
        return None
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Unparseable payload: %.60r", raw)
            return None
    return raw


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def parse_number(value) -> Optional[float]:
    """
    Tolerant number parsing.
    Numbers pass through, strings give their first numeric substring
    ("7.5h" → 7.5), anything else is None.
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        candidate = value
    elif isinstance(value, str):
        match = NUMBER_RE.search(value)
        if not match:
            return None
        candidate = match.group(0)
    else:
        return None

    try:
        number = float(candidate)
    except OverflowError:
        return None

    # nan, inf and huge digit strings are not usable values
    if not math.isfinite(number):
        return None
    return number


def resolve_field(raw: Dict[str, Any], field: str):
    for alias in FIELD_ALIASES[field]:
        if raw.get(alias) is not None:
            return raw[alias]
    return None


def normalize_checkin(raw, date_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None

    values = {}
    for field, (low, high) in FIELD_RANGES.items():
        number = parse_number(resolve_field(raw, field))
        if number is None:
            return None
        values[field] = clamp(number, low, high)

    return {
        "date": date_key or raw.get("date"),
        **values,
        "created_at": raw.get("createdAt") or raw.get("created_at"),
    }


def serialize_checkin(checkin: Dict[str, Any]) -> Dict[str, Any]:
    payload = {"date": checkin["date"]}
    for field, name in STORAGE_FIELD_NAMES.items():
        payload[name] = checkin[field]
    payload["createdAt"] = checkin.get("created_at")
    return payload


def is_checked(value) -> bool:
    """
    Legacy checklists may hold 1/0 or "true"/"false" strings.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in CHECKED_STRINGS
    return False


def normalize_checklist(raw) -> List[bool]:
    if isinstance(raw, list) and len(raw) == CHECKLIST_SIZE:
        return [is_checked(x) for x in raw]
    return [False] * CHECKLIST_SIZE


def normalize_mood(raw, date_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    if raw.get("energy") not in MOOD_ENERGY or raw.get("valence") not in MOOD_VALENCE:
        return None
    return {
        "date": date_key or raw.get("date"),
        "energy": raw["energy"],
        "valence": raw["valence"],
        "created_at": raw.get("createdAt") or raw.get("created_at"),
    }


# ==================================================
# MEALS
# ==================================================
def _totals_source(meal: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for path in TOTALS_PATHS:
        node = meal
        for part in path:
            node = node.get(part) if isinstance(node, dict) else None
        if isinstance(node, dict):
            return node

    # flat entries carry the macros directly
    if any(alias in meal for aliases in TOTAL_ALIASES.values() for alias in aliases):
        return meal
    return None


def parse_totals(raw) -> Optional[Dict[str, float]]:
    if not isinstance(raw, dict):
        return None

    totals = {}
    for field, aliases in TOTAL_ALIASES.items():
        value = next((raw[a] for a in aliases if raw.get(a) is not None), None)
        number = parse_number(value)
        if number is None:
            return None
        totals[field] = max(0.0, number)
    return totals


def meal_date(meal: Dict[str, Any]) -> Optional[str]:
    for field in ("dateKey", "date_key", "date", "createdAt", "created_at"):
        value = meal.get(field)
        if isinstance(value, str) and parse_date_key(value[:10]):
            return value[:10]

    ts = meal.get("ts")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        try:
            return datetime.fromtimestamp(ts / 1000).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    return None


def normalize_meal(
    meal,
    date_key: str,
    index: int = 0,
    require_date: bool = False,
) -> Optional[Dict[str, Any]]:
    """
    One historical meal shape → canonical meal entry, or None.

    require_date: entries without a date of their own are skipped
    (used for global logs that are not keyed by day).
    """
    if not isinstance(meal, dict):
        return None

    source = _totals_source(meal)
    totals = parse_totals(source) if source is not None else None
    if totals is None:
        return None

    entry_date = meal_date(meal)
    if entry_date is None:
        if require_date:
            return None
        entry_date = date_key
    if entry_date != date_key:
        return None

    meal_id = meal.get("id")
    if meal_id in (None, ""):
        meal_id = f"{date_key}-{index}"

    kind = meal.get("source") or meal.get("mode")

    return {
        "id": str(meal_id),
        "date_key": date_key,
        "source": kind if kind in MEAL_SOURCES else "manual",
        "totals": totals,
        "created_at": meal.get("createdAt") or meal.get("created_at"),
    }


def _meal_items(payload) -> Optional[List[Any]]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for field in MEAL_CONTAINER_FIELDS:
            if isinstance(payload.get(field), list):
                return payload[field]
    return None


def meals_from_payload(payload, date_key: str, require_date: bool = False) -> List[Dict[str, Any]]:
    # by-date map: {"YYYY-MM-DD": [...]}
    if isinstance(payload, dict) and isinstance(payload.get(date_key), list):
        payload = payload[date_key]
        require_date = False

    items = _meal_items(payload)
    if items is None:
        return []

    meals = []
    seen = set()
    for index, item in enumerate(items):
        meal = normalize_meal(item, date_key, index, require_date)
        if meal is None or meal["id"] in seen:
            continue
        seen.add(meal["id"])
        meals.append(meal)
    return meals


def day_nutrition(meals: List[Dict[str, Any]]) -> Dict[str, float]:
    summary = {"count": len(meals), "calories": 0.0, "protein_g": 0.0, "carbs_g": 0.0, "fat_g": 0.0}
    for m in meals:
        for field in TOTAL_ALIASES:
            summary[field] += m["totals"][field]
    return summary


# ==================================================
# ADAPTER
# ==================================================
class WellnessRecords:
    """
    Date-keyed access to check-ins, checklists, moods, meals,
    the active weekly plan and unlocked achievements.
    """

    def __init__(self, store: Optional[RecordStore] = None):
        self.store = store if store is not None else JsonFileStore()

    # ---------------- raw access ----------------
    def _read(self, key: str):
        return _decode(self.store.get_item(key))

    def _write(self, key: str, value) -> None:
        self.store.set_item(key, json.dumps(value))

    def _read_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        keys = list(keys)
        try:
            raw = self.store.multi_get(keys)
        except StoreUnavailableError as exc:
            logger.warning("Batch read failed (%s); reading keys one by one", exc)
            raw = {}
            for key in keys:
                try:
                    raw[key] = self.store.get_item(key)
                except StoreUnavailableError:
                    logger.warning("Read failed for %s; treating it as absent", key)
                    raw[key] = None
        return {key: _decode(raw.get(key)) for key in keys}

    # ---------------- check-ins ----------------
    def get_checkin(self, date_key: str) -> Optional[Dict[str, Any]]:
        raw = self._read(CHECKIN_PREFIX + date_key)
        checkin = normalize_checkin(raw, date_key)
        if raw is not None and checkin is None:
            logger.debug("Discarding malformed check-in for %s", date_key)
        return checkin

    def checkins_for(self, date_keys: Iterable[str]) -> Dict[str, Optional[Dict[str, Any]]]:
        date_keys = list(date_keys)
        raw = self._read_many(CHECKIN_PREFIX + k for k in date_keys)
        return {k: normalize_checkin(raw[CHECKIN_PREFIX + k], k) for k in date_keys}

    def checkin_date_keys(self) -> List[str]:
        """
        Every date that has a check-in key, most recent first.
        Does not validate the record itself.
        """
        keys = [
            k[len(CHECKIN_PREFIX):]
            for k in self.store.all_keys()
            if k.startswith(CHECKIN_PREFIX)
        ]
        return sorted((k for k in keys if parse_date_key(k)), reverse=True)

    def save_checkin(self, date_key: str, raw: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Insert or replace the check-in for a date.
        Accepts any alias for each field; stores canonical names.
        """
        if not parse_date_key(date_key):
            raise ValueError(f"Invalid date key: {date_key!r}")

        checkin = normalize_checkin(raw, date_key)
        if checkin is None:
            raise ValueError("Check-in needs numeric sleep, stress, cravings and movement")

        checkin["created_at"] = (now or datetime.now()).isoformat(timespec="seconds")
        self._write(CHECKIN_PREFIX + date_key, serialize_checkin(checkin))
        return checkin

    # ---------------- checklist ----------------
    def get_checklist(self, date_key: str) -> List[bool]:
        return normalize_checklist(self._read(CHECKLIST_PREFIX + date_key))

    def checklists_for(self, date_keys: Iterable[str]) -> Dict[str, List[bool]]:
        date_keys = list(date_keys)
        raw = self._read_many(CHECKLIST_PREFIX + k for k in date_keys)
        return {k: normalize_checklist(raw[CHECKLIST_PREFIX + k]) for k in date_keys}

    def save_checklist(self, date_key: str, checklist: List[bool]) -> List[bool]:
        if len(checklist) != CHECKLIST_SIZE:
            raise ValueError(f"Checklist must have exactly {CHECKLIST_SIZE} items")
        checked = [is_checked(x) for x in checklist]
        self._write(CHECKLIST_PREFIX + date_key, checked)
        return checked

    # ---------------- mood ----------------
    def get_mood(self, date_key: str) -> Optional[Dict[str, Any]]:
        return normalize_mood(self._read(MOOD_PREFIX + date_key), date_key)

    def moods_for(self, date_keys: Iterable[str]) -> Dict[str, Optional[Dict[str, Any]]]:
        date_keys = list(date_keys)
        raw = self._read_many(MOOD_PREFIX + k for k in date_keys)
        return {k: normalize_mood(raw[MOOD_PREFIX + k], k) for k in date_keys}

    def save_mood(self, date_key: str, energy: str, valence: str, now: Optional[datetime] = None):
        mood = normalize_mood({"energy": energy, "valence": valence}, date_key)
        if mood is None:
            raise ValueError("Mood needs energy high/low and valence pleasant/unpleasant")

        mood["created_at"] = (now or datetime.now()).isoformat(timespec="seconds")
        self._write(MOOD_PREFIX + date_key, {
            "date": date_key,
            "energy": energy,
            "valence": valence,
            "createdAt": mood["created_at"],
        })
        return mood

    # ---------------- meals ----------------
    def get_meals_for_date(self, date_key: str) -> List[Dict[str, Any]]:
        """
        Meals for one day.

        Known per-day keys are tried first, then a scan of meal-looking
        keys. Only the first key that yields meals is used, so old and new
        copies of the same log are never added together.
        """
        per_day = [prefix + date_key for prefix in MEAL_KEY_PREFIXES]
        payloads = self._read_many(per_day)
        for key in per_day:
            meals = meals_from_payload(payloads[key], date_key)
            if meals:
                return meals

        # other days' per-day keys cannot hold this date
        other_days = tuple(MEAL_KEY_PREFIXES)
        candidates = [
            k for k in sorted(self.store.all_keys())
            if k not in payloads
            and MEAL_KEY_HINT.search(k)
            and not (k.startswith(other_days) and parse_date_key(k[-10:]))
        ]
        payloads = self._read_many(candidates)
        for key in candidates:
            meals = meals_from_payload(payloads[key], date_key, require_date=date_key not in key)
            if meals:
                logger.debug("Meals for %s found under legacy key %s", date_key, key)
                return meals

        return []

    def add_meal(
        self,
        date_key: str,
        totals: Dict[str, Any],
        source: str = "manual",
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        parsed = parse_totals(totals)
        if parsed is None:
            raise ValueError("Meal needs calories, protein, carbs and fat")
        if source not in MEAL_SOURCES:
            raise ValueError(f"Unknown meal source: {source}")

        meal = {
            "id": f"meal_{uuid.uuid4().hex}",
            "date_key": date_key,
            "source": source,
            "totals": parsed,
            "created_at": (now or datetime.now()).isoformat(timespec="seconds"),
        }

        key = MEALS_PREFIX + date_key
        existing = self._read(key)
        entries = existing if isinstance(existing, list) else []
        entries.insert(0, {
            "id": meal["id"],
            "dateKey": date_key,
            "source": source,
            "totals": parsed,
            "createdAt": meal["created_at"],
        })
        self._write(key, entries)
        return meal

    # ---------------- weekly plan ----------------
    def get_active_week(self) -> Optional[Dict[str, Any]]:
        raw = self._read(ACTIVE_WEEK_KEY)
        if not isinstance(raw, dict):
            return None

        actions = raw.get("dailyActions", raw.get("daily_actions"))
        if not isinstance(actions, list):
            return None

        week_index = parse_number(raw.get("weekIndex", raw.get("week_index")))
        return {
            "week_index": int(week_index) if week_index is not None else 0,
            "title": str(raw.get("title") or ""),
            "focus": str(raw.get("focus") or ""),
            "daily_actions": [str(a) for a in actions][:CHECKLIST_SIZE],
        }

    def save_active_week(self, plan: Dict[str, Any]) -> None:
        self._write(ACTIVE_WEEK_KEY, {
            "weekIndex": plan.get("week_index", 0),
            "title": plan.get("title", ""),
            "focus": plan.get("focus", ""),
            "dailyActions": list(plan.get("daily_actions", []))[:CHECKLIST_SIZE],
        })

    # ---------------- achievements ----------------
    def get_unlocked_achievements(self) -> List[Dict[str, Any]]:
        raw = self._read(ACHIEVEMENTS_KEY)
        if not isinstance(raw, list):
            return []

        unlocked = []
        seen = set()
        for a in raw:
            if not isinstance(a, dict) or not isinstance(a.get("id"), str):
                continue
            if a["id"] in seen:
                continue
            seen.add(a["id"])
            unlocked.append(a)
        return unlocked

    def save_unlocked_achievements(self, unlocked: List[Dict[str, Any]]) -> None:
        self._write(ACHIEVEMENTS_KEY, unlocked)
