# core/achievements.py
"""
Achievements for WeightReset.

Each achievement is a goal over a small set of aggregate numbers
(the evaluation context). Unlocking happens once per id and is never
undone; re-running the evaluation with the same data changes nothing.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from core.record_store import StoreUnavailableError, WellnessRecords, clamp
from core.streaks import best_streak, current_streak
from utils.dates import as_date, days_back, parse_date_key

logger = logging.getLogger(__name__)

# ==================================================
# LOOKBACK WINDOWS
# ==================================================
TOTAL_LOOKBACK_DAYS = 365
SLEEP_LOOKBACK_DAYS = 60
WEEK_DAYS = 7

GOOD_SLEEP_HOURS = 7
ACTIVE_MOVEMENT_MINUTES = 30
LOW_CRAVINGS = 1


@dataclass(frozen=True)
class AchievementDef:
    id: str
    title: str
    description: str
    goal: int
    progress: Callable[[Dict[str, Any]], float]
    progress_label: str

    def progress_text(self, raw: float) -> str:
        return self.progress_label.format(p=int(min(raw, self.goal)), g=self.goal)


ACHIEVEMENTS = (
    AchievementDef(
        "first_checkin",
        "🌱 Primer paso",
        "Completaste tu primer check-in.",
        1,
        lambda c: c["total_checkins"],
        "Check-ins: {p}/{g}",
    ),
    AchievementDef(
        "streak_3",
        "🔥 3 días seguidos",
        "Tres días cuidándote (check-in consecutivo).",
        3,
        lambda c: c["current_streak"],
        "Racha: {p}/{g} días",
    ),
    AchievementDef(
        "streak_7",
        "🏆 7 días seguidos",
        "Una semana completa de check-ins consecutivos.",
        7,
        lambda c: c["current_streak"],
        "Racha: {p}/{g} días",
    ),
    AchievementDef(
        "perfect_day",
        "✅ Día completo",
        "Hiciste check-in y completaste 3/3 acciones.",
        1,
        lambda c: c["perfect_days"],
        "Días completos: {p}/{g}",
    ),
    AchievementDef(
        "active_week",
        "💪 Semana activa",
        "Hiciste 5+ check-ins en los últimos 7 días.",
        5,
        lambda c: c["checkins_last7"],
        "Últimos 7 días: {p}/{g}",
    ),
    AchievementDef(
        "sleep_streak_3",
        "😴 Sueño sólido",
        "Dormiste ≥7h por 3 días seguidos.",
        3,
        lambda c: c["sleep7_streak"],
        "Sueño ≥7h: {p}/{g} días seguidos",
    ),
    AchievementDef(
        "move30_week",
        "🏃 Semana en movimiento",
        "Hiciste ≥30 min de movimiento en 5 días (últimos 7).",
        5,
        lambda c: c["move30_last7"],
        "≥30 min: {p}/{g} en últimos 7",
    ),
    AchievementDef(
        "low_cravings_week",
        "🍫 Control de antojos",
        "Tuviste antojos ≤1 en 5 días (últimos 7).",
        5,
        lambda c: c["low_cravings_last7"],
        "Antojos ≤1: {p}/{g} en últimos 7",
    ),
)

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}


# ==================================================
# CONTEXT
# ==================================================
def _logged_date_keys(records: WellnessRecords, today: date) -> List[str]:
    try:
        keys = records.checkin_date_keys()
    except StoreUnavailableError as exc:
        logger.warning("Could not list check-in keys (%s); using recent days only", exc)
        return []

    logged = []
    for k in keys:
        age = (today - parse_date_key(k)).days
        if 0 <= age <= TOTAL_LOOKBACK_DAYS:
            logged.append(k)
    return logged


def build_context(records: WellnessRecords, today: date = None) -> Dict[str, Any]:
    """
    Aggregates every achievement goal is measured against.
    A malformed day counts as a day without a check-in.
    """
    today = as_date(today)

    logged = _logged_date_keys(records, today)
    recent = days_back(today, SLEEP_LOOKBACK_DAYS)
    checkins = records.checkins_for(sorted(set(logged) | set(recent), reverse=True))

    valid = [k for k in logged if checkins.get(k) is not None]
    checklists = records.checklists_for(valid)

    year = days_back(today, TOTAL_LOOKBACK_DAYS)
    week = days_back(today, WEEK_DAYS)
    week_checkins = [checkins.get(k) for k in week]

    return {
        "today": today.isoformat(),
        "total_checkins": len(valid),
        "current_streak": current_streak([checkins.get(k) is not None for k in year]),
        "checkins_last7": sum(1 for c in week_checkins if c is not None),
        "perfect_days": sum(1 for k in valid if all(checklists[k])),
        "sleep7_streak": best_streak([
            checkins.get(k) is not None and checkins[k]["sleep_hours"] >= GOOD_SLEEP_HOURS
            for k in recent
        ]),
        "move30_last7": sum(
            1 for c in week_checkins
            if c is not None and c["movement_minutes"] >= ACTIVE_MOVEMENT_MINUTES
        ),
        "low_cravings_last7": sum(
            1 for c in week_checkins
            if c is not None and c["cravings"] <= LOW_CRAVINGS
        ),
    }


# ==================================================
# STATUS (READ-ONLY)
# ==================================================
def achievement_statuses(
    records: WellnessRecords,
    today: date = None,
    ctx: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    if ctx is None:
        ctx = build_context(records, today)
    unlocked = {a["id"]: a for a in records.get_unlocked_achievements()}

    statuses = []
    for a in ACHIEVEMENTS:
        raw = a.progress(ctx)
        record = unlocked.get(a.id)
        statuses.append({
            "id": a.id,
            "title": a.title,
            "description": a.description,
            "goal": a.goal,
            "progress": clamp(raw, 0, a.goal),
            "progress_text": a.progress_text(raw),
            "unlocked": record is not None,
            "unlocked_at": record.get("unlockedAt") if record else None,
        })
    return statuses


def achievement_feed(records: WellnessRecords, today: date = None) -> Dict[str, List[Dict[str, Any]]]:
    statuses = achievement_statuses(records, today)
    return {
        "unlocked": [s for s in statuses if s["unlocked"]],
        "locked": [s for s in statuses if not s["unlocked"]],
        "all": statuses,
    }


# ==================================================
# UNLOCKING
# ==================================================
def _unlocked_record(a: AchievementDef, now: datetime) -> Dict[str, str]:
    return {
        "id": a.id,
        "title": a.title,
        "description": a.description,
        "unlockedAt": now.isoformat(timespec="seconds"),
    }


def unlock_achievement(records: WellnessRecords, achievement_id: str, now: datetime = None) -> Optional[Dict[str, str]]:
    """
    Unlock one achievement by id.
    Returns None if it was already unlocked.
    """
    a = ACHIEVEMENTS_BY_ID.get(achievement_id)
    if a is None:
        raise ValueError(f"Unknown achievement: {achievement_id}")

    current = records.get_unlocked_achievements()
    if any(u["id"] == achievement_id for u in current):
        return None

    record = _unlocked_record(a, now or datetime.now())
    records.save_unlocked_achievements([record] + current)
    logger.info("Achievement unlocked: %s", achievement_id)
    return record


def evaluate_achievements(records: WellnessRecords, today: date = None, now: datetime = None) -> List[Dict[str, str]]:
    """
    Run after every check-in save.

    Returns only the achievements that flipped to unlocked in this pass,
    already persisted. Safe to call any number of times.
    """
    ctx = build_context(records, today)
    current = records.get_unlocked_achievements()
    already = {u["id"] for u in current}
    now = now or datetime.now()

    newly_unlocked = [
        _unlocked_record(a, now)
        for a in ACHIEVEMENTS
        if a.id not in already and a.progress(ctx) >= a.goal
    ]

    if newly_unlocked:
        # newest first, as the feed shows them
        records.save_unlocked_achievements(list(reversed(newly_unlocked)) + current)
        for record in newly_unlocked:
            logger.info("Achievement unlocked: %s", record["id"])

    return newly_unlocked
