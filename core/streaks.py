# core/streaks.py
"""
Streaks over a daily presence series.

A series is a list of booleans, index 0 = today, then yesterday, and so on.
Today not being logged yet never breaks yesterday's streak.
"""

from datetime import date
from typing import Dict, List, Sequence

from core.record_store import WellnessRecords
from utils.dates import as_date, days_back

DEFAULT_LOOKBACK_DAYS = 90


# ==================================================
# CORE LOGIC
# ==================================================
def current_streak(series: Sequence[bool]) -> int:
    streak = 0
    for i, present in enumerate(series):
        if present:
            streak += 1
        elif i == 0:
            # today not logged yet
            continue
        else:
            break
    return streak


def best_streak(series: Sequence[bool]) -> int:
    best = 0
    run = 0
    for present in reversed(series):
        if present:
            run += 1
            best = max(best, run)
        else:
            run = 0
    return max(best, current_streak(series))


def streaks(series: Sequence[bool]) -> Dict[str, int]:
    return {
        "current": current_streak(series),
        "best": best_streak(series),
    }


# ==================================================
# PRESENCE SERIES (READ-ONLY)
# ==================================================
def checkin_series(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> List[bool]:
    keys = days_back(as_date(today), lookback)
    checkins = records.checkins_for(keys)
    return [checkins[k] is not None for k in keys]


def perfect_day_series(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> List[bool]:
    """
    Check-in present AND all three actions done.
    """
    keys = days_back(as_date(today), lookback)
    checkins = records.checkins_for(keys)
    checklists = records.checklists_for(keys)
    return [
        checkins[k] is not None and all(checklists[k])
        for k in keys
    ]


def checkin_or_mood_series(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> List[bool]:
    keys = days_back(as_date(today), lookback)
    checkins = records.checkins_for(keys)
    moods = records.moods_for(keys)
    return [
        checkins[k] is not None or moods[k] is not None
        for k in keys
    ]


def checkin_streaks(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> Dict[str, int]:
    return streaks(checkin_series(records, today, lookback))


def perfect_day_streaks(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> Dict[str, int]:
    return streaks(perfect_day_series(records, today, lookback))


def showing_up_streaks(records: WellnessRecords, today: date = None, lookback: int = DEFAULT_LOOKBACK_DAYS) -> Dict[str, int]:
    return streaks(checkin_or_mood_series(records, today, lookback))
