# core/wellness_score.py
"""
Daily wellness score (0-100).

Pure function: same checklist + check-in always gives the same score,
whether it is shown for today or recomputed for an old day.
"""

import math
from typing import Any, Dict, Optional, Sequence

from core.record_store import clamp

BASE_POINTS = 45
POINTS_PER_ACTION = 12

# partial credit when the day has no check-in
NEUTRAL_POINTS = {
    "sleep": 6,
    "movement": 6,
    "stress": 5,
    "cravings": 4,
}


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def wellness_score(checklist: Sequence[bool], checkin: Optional[Dict[str, Any]]) -> int:
    done = sum(1 for x in list(checklist)[:3] if x)

    if checkin is None:
        sleep_pts = NEUTRAL_POINTS["sleep"]
        move_pts = NEUTRAL_POINTS["movement"]
        stress_pts = NEUTRAL_POINTS["stress"]
        cravings_pts = NEUTRAL_POINTS["cravings"]
    else:
        sleep_pts = clamp((checkin["sleep_hours"] - 5) * 7, 0, 14)
        move_pts = clamp(checkin["movement_minutes"] / 5, 0, 12)
        stress_pts = clamp((6 - checkin["stress"]) * 2.5, 0, 10)
        cravings_pts = clamp((3 - checkin["cravings"]) * 2.5, 0, 7)

    total = BASE_POINTS + done * POINTS_PER_ACTION + sleep_pts + move_pts + stress_pts + cravings_pts
    return int(clamp(_round_half_up(total), 0, 100))


def score_band(score: int) -> str:
    """
    Calendar colour band.
    """
    if score >= 80:
        return "great"
    if score >= 60:
        return "ok"
    return "low"
