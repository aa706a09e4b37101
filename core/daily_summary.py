# core/daily_summary.py
"""
Daily summary for WeightReset.

Single source of truth for every screen.
No UI. No Streamlit.

Builds one snapshot combining:
- Today's score and checklist
- Streaks
- Cravings risk
- Insights
- Achievements
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from core.achievements import achievement_feed, evaluate_achievements
from core.cravings_risk import cravings_risk, notification_message, should_notify
from core.insights import generate_insights, nutrition_for_day
from core.record_store import WellnessRecords
from core.streaks import checkin_streaks, perfect_day_streaks, showing_up_streaks
from core.wellness_score import score_band, wellness_score
from utils.dates import as_date, month_matrix


# ==================================================
# SNAPSHOT
# ==================================================
def today_summary(records: WellnessRecords, today: date = None) -> Dict[str, Any]:
    today = as_date(today)
    key = today.isoformat()

    checkin = records.get_checkin(key)
    checklist = records.get_checklist(key)
    score = wellness_score(checklist, checkin)
    insights = generate_insights(records, today)

    return {
        "timestamp": datetime.now().isoformat(timespec="minutes"),
        "date": key,
        "checkin": checkin,
        "checklist": checklist,
        "score": score,
        "score_band": score_band(score),
        "streaks": {
            "checkin": checkin_streaks(records, today),
            "perfect_day": perfect_day_streaks(records, today),
            "showing_up": showing_up_streaks(records, today),
        },
        # latest logged day, today when it has a check-in
        "cravings_risk": insights.get("cravings_risk"),
        "nutrition": nutrition_for_day(records, key),
        "insights": insights,
        "achievements": achievement_feed(records, today),
    }


# ==================================================
# SAVE FLOW
# ==================================================
def record_checkin(
    records: WellnessRecords,
    date_key: str,
    raw: Dict[str, Any],
    today: date = None,
    now: datetime = None,
) -> Dict[str, Any]:
    """
    Save a check-in, then evaluate achievements.

    For today's check-in also returns the notification decision for
    tomorrow; the caller owns the actual scheduling.
    """
    today = as_date(today)
    checkin = records.save_checkin(date_key, raw, now=now)
    newly_unlocked = evaluate_achievements(records, today=as_date(date_key), now=now)

    notification = None
    if date_key == today.isoformat():
        yesterday_key = (today - timedelta(days=1)).isoformat()
        yesterday = records.checkins_for([yesterday_key])[yesterday_key]
        risk = cravings_risk(checkin, yesterday)
        notification = {
            "risk": risk,
            "schedule": should_notify(risk),
            "message": notification_message(risk),
        }

    return {
        "checkin": checkin,
        "newly_unlocked": newly_unlocked,
        "notification": notification,
    }


# ==================================================
# CALENDAR
# ==================================================
def month_scores(records: WellnessRecords, year: int, month: int) -> List[List[Optional[Dict[str, Any]]]]:
    weeks = month_matrix(year, month)
    keys = [d.isoformat() for week in weeks for d in week if d is not None]
    checkins = records.checkins_for(keys)
    checklists = records.checklists_for(keys)

    grid = []
    for week in weeks:
        row = []
        for d in week:
            if d is None:
                row.append(None)
                continue
            k = d.isoformat()
            score = wellness_score(checklists[k], checkins[k]) if checkins[k] else None
            row.append({
                "date": k,
                "day": d.day,
                "score": score,
                "band": score_band(score) if score is not None else None,
            })
        grid.append(row)
    return grid


if __name__ == "__main__":
    from pprint import pprint

    pprint(today_summary(WellnessRecords()))
