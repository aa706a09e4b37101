# core/insights.py
"""
Insights for WeightReset.

Pure logic over the last 30 days:
- 7 vs 30 day averages
- at most 3 insight cards
- exactly one recommended next step
"""

import logging
from datetime import date, timedelta
from statistics import mean
from typing import Any, Dict, List, Optional, Sequence

from core.cravings_risk import cravings_risk
from core.record_store import StoreUnavailableError, WellnessRecords, day_nutrition
from core.wellness_score import wellness_score
from utils.dates import as_date, days_back

logger = logging.getLogger(__name__)

HISTORY_DAYS = 30
MAX_CARDS = 3
PATTERN_MIN_DAYS = 2

CHECKIN_FIELDS = ("sleep_hours", "stress", "cravings", "movement_minutes")

RECOMMENDATIONS = {
    "sleep": "Prioriza dormir +45 min hoy (hora fija + pantalla fuera 30 min antes).",
    "stress": "Estrés alto: 3 min de respiración (4-4-6) + agua. Luego una caminata corta.",
    "cravings": "Antojos altos: proteína + fibra en la próxima comida (y evita ayunos largos).",
    "movement": "Haz 10–15 min de caminata después de comer para bajar antojos y estrés.",
    "consistency": "Registra tu check-in cada día: con más datos tus insights mejoran.",
    "steady": "Mantén la consistencia: repite lo que ya te está funcionando.",
}

# keyword stems used to match a recommendation to a plan action
FOCUS_KEYWORDS = {
    "sleep": ["sueño", "dorm", "sleep", "descanso", "acost"],
    "movement": ["camina", "walk", "mov", "pasos", "cardio", "ejerc"],
    "stress": ["respir", "calma", "medit", "estres", "estrés", "relaj"],
    "cravings": ["antojo", "prote", "fibra", "snack", "dulce"],
}


# ==================================================
# DAY ROWS
# ==================================================
def nutrition_for_day(records: WellnessRecords, key: str) -> Optional[Dict[str, float]]:
    try:
        meals = records.get_meals_for_date(key)
    except StoreUnavailableError as exc:
        logger.warning("Meals for %s unavailable (%s)", key, exc)
        return None
    return day_nutrition(meals) if meals else None


def day_rows(records: WellnessRecords, today: date = None, days: int = HISTORY_DAYS) -> List[Dict[str, Any]]:
    """
    One row per day with a valid check-in, most recent first.
    """
    keys = days_back(as_date(today), days)
    checkins = records.checkins_for(keys)
    logged = [k for k in keys if checkins[k] is not None]
    checklists = records.checklists_for(logged)

    rows = []
    for k in logged:
        rows.append({
            "date": k,
            "checkin": checkins[k],
            "checklist": checklists[k],
            "score": wellness_score(checklists[k], checkins[k]),
            "nutrition": nutrition_for_day(records, k),
        })
    return rows


# ==================================================
# AGGREGATES
# ==================================================
def _avg(values: Sequence[float]) -> Optional[float]:
    return mean(values) if values else None


def _nutrition_average(rows: List[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    with_meals = [r["nutrition"] for r in rows if r["nutrition"]]
    if not with_meals:
        return None
    return {
        "days": len(with_meals),
        "calories": mean(n["calories"] for n in with_meals),
        "protein_g": mean(n["protein_g"] for n in with_meals),
        "carbs_g": mean(n["carbs_g"] for n in with_meals),
        "fat_g": mean(n["fat_g"] for n in with_meals),
    }


def window_summary(rows: List[Dict[str, Any]], today: date, days: int) -> Dict[str, Any]:
    since = (as_date(today) - timedelta(days=days - 1)).isoformat()
    window = [r for r in rows if r["date"] >= since]

    summary = {
        "days": days,
        "logged_days": len(window),
        "consistency": round(len(window) / days * 100),
        "complete": round(sum(1 for r in window if all(r["checklist"])) / len(window) * 100) if window else 0,
        "score": _avg([r["score"] for r in window]),
        "nutrition": _nutrition_average(window),
    }
    for field in CHECKIN_FIELDS:
        summary[field] = _avg([r["checkin"][field] for r in window])
    return summary


# ==================================================
# PATTERN (sleep → stress, movement → cravings)
# ==================================================
def detect_pattern(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    sleep_ok = [r["checkin"]["stress"] for r in rows if r["checkin"]["sleep_hours"] >= 7]
    sleep_low = [r["checkin"]["stress"] for r in rows if r["checkin"]["sleep_hours"] < 7]
    move_hi = [r["checkin"]["cravings"] for r in rows if r["checkin"]["movement_minutes"] >= 30]
    move_lo = [r["checkin"]["cravings"] for r in rows if r["checkin"]["movement_minutes"] < 30]

    can_sleep = len(sleep_ok) >= PATTERN_MIN_DAYS and len(sleep_low) >= PATTERN_MIN_DAYS
    can_move = len(move_hi) >= PATTERN_MIN_DAYS and len(move_lo) >= PATTERN_MIN_DAYS

    if not (can_sleep or can_move):
        return {
            "key": "pattern_not_ready",
            "ready": False,
            "text": "Registra más días variados para detectar patrones (sueño y movimiento).",
        }

    diff_stress = mean(sleep_low) - mean(sleep_ok) if can_sleep else None
    diff_cravings = mean(move_lo) - mean(move_hi) if can_move else None

    if diff_cravings is None or (diff_stress is not None and diff_stress >= diff_cravings):
        return {
            "key": "pattern_sleep_stress",
            "ready": True,
            "delta": diff_stress,
            "text": f"Con ≥7h tu estrés es {mean(sleep_ok):.1f} vs {mean(sleep_low):.1f} con menos sueño.",
        }

    return {
        "key": "pattern_move_cravings",
        "ready": True,
        "delta": diff_cravings,
        "text": f"Con ≥30 min tus antojos son {mean(move_hi):.1f} vs {mean(move_lo):.1f} sin moverte.",
    }


# ==================================================
# CARDS
# ==================================================
def _card(key: str, icon: str, tone: str, text: str) -> Dict[str, str]:
    return {"key": key, "icon": icon, "tone": tone, "text": text}


def build_cards(s7: Dict[str, Any], s30: Dict[str, Any], pattern: Dict[str, Any]) -> List[Dict[str, str]]:
    """
    Rules in priority order; the first MAX_CARDS that match are kept.
    """
    s = s7 if s7["logged_days"] else s30
    rules = [
        (
            s["sleep_hours"] is not None and s["sleep_hours"] < 6,
            lambda: _card("sleep_low", "😴", "bad", f"Tu sueño promedio es {s['sleep_hours']:.1f}h. Dormir menos de 6h dispara antojos."),
        ),
        (
            s["stress"] is not None and s["stress"] >= 4,
            lambda: _card("stress_high", "😮‍💨", "bad", f"Estrés promedio alto ({s['stress']:.1f}/5). Agenda pausas cortas."),
        ),
        (
            s["cravings"] is not None and s["cravings"] >= 2,
            lambda: _card("cravings_high", "🍫", "warn", f"Antojos promedio {s['cravings']:.1f}/3. Proteína y fibra temprano ayudan."),
        ),
        (
            s["movement_minutes"] is not None and s["movement_minutes"] < 20,
            lambda: _card("movement_low", "🚶", "warn", f"Movimiento promedio {s['movement_minutes']:.0f} min. Suma una caminata corta."),
        ),
        (
            s30["consistency"] < 50,
            lambda: _card("consistency_low", "📅", "warn", f"Registraste {s30['consistency']}% de los días. La constancia mejora tus insights."),
        ),
        (
            pattern["ready"],
            lambda: _card(pattern["key"], "🔎", "info", pattern["text"]),
        ),
        (
            s30["consistency"] > 80,
            lambda: _card("consistency_high", "🔥", "good", f"¡{s30['consistency']}% de días registrados! Excelente constancia."),
        ),
        (
            s["score"] is not None and s["score"] >= 80,
            lambda: _card("score_high", "🌟", "good", f"Score promedio {s['score']:.0f}. Vas muy bien."),
        ),
    ]

    cards = []
    for matched, make in rules:
        if matched:
            cards.append(make())
        if len(cards) == MAX_CARDS:
            break
    return cards


def recommend_next_step(latest: Dict[str, Any], yesterday: Optional[Dict[str, Any]], consistency: int) -> Dict[str, str]:
    focus = cravings_risk(latest, yesterday)["recommended_focus"]
    if focus == "none":
        focus = "consistency" if consistency < 50 else "steady"
    return {"focus": focus, "text": RECOMMENDATIONS[focus]}


def pick_action_for_focus(daily_actions: Sequence[str], checklist: Sequence[bool], focus: str) -> Optional[int]:
    """
    Index of the plan action that best matches the focus.
    Falls back to the first pending action; None when all are done.
    """
    pending = [i for i, done in enumerate(checklist) if not done]
    if not pending:
        return None

    stems = FOCUS_KEYWORDS.get(focus, [])
    for i in pending:
        if i >= len(daily_actions):
            continue
        text = daily_actions[i].lower()
        if any(stem in text for stem in stems):
            return i
    return pending[0]


def _plan_action(records: WellnessRecords, today: date, focus: str) -> Optional[Dict[str, Any]]:
    week = records.get_active_week()
    if not week or not week["daily_actions"]:
        return None

    checklist = records.get_checklist(today.isoformat())
    index = pick_action_for_focus(week["daily_actions"], checklist, focus)
    if index is None or index >= len(week["daily_actions"]):
        return None
    return {"index": index, "text": week["daily_actions"][index]}


# ==================================================
# ENTRY POINT
# ==================================================
def generate_insights(records: WellnessRecords, today: date = None) -> Dict[str, Any]:
    today = as_date(today)
    rows = day_rows(records, today, HISTORY_DAYS)

    if not rows:
        return {
            "status": "NO_DATA",
            "message": "Aún no hay check-ins. Registra tu primer día para ver insights.",
            "cards": [],
            "recommendation": None,
        }

    s7 = window_summary(rows, today, 7)
    s30 = window_summary(rows, today, HISTORY_DAYS)
    pattern = detect_pattern(rows)

    latest = rows[0]
    day_before = (as_date(latest["date"]) - timedelta(days=1)).isoformat()
    yesterday = next((r["checkin"] for r in rows if r["date"] == day_before), None)

    recommendation = recommend_next_step(latest["checkin"], yesterday, s7["consistency"])

    try:
        plan_action = _plan_action(records, today, recommendation["focus"])
    except StoreUnavailableError as exc:
        logger.warning("Weekly plan unavailable (%s)", exc)
        plan_action = None

    return {
        "status": "READY",
        "latest_date": latest["date"],
        "summary": {"7d": s7, "30d": s30},
        "cards": build_cards(s7, s30, pattern),
        "recommendation": recommendation,
        "cravings_risk": cravings_risk(latest["checkin"], yesterday),
        "pattern": pattern,
        "plan_action": plan_action,
    }
