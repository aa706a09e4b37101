# core/cravings_risk.py
"""
Cravings risk for tomorrow (0-100), from today's and yesterday's check-in.

The focus order sleep > stress > cravings > movement is a product
decision; keep it stable.
"""

from typing import Any, Dict, Optional

from core.record_store import clamp

BASE_RISK = 35
NOTIFY_THRESHOLD = 55
HIGH_THRESHOLD = 75

NOTIFICATION_BODIES = {
    "sleep": "Hoy: prioriza dormir +45 min. Mañana te ayudará con antojos.",
    "stress": "Estrés alto: respira 3 min + caminata corta. Te ayudará mañana.",
    "cravings": "Plan rápido: proteína + fibra en la próxima comida.",
    "movement": "Haz 10–15 min de caminata después de comer.",
    "none": "Mantén tu rutina: agua, proteína y una caminata corta.",
}


def risk_label(score: int) -> str:
    if score >= HIGH_THRESHOLD:
        return "alto"
    if score >= NOTIFY_THRESHOLD:
        return "medio"
    return "bajo"


def recommended_focus(checkin: Dict[str, Any]) -> str:
    if checkin["sleep_hours"] < 7:
        return "sleep"
    if checkin["stress"] >= 4:
        return "stress"
    if checkin["cravings"] >= 2:
        return "cravings"
    if checkin["movement_minutes"] < 20:
        return "movement"
    return "none"


def cravings_risk(latest: Dict[str, Any], yesterday: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    risk = BASE_RISK

    if latest["sleep_hours"] < 7:
        risk += 18
    if latest["stress"] >= 4:
        risk += 18
    if latest["movement_minutes"] < 20:
        risk += 12
    if latest["cravings"] >= 2:
        risk += 20

    if yesterday is not None and yesterday.get("cravings", 0) >= 2:
        risk += 8

    score = int(clamp(risk, 0, 100))
    return {
        "score": score,
        "label": risk_label(score),
        "recommended_focus": recommended_focus(latest),
    }


def should_notify(result: Dict[str, Any]) -> bool:
    """
    Schedulers act only on medium or high risk.
    """
    return result["score"] >= NOTIFY_THRESHOLD


def notification_message(result: Dict[str, Any]) -> Optional[Dict[str, str]]:
    if not should_notify(result):
        return None

    if result["label"] == "alto":
        title = "⚠️ Antojos mañana: alto"
    else:
        title = "🟡 Antojos mañana: medio"

    return {
        "title": title,
        "body": NOTIFICATION_BODIES[result["recommended_focus"]],
    }
