import json
from datetime import date, timedelta

from core.record_store import CHECKIN_PREFIX, CHECKLIST_PREFIX

TODAY = date(2024, 3, 10)


def day(offset: int) -> str:
    """Date key `offset` days before TODAY."""
    return (TODAY - timedelta(days=offset)).isoformat()


def put_checkin(store, offset, sleep=7, stress=2, cravings=1, movement=30, **extra):
    payload = {
        "sleepHours": sleep,
        "stress": stress,
        "cravings": cravings,
        "movementMinutes": movement,
        **extra,
    }
    store.set_item(CHECKIN_PREFIX + day(offset), json.dumps(payload))


def put_checklist(store, offset, checked):
    store.set_item(CHECKLIST_PREFIX + day(offset), json.dumps(checked))
