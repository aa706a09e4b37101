from core.insights import (
    MAX_CARDS,
    detect_pattern,
    generate_insights,
    pick_action_for_focus,
    recommend_next_step,
)
from helpers import TODAY, day, put_checkin

ACTIONS = ["Caminar 20 min", "Dormir 7+ horas", "Proteína en 2 comidas"]


def row(sleep=7, stress=2, cravings=1, movement=30):
    return {
        "checkin": {
            "sleep_hours": sleep,
            "stress": stress,
            "cravings": cravings,
            "movement_minutes": movement,
        }
    }


def test_no_data_state(records):
    result = generate_insights(records, TODAY)

    assert result["status"] == "NO_DATA"
    assert result["cards"] == []
    assert result["recommendation"] is None


def test_rough_week_caps_cards_and_focuses_sleep(store, records):
    """
    Regression test:
    - every rule for sleep, stress, cravings and movement matches
    - only the first three cards are kept
    """
    for offset in range(7):
        put_checkin(store, offset, sleep=5, stress=5, cravings=3, movement=0)

    result = generate_insights(records, TODAY)

    assert result["status"] == "READY"
    assert result["latest_date"] == day(0)
    assert len(result["cards"]) == MAX_CARDS
    assert [c["key"] for c in result["cards"]] == ["sleep_low", "stress_high", "cravings_high"]
    assert result["recommendation"]["focus"] == "sleep"
    assert result["cravings_risk"] == {"score": 100, "label": "alto", "recommended_focus": "sleep"}


def test_window_summaries(store, records):
    put_checkin(store, 0, sleep=8, movement=40)
    put_checkin(store, 1, sleep=6, movement=20)
    put_checkin(store, 20, sleep=4, movement=0)

    result = generate_insights(records, TODAY)
    s7 = result["summary"]["7d"]
    s30 = result["summary"]["30d"]

    assert s7["logged_days"] == 2
    assert s7["sleep_hours"] == 7
    assert s7["movement_minutes"] == 30
    assert s7["consistency"] == 29
    assert s30["logged_days"] == 3
    assert s30["sleep_hours"] == 6
    assert s30["consistency"] == 10
    assert s7["nutrition"] is None


def test_meals_feed_nutrition_average(store, records):
    put_checkin(store, 0)
    records.add_meal(day(0), {"calories": 600, "protein_g": 40, "carbs_g": 50, "fat_g": 20})
    records.add_meal(day(0), {"calories": 400, "protein_g": 20, "carbs_g": 30, "fat_g": 10})

    s7 = generate_insights(records, TODAY)["summary"]["7d"]

    assert s7["nutrition"]["days"] == 1
    assert s7["nutrition"]["calories"] == 1000
    assert s7["nutrition"]["protein_g"] == 60


def test_steady_month_gets_positive_cards(store, records):
    for offset in range(30):
        put_checkin(store, offset)

    result = generate_insights(records, TODAY)

    assert [c["key"] for c in result["cards"]] == ["consistency_high", "score_high"]
    assert result["recommendation"]["focus"] == "steady"
    assert result["pattern"]["ready"] is False


def test_recommendation_falls_back_on_consistency():
    calm = row()["checkin"]

    assert recommend_next_step(calm, None, 40)["focus"] == "consistency"
    assert recommend_next_step(calm, None, 50)["focus"] == "steady"
    assert recommend_next_step(row(stress=4, movement=0)["checkin"], None, 100)["focus"] == "stress"
    assert recommend_next_step(row(movement=10)["checkin"], None, 100)["focus"] == "movement"


def test_pattern_needs_two_days_each_side():
    assert detect_pattern([row(sleep=8), row(sleep=5, stress=4)])["ready"] is False

    rows = [
        row(sleep=8, stress=2),
        row(sleep=7, stress=2),
        row(sleep=5, stress=4),
        row(sleep=6, stress=4),
    ]
    pattern = detect_pattern(rows)

    assert pattern["key"] == "pattern_sleep_stress"
    assert pattern["delta"] == 2


def test_pattern_picks_stronger_link():
    rows = [
        row(sleep=8, stress=2, movement=40, cravings=0),
        row(sleep=8, stress=2, movement=40, cravings=0),
        row(sleep=5, stress=3, movement=10, cravings=3),
        row(sleep=5, stress=3, movement=10, cravings=3),
    ]

    assert detect_pattern(rows)["key"] == "pattern_move_cravings"


def test_pick_action_for_focus():
    assert pick_action_for_focus(ACTIONS, [False, False, False], "sleep") == 1
    assert pick_action_for_focus(ACTIONS, [False, False, False], "movement") == 0
    assert pick_action_for_focus(ACTIONS, [False, False, False], "cravings") == 2
    # matched action already done: first pending one
    assert pick_action_for_focus(ACTIONS, [False, True, False], "sleep") == 0
    assert pick_action_for_focus(ACTIONS, [True, True, True], "sleep") is None


def test_plan_action_follows_recommendation(store, records):
    records.save_active_week({"week_index": 0, "title": "Semana 1", "focus": "Base", "daily_actions": ACTIONS})
    put_checkin(store, 0, sleep=5)

    result = generate_insights(records, TODAY)

    assert result["plan_action"] == {"index": 1, "text": "Dormir 7+ horas"}


def test_no_plan_means_no_action(store, records):
    put_checkin(store, 0)

    assert generate_insights(records, TODAY)["plan_action"] is None


def test_unreadable_week_index_keeps_plan_usable(store, records):
    store.set_item("wr_active_week_v1", '{"weekIndex": 1e999, "dailyActions": ["Caminar"]}')
    put_checkin(store, 0, movement=10)

    result = generate_insights(records, TODAY)

    assert result["plan_action"] == {"index": 0, "text": "Caminar"}
