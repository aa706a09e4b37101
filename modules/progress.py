# modules/progress.py
"""
Progress UI for WeightReset.

Streaks, score, cravings risk, insights and history.
"""

import streamlit as st
import pandas as pd
from datetime import date

from core.daily_summary import month_scores, today_summary
from core.insights import day_rows
from core.record_store import WellnessRecords

TONE_BOX = {
    "bad": st.error,
    "warn": st.warning,
    "good": st.success,
    "info": st.info,
}

BAND_ICON = {
    "great": "🟢",
    "ok": "🟡",
    "low": "🔴",
}


# ==================================================
# MAIN RENDER
# ==================================================
def render_progress():
    st.subheader("📈 Progreso")

    records = WellnessRecords()
    today = date.today()
    summary = today_summary(records, today)

    # --------------------------------------------------
    # Streaks + score
    # --------------------------------------------------
    streaks = summary["streaks"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("🔥 Racha check-in", streaks["checkin"]["current"])
    c2.metric("🏆 Mejor racha", streaks["checkin"]["best"])
    c3.metric("✅ Días completos seguidos", streaks["perfect_day"]["current"])
    c4.metric("Score de hoy", summary["score"])

    risk = summary["cravings_risk"]
    if risk:
        st.markdown(f"**Riesgo de antojos (mañana):** {risk['score']}/100 ({risk['label']})")

    # --------------------------------------------------
    # Insights
    # --------------------------------------------------
    st.markdown("---")
    st.markdown("### 🧠 Insights")

    insights = summary["insights"]
    if insights["status"] == "NO_DATA":
        st.info(insights["message"])
    else:
        for card in insights["cards"]:
            TONE_BOX.get(card["tone"], st.info)(f"{card['icon']} {card['text']}")

        st.markdown(f"**Tu mejor siguiente paso:** {insights['recommendation']['text']}")
        if insights["plan_action"]:
            st.caption(f"Acción sugerida del plan: {insights['plan_action']['text']}")

        s7 = insights["summary"]["7d"]
        s30 = insights["summary"]["30d"]
        st.dataframe(
            pd.DataFrame(
                [
                    {"Ventana": "7 días", **_summary_row(s7)},
                    {"Ventana": "30 días", **_summary_row(s30)},
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )

    # --------------------------------------------------
    # Calendar
    # --------------------------------------------------
    st.markdown("---")
    st.markdown(f"### 📅 {today.strftime('%B %Y')}")

    for week in month_scores(records, today.year, today.month):
        cols = st.columns(7)
        for col, cell in zip(cols, week):
            if cell is None:
                continue
            icon = BAND_ICON.get(cell["band"], "⚪")
            col.markdown(f"{cell['day']} {icon}")

    # --------------------------------------------------
    # History (read-only)
    # --------------------------------------------------
    st.markdown("---")
    st.markdown("### 🗂️ Historial (30 días)")

    rows = day_rows(records, today)
    if not rows:
        st.info("Aún no hay registros.")
        return

    df = pd.DataFrame(
        [
            {
                "date": r["date"],
                "Score": r["score"],
                "Sueño (h)": r["checkin"]["sleep_hours"],
                "Estrés": r["checkin"]["stress"],
                "Antojos": r["checkin"]["cravings"],
                "Movimiento (min)": r["checkin"]["movement_minutes"],
                "Acciones": sum(r["checklist"]),
                "kcal": round(r["nutrition"]["calories"]) if r["nutrition"] else None,
            }
            for r in rows
        ]
    )
    df["date"] = pd.to_datetime(df["date"]).dt.strftime("%d %b %Y")

    st.line_chart(df.iloc[::-1].set_index("date")["Score"])
    st.dataframe(
        df.rename(columns={"date": "Fecha"}),
        use_container_width=True,
        hide_index=True,
    )


def _summary_row(s):
    def fmt(v, digits=1):
        return round(v, digits) if v is not None else None

    return {
        "Score": fmt(s["score"], 0),
        "Sueño (h)": fmt(s["sleep_hours"]),
        "Estrés": fmt(s["stress"]),
        "Antojos": fmt(s["cravings"]),
        "Movimiento (min)": fmt(s["movement_minutes"], 0),
        "Constancia %": s["consistency"],
        "Completos %": s["complete"],
    }
