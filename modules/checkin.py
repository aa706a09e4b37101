"""
Check-in UI for WeightReset
Pure UI layer.
Reads & writes only through core.record_store / core.daily_summary.
"""

import streamlit as st
from datetime import date

from core.daily_summary import record_checkin
from core.record_store import StoreUnavailableError, WellnessRecords
from core.wellness_score import wellness_score


# ==================================================
# MAIN UI
# ==================================================
def render_checkin():
    st.subheader("📝 Check-in de hoy")

    records = WellnessRecords()
    today = date.today()
    selected = st.date_input("Día", value=today, max_value=today)
    date_key = selected.isoformat()

    existing = records.get_checkin(date_key)
    if existing:
        st.success("✅ Ya registraste este día. Puedes actualizarlo.")

    # --------------------------------------------------
    # Check-in form
    # --------------------------------------------------
    with st.form("daily_checkin"):
        sleep = st.slider("Sueño (horas)", 0.0, 12.0, float(existing["sleep_hours"]) if existing else 7.0, 0.5)
        stress = st.slider("Estrés (1-5)", 1, 5, int(existing["stress"]) if existing else 3)
        cravings = st.slider("Antojos (0-3)", 0, 3, int(existing["cravings"]) if existing else 0)
        movement = st.number_input(
            "Movimiento (min)",
            min_value=0,
            max_value=300,
            value=int(existing["movement_minutes"]) if existing else 0,
            step=5,
        )

        submitted = st.form_submit_button("Guardar")

        if submitted:
            try:
                result = record_checkin(
                    records,
                    date_key,
                    {
                        "sleepHours": sleep,
                        "stress": stress,
                        "cravings": cravings,
                        "movementMinutes": movement,
                    },
                )
            except (ValueError, StoreUnavailableError) as e:
                st.error(str(e))
            else:
                st.success("Check-in guardado 🌱")
                if result["newly_unlocked"]:
                    st.balloons()
                for a in result["newly_unlocked"]:
                    st.info(f"🏅 Nuevo logro: **{a['title']}** — {a['description']}")

                note = result["notification"]
                if note and note["schedule"]:
                    st.warning(f"{note['message']['title']}: {note['message']['body']}")

    # --------------------------------------------------
    # Quick mood
    # --------------------------------------------------
    with st.expander("🙂 ¿Cómo te sientes?"):
        mood = records.get_mood(date_key)
        energy = st.radio("Energía", ["high", "low"], horizontal=True,
                          index=0 if not mood or mood["energy"] == "high" else 1)
        valence = st.radio("Ánimo", ["pleasant", "unpleasant"], horizontal=True,
                           index=0 if not mood or mood["valence"] == "pleasant" else 1)
        if st.button("Guardar ánimo"):
            records.save_mood(date_key, energy, valence)
            st.success("Ánimo guardado")

    # --------------------------------------------------
    # Checklist
    # --------------------------------------------------
    st.markdown("---")
    st.markdown("### ✅ Acciones del día")

    week = records.get_active_week()
    actions = week["daily_actions"] if week else []
    checklist = records.get_checklist(date_key)

    updated = []
    for i, done in enumerate(checklist):
        label = actions[i] if i < len(actions) else f"Acción {i + 1}"
        updated.append(st.checkbox(label, value=done, key=f"action_{date_key}_{i}"))

    if updated != checklist:
        records.save_checklist(date_key, updated)
        checklist = updated

    st.metric("Score del día", wellness_score(checklist, records.get_checkin(date_key)))
