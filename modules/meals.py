"""
Meals UI for WeightReset
Manual meal log. Photo, label and barcode analysis live elsewhere.
"""

import streamlit as st
import pandas as pd
from datetime import date

from core.record_store import StoreUnavailableError, WellnessRecords, day_nutrition


# ==================================================
# MAIN UI
# ==================================================
def render_meals():
    st.subheader("🍽️ Comidas")

    records = WellnessRecords()
    today = date.today()
    selected = st.date_input("Día", value=today, max_value=today, key="meals_day")
    date_key = selected.isoformat()

    # ==================================================
    # ➕ ADD MEAL
    # ==================================================
    with st.form("add_meal", clear_on_submit=True):
        c1, c2, c3, c4 = st.columns(4)
        calories = c1.number_input("kcal", min_value=0, step=10)
        protein = c2.number_input("Proteína (g)", min_value=0, step=1)
        carbs = c3.number_input("Carbos (g)", min_value=0, step=1)
        fat = c4.number_input("Grasa (g)", min_value=0, step=1)

        if st.form_submit_button("Agregar comida"):
            try:
                records.add_meal(
                    date_key,
                    {"calories": calories, "protein_g": protein, "carbs_g": carbs, "fat_g": fat},
                )
                st.success("Comida guardada")
            except (ValueError, StoreUnavailableError) as e:
                st.error(str(e))

    # ==================================================
    # 📊 DAY TOTALS
    # ==================================================
    meals = records.get_meals_for_date(date_key)
    totals = day_nutrition(meals)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Calorías", f"{totals['calories']:.0f} kcal")
    c2.metric("Proteína", f"{totals['protein_g']:.0f} g")
    c3.metric("Carbos", f"{totals['carbs_g']:.0f} g")
    c4.metric("Grasa", f"{totals['fat_g']:.0f} g")

    if not meals:
        st.info("Sin comidas registradas este día.")
        return

    df = pd.DataFrame(
        [
            {"Origen": m["source"], "Hora": (m["created_at"] or "")[11:16], **m["totals"]}
            for m in meals
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)
