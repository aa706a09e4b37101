import logging

import streamlit as st

from modules.achievements import render_achievements
from modules.checkin import render_checkin
from modules.meals import render_meals
from modules.progress import render_progress

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(page_title="WeightReset", layout="wide")

st.sidebar.title("WeightReset")

page = st.sidebar.radio(
    "Navigate",
    ["Hoy", "Progreso", "Logros", "Comidas"]
)

if page == "Hoy":
    render_checkin()
elif page == "Progreso":
    render_progress()
elif page == "Logros":
    render_achievements()
elif page == "Comidas":
    render_meals()
