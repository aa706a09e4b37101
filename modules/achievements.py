import streamlit as st
from datetime import date

from core.achievements import achievement_feed
from core.record_store import WellnessRecords


# ==================================================
# MAIN UI
# ==================================================
def render_achievements():
    st.subheader("🏅 Logros")

    feed = achievement_feed(WellnessRecords(), date.today())

    st.markdown(f"### Desbloqueados ({len(feed['unlocked'])}/{len(feed['all'])})")
    if not feed["unlocked"]:
        st.info("Aún no tienes logros. Tu primer check-in desbloquea el primero.")

    for a in feed["unlocked"]:
        st.success(f"**{a['title']}** — {a['description']}")
        if a["unlocked_at"]:
            st.caption(f"Desbloqueado: {a['unlocked_at'][:10]}")

    st.markdown("---")
    st.markdown("### En progreso")

    for a in feed["locked"]:
        st.markdown(f"**{a['title']}** — {a['description']}")
        st.progress(a["progress"] / a["goal"], text=a["progress_text"])
