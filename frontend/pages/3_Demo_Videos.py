# frontend/pages/3_Demo_Videos.py
# -------------------------------
# Walkthrough videos, one per model

from pathlib import Path

import streamlit as st

from frontend.components import breadcrumb, inject_css
from portal.catalog import list_models
from portal.config import settings

st.set_page_config(page_title="Demo Videos", layout="wide", page_icon="🎬")
inject_css()

breadcrumb(["Home", "Demo Videos"])
st.title("🎬 Demo Videos")
st.caption("Short walkthroughs of the upload and results flow for each model")

video_dir = Path(settings.demo_videos_dir)
category = st.selectbox(
    "Category",
    options=[None, "ml", "time-series"],
    format_func=lambda c: {None: "All", "ml": "Machine Learning", "time-series": "Time Series"}[c],
)

models = [m for m in list_models(category=category) if m.slug != "sarimax"]
for row_start in range(0, len(models), 3):
    for col, model in zip(st.columns(3), models[row_start:row_start + 3]):
        with col.container(border=True):
            st.markdown(f"**{model.name}**")
            video = video_dir / f"{model.slug}.mp4"
            if video.exists():
                st.video(str(video))
            else:
                st.info("Video not available yet.")
            st.caption(model.description)
