# frontend/pages/1_Models.py
# --------------------------
# Model catalog with a category filter

import streamlit as st

from frontend.components import breadcrumb, inject_css
from portal.catalog import list_models

st.set_page_config(page_title="Models", layout="wide", page_icon="🧠")
inject_css()

breadcrumb(["Home", "Models"])
st.title("🧠 Forecasting Models")
st.caption("Pick a model, download its sample dataset, upload your data and review the results")

CATEGORIES = {"All": None, "Machine Learning": "ml", "Time Series": "time-series"}

choice = st.radio("Category", list(CATEGORIES), horizontal=True, label_visibility="collapsed")
models = list_models(category=CATEGORIES[choice])

if not models:
    st.info("No models in this category.")

for row_start in range(0, len(models), 3):
    for col, model in zip(st.columns(3), models[row_start:row_start + 3]):
        with col.container(border=True):
            st.markdown(f"#### {model.name}")
            st.caption(model.category_label)
            st.write(model.description)
            if model.required_columns:
                shown = ", ".join(model.required_columns[:4])
                more = len(model.required_columns) - 4
                st.caption(f"Columns: {shown}" + (f" +{more} more" if more > 0 else ""))
            if st.button("Use this model", key=f"select_{model.slug}", type="primary"):
                st.session_state['model'] = model.slug
                st.session_state['upload_result'] = None
                st.switch_page("pages/2_Forecast.py")
