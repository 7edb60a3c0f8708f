# frontend/main.py
# ----------------
# Streamlit entry point: landing page of the demand forecasting portal
#
#   streamlit run frontend/main.py

import streamlit as st

from frontend.components import inject_css
from portal.catalog import list_models
from portal.config import configure_logging, settings

configure_logging()

st.set_page_config(
    page_title="Demand Forecasting Portal",
    layout="wide",
    page_icon="📈"
)

inject_css()

# Initialize session state
if 'model' not in st.session_state:
    st.session_state['model'] = None
if 'upload_result' not in st.session_state:
    st.session_state['upload_result'] = None

FEATURES = [
    ("🧠", f"{len(list_models(include_hidden=True))} Advanced Models",
     "Machine learning and time series models for every kind of demand signal."),
    ("🔒", "Enterprise Security", "Your data is processed securely with enterprise-grade encryption and privacy protection."),
    ("⚡", "Real-time Insights", "Get instant forecasting results with interactive visualizations and comprehensive analytics."),
    ("👥", "Team Collaboration", "Share forecasts and insights across your organization with exportable workbooks."),
]

WORKFLOW = [
    ("1", "Select Forecasting Model", "Choose a model that fits your data and horizon"),
    ("2", "Download Sample Dataset", "Get structured sample data to understand the required format"),
    ("3", "Upload Your Data", "Upload your CSV file with supply chain data"),
    ("4", "View Intelligent Results", "Get forecasts with visualizations, then export them to Excel"),
]


# --- HERO ---

st.markdown('<div class="main-header">📈 AI Demand Forecasting</div>', unsafe_allow_html=True)
st.caption("Forecast demand, optimize prices and export results per store and product")

c_hero, _ = st.columns([1, 3])
if c_hero.button("🚀 Get Started", type="primary", use_container_width=True):
    st.switch_page("pages/1_Models.py")

st.divider()

# --- FEATURES ---

st.markdown("### Powerful Features")
for col, (icon, title, text) in zip(st.columns(len(FEATURES)), FEATURES):
    col.markdown(f"""
    <div class="metric-card">
        <div class="insight-title">{icon} {title}</div>
        <div>{text}</div>
    </div>
    """, unsafe_allow_html=True)

st.write("")

# --- WORKFLOW ---

st.markdown("### How It Works")
for col, (number, title, text) in zip(st.columns(len(WORKFLOW)), WORKFLOW):
    col.markdown(f"**{number}. {title}**")
    col.caption(text)

st.divider()

# --- MODEL CARDS ---

st.markdown("### Featured Models")
featured = list_models()[:6]
for row_start in range(0, len(featured), 3):
    for col, model in zip(st.columns(3), featured[row_start:row_start + 3]):
        with col.container(border=True):
            st.markdown(f"**{model.name}**")
            st.caption(model.category_label)
            st.write(model.description)
            if st.button("Open", key=f"landing_{model.slug}"):
                st.session_state['model'] = model.slug
                st.session_state['upload_result'] = None
                st.switch_page("pages/2_Forecast.py")

# --- FOOTER ---
st.divider()
st.caption(f"🚀 {settings.app_name} v{settings.app_version} | Backend: {settings.api_base_url}")
