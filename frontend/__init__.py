# frontend/__init__.py
# --------------------
# Streamlit user interface for the demand forecasting portal
