# frontend/pages/2_Forecast.py
# ----------------------------
# Per-model workspace: requirements, sample download, upload with progress,
# results and exports

import streamlit as st

from frontend.charts import (
    best_price,
    create_demand_forecast_chart,
    create_feature_importance_chart,
    create_forecast_chart,
    create_pricing_chart,
)
from frontend.components import (
    breadcrumb,
    inject_css,
    render_data_requirements,
    render_data_table,
    render_export_panel,
    render_file_preview,
    render_metric_cards,
    render_parameters,
    render_upload_progress,
    reset_upload_state,
)
from portal.api_client import ForecastBackendClient
from portal.catalog import get_model, list_models
from portal.config import settings, validate_forecast_horizon
from portal.errors import PortalError
from portal.evaluation import metrics_from_training
from portal.forecast_service import (
    build_arima_export_input,
    build_xgboost_export_input,
    forecast_from_future_file,
    forecast_selection,
    normalize_feature_importance,
    normalize_forecast_rows,
    optimize_pricing,
    run_upload_pipeline,
    summarize_forecast,
)
from portal.mock_results import get_mock_results
from portal.upload_progress import UploadTracker

st.set_page_config(page_title="Forecast", layout="wide", page_icon="📊")
inject_css()

# --- MODEL SELECTION ---

models = list_models(include_hidden=True)
slugs = [m.slug for m in models]
if st.session_state.get('model') not in slugs:
    st.session_state['model'] = slugs[0]
if 'upload_result' not in st.session_state:
    st.session_state['upload_result'] = None

selected = st.sidebar.selectbox(
    "Model",
    slugs,
    index=slugs.index(st.session_state['model']),
    format_func=lambda s: get_model(s).name,
)
if selected != st.session_state['model']:
    st.session_state['model'] = selected
    reset_upload_state(st.session_state)
    st.rerun()

model = get_model(st.session_state['model'])
mock = get_mock_results(model.slug)

breadcrumb(["Home", "Models", model.name])
st.title(f"📊 {model.name}")
st.caption(f"{model.category_label} · {model.description}")


def forecast_options() -> dict:
    """Horizon inputs for the selected model."""
    if model.slug in ("arima", "arimax"):
        return {"periods": st.number_input("Forecast periods", 1, 365, settings.arimax_forecast_periods)}
    if model.slug in ("linear-regression", "sarimax"):
        default = min(settings.linear_regression_months, settings.max_forecast_months)
        return {"months": st.slider("Forecast horizon (months)", 1, settings.max_forecast_months, default)}
    if model.slug == "prophet":
        return {"forecast_days": st.number_input("Forecast days", 1, 365, settings.prophet_forecast_days)}
    if model.slug == "catboost":
        return {"forecast_days": st.number_input("Forecast days", 1, 365, settings.catboost_forecast_days)}
    if model.slug == "sarima":
        return {"steps": st.number_input("Forecast steps", 1, 365, settings.sarima_steps)}
    return {}


# --- UPLOAD ---

if model.has_upload and st.session_state['upload_result'] is None:
    col_upload, col_info = st.columns([3, 2])

    with col_info:
        render_data_requirements(model)

    with col_upload:
        st.subheader("📂 Upload Your Data")
        uploaded_file = st.file_uploader(
            "Upload Data (CSV)",
            type="csv",
            help="Upload a CSV file matching the data requirements",
        )
        options = forecast_options()

        if "months" in options:
            horizon = validate_forecast_horizon(options["months"])
            if not horizon["valid"]:
                st.error(horizon["message"])

        if uploaded_file and st.button("🚀 Upload & Run", type="primary"):
            progress_placeholder = st.empty()
            tracker = UploadTracker(
                model.flow,
                listener=lambda steps: render_upload_progress(steps, progress_placeholder),
            )
            render_upload_progress(tracker.steps, progress_placeholder)

            try:
                result = run_upload_pipeline(
                    model.slug,
                    uploaded_file.name,
                    uploaded_file.getvalue(),
                    client=ForecastBackendClient(),
                    tracker=tracker,
                    **options,
                )
            except PortalError as e:
                st.error(f"❌ {e.message}")
            else:
                st.session_state['upload_result'] = result
                st.rerun()

    st.stop()


# --- RESULTS ---

result = st.session_state['upload_result']
payload = result.payload if result else {}

if result:
    render_file_preview(result.preview)

    data_summary = result.data_summary
    if data_summary:
        st.sidebar.subheader("📊 Data Quality")
        st.sidebar.markdown(f"**Rows:** {data_summary['rows']:,}")
        if data_summary.get("date_range_start"):
            st.sidebar.markdown(f"**Date Range:** {data_summary['date_range_start']} to {data_summary['date_range_end']}")
        if data_summary.get("mean") is not None:
            st.sidebar.markdown(f"**Avg {data_summary['demand_column']}:** {data_summary['mean']:,.0f}")

if model.has_upload and st.button("🔁 Run another upload"):
    reset_upload_state(st.session_state)
    st.rerun()

st.divider()

if model.slug == "xgboost":
    predictions = payload.get("predictions") or []
    st.markdown(f"### 📊 Forecast Results · {payload.get('count', len(predictions))} predictions")

    if predictions:
        stores = sorted({str(p.get("StoreID")) for p in predictions})
        c_store, c_product = st.columns(2)
        store_id = c_store.selectbox("🏬 Store", stores)
        products = sorted({str(p.get("ProductID")) for p in predictions if str(p.get("StoreID")) == store_id})
        product_id = c_product.selectbox("📦 Product", products)

        st.plotly_chart(create_demand_forecast_chart(predictions, store_id, product_id), use_container_width=True)

        context = result.context_map if result else {}
        rows = []
        for p in predictions:
            if str(p.get("StoreID")) != store_id or str(p.get("ProductID")) != product_id:
                continue
            ctx = context.get(f"{store_id}::{product_id}::{p.get('Date')}", {})
            rows.append({**p, "Category": ctx.get("Category", ""), "Price": ctx.get("Price", "")})
        render_data_table(rows)

        st.markdown("### 📥 Export")
        render_export_panel("xgboost", build_xgboost_export_input(result), label="📥 Export All Stores (ZIP)",
                            prefix="xgboost_forecast")
    else:
        st.info("The backend returned no predictions for this file.")
    st.stop()


forecast_payload = payload.get("prediction") or payload
rows = normalize_forecast_rows(forecast_payload)
if not rows and mock and mock.get("forecast"):
    rows = normalize_forecast_rows(mock["forecast"])

# metric cards
if mock and mock.get("metrics"):
    render_metric_cards(mock["metrics"])
else:
    summary = summarize_forecast(rows)
    cards = [
        {"title": "Forecast Periods", "value": summary["periods"]},
        {"title": "Average Demand", "value": f"{summary['average']:,}"},
        {"title": "Trend", "value": summary["trend"], "description": f"{summary['change_percent']:+.1f}%"},
    ]
    scores = metrics_from_training(payload.get("training") or payload)
    if scores:
        cards += [{"title": name.upper(), "value": value} for name, value in scores.items()]
    render_metric_cards(cards)

st.write("")

if rows:
    st.plotly_chart(create_forecast_chart(rows, f"Demand Forecast: {model.name}"), use_container_width=True)

col_left, col_right = st.columns([3, 2])

with col_left:
    importance = normalize_feature_importance(
        payload.get("feature_importance")
        or (payload.get("analysis") or {}).get("feature_importance")
        or (mock or {}).get("feature_importance")
    )
    if importance:
        st.plotly_chart(create_feature_importance_chart(importance), use_container_width=True)

    if model.slug == "arimax":
        pricing = payload.get("pricing") or (mock or {}).get("pricing") or []
        if pricing:
            st.plotly_chart(create_pricing_chart(pricing), use_container_width=True)
            best = best_price(pricing)
            if best:
                st.success(f"💰 Best price: {best['price']} (profit {best['profit']:,})")

with col_right:
    render_parameters((mock or {}).get("parameters", []))

render_data_table([
    {"Date": r.date, "Prediction": r.prediction, "Lower": r.lower, "Upper": r.upper, "Actual": r.actual}
    for r in rows
])

if model.exporter in ("arima", "arimax"):
    st.markdown("### 📥 Export")
    render_export_panel(model.exporter, build_arima_export_input(model.slug, payload))


# --- FOLLOW-UPS ---

def _fmt(value, digits: int) -> str:
    return f"{value:,.{digits}f}" if isinstance(value, (int, float)) else "-"


if result and model.slug == "catboost":
    st.markdown("### 🎯 Forecast a Store / Product")
    predictions = payload.get("predictions") or []
    stores = sorted({str(p.get("StoreID")) for p in predictions if p.get("StoreID") is not None})
    if stores:
        c_store, c_product, c_days = st.columns(3)
        store_id = c_store.selectbox("🏬 Store", stores, key="selection_store")
        products = sorted({str(p.get("ProductID")) for p in predictions if str(p.get("StoreID")) == store_id})
        product_id = c_product.selectbox("📦 Product", products, key="selection_product")
        days = c_days.number_input("Forecast days", 1, 180, settings.catboost_forecast_days, key="selection_days")

        if st.button("📈 Generate Forecast", disabled=not product_id):
            with st.spinner("Generating forecast..."):
                try:
                    selected_rows = forecast_selection(store_id, product_id, int(days))
                    st.session_state['selection_rows'] = (store_id, product_id, selected_rows)
                except PortalError as e:
                    st.error(f"❌ {e.message}")

        selection = st.session_state.get('selection_rows')
        if selection and selection[:2] == (store_id, product_id):
            st.plotly_chart(create_forecast_chart(selection[2], f"Forecast: {store_id} / {product_id}"),
                            use_container_width=True)
    else:
        st.info("The backend returned no store / product predictions to choose from.")

if result and model.slug == "linear-regression":
    st.markdown("### 🔮 Future Demand Prediction")
    future_file = st.file_uploader("Upload future features (CSV)", type="csv", key="future_file")
    if future_file:
        header = future_file.getvalue().decode("utf-8", errors="replace").splitlines()[:1]
        columns = [c.strip() for c in header[0].split(",") if c.strip()] if header else []
        if not columns:
            st.warning("The future features file has no header row.")
        else:
            date_column = st.selectbox("Date column", columns,
                                       index=columns.index("date") if "date" in columns else 0)
            if st.button("🔮 Predict from File"):
                with st.spinner("Predicting..."):
                    try:
                        st.session_state['future_rows'] = forecast_from_future_file(
                            result, future_file.name, future_file.getvalue(), date_column=date_column,
                        )
                    except PortalError as e:
                        st.error(f"❌ {e.message}")

    future_rows = st.session_state.get('future_rows')
    if future_rows:
        st.plotly_chart(create_forecast_chart(future_rows, "Future Demand"), use_container_width=True)

    st.markdown("### 💰 Price Elasticity & Optimization")
    method = st.radio("Method", ["linear", "loglog"], horizontal=True,
                      format_func=lambda m: "Linear" if m == "linear" else "Log-Log")
    if st.button("⚙️ Run Optimization"):
        with st.spinner("Calculating..."):
            try:
                st.session_state[f'pricing_{method}'] = optimize_pricing(result, method)
            except PortalError as e:
                st.error(f"❌ {e.message}")

    pricing = st.session_state.get(f'pricing_{method}')
    if pricing:
        render_metric_cards([
            {"title": "Optimal Price", "value": _fmt(pricing.get("optimal_price"), 2), "description": "Best Price Point"},
            {"title": "Max Revenue", "value": _fmt(pricing.get("max_revenue"), 0), "description": "Expected Revenue"},
            {"title": "Elasticity", "value": _fmt(pricing.get("elasticity"), 3), "description": "Price Elasticity"},
            {"title": "Current Price", "value": _fmt(pricing.get("current_price"), 2), "description": "Baseline Price"},
        ])
        simulations = pricing.get("simulations") or []
        if simulations:
            st.plotly_chart(
                create_pricing_chart(simulations, "Price Optimization Analysis",
                                     value_column="revenue", value_label="Revenue"),
                use_container_width=True,
            )
    else:
        st.info('Click "Run Optimization" to compute price elasticity and optimization results.')
