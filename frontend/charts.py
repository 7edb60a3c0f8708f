# frontend/charts.py
# ------------------
# Plotly figures for the results pages

from dataclasses import asdict
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
import plotly.graph_objects as go

from portal.forecast_service import ForecastRow

_GRID = dict(showgrid=True, gridwidth=1, gridcolor='rgba(0,0,0,0.1)')


def _base_layout(fig: go.Figure, title: str, xaxis_title: str, yaxis_title: str, height: int = 450):
    fig.update_layout(
        height=height,
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        title=dict(text=title, font=dict(size=20)),
        xaxis_title=xaxis_title,
        yaxis_title=yaxis_title,
        hovermode="x unified",
        margin=dict(l=20, r=20, t=60, b=20),
        legend=dict(
            orientation="h",
            yanchor="bottom",
            y=1.02,
            xanchor="right",
            x=1
        ),
        xaxis=_GRID,
        yaxis=_GRID,
    )
    return fig


def create_forecast_chart(rows: List[ForecastRow], title: str = "Demand Forecast"):
    """
    Generate Plotly chart with actual values, forecast, and confidence interval.
    """
    fig = go.Figure()
    if not rows:
        return _base_layout(fig, f'📊 {title}', "Date", "Demand")

    df = pd.DataFrame([asdict(r) for r in rows])
    df["date"] = pd.to_datetime(df["date"], format="mixed", errors="coerce")

    # 1. Confidence Interval (Shaded Area)
    if df["upper"].notna().any() and df["lower"].notna().any():
        fig.add_trace(go.Scatter(
            name='Upper Bound',
            x=df["date"],
            y=df["upper"],
            mode='lines',
            line=dict(width=0),
            showlegend=False
        ))
        fig.add_trace(go.Scatter(
            name='Confidence Interval',
            x=df["date"],
            y=df["lower"],
            mode='lines',
            fill='tonexty',
            fillcolor='rgba(41, 98, 255, 0.2)',
            line=dict(width=0)
        ))

    # 2. Actual values (Solid Line)
    actual = df.dropna(subset=["actual"])
    if not actual.empty:
        fig.add_trace(go.Scatter(
            x=actual['date'],
            y=actual['actual'],
            mode='lines+markers',
            name='Actual',
            line=dict(color='#00C853', width=3),
            marker=dict(size=6)
        ))

    # 3. Forecast (Dotted Line)
    fig.add_trace(go.Scatter(
        x=df['date'],
        y=df['prediction'],
        mode='lines+markers',
        name='Forecast',
        line=dict(color='#2962FF', width=3, dash='dot'),
        marker=dict(size=8, symbol='diamond')
    ))

    return _base_layout(fig, f'📊 {title}', "Date", "Demand")


def create_demand_forecast_chart(predictions: Sequence[dict], store_id: str, product_id: str):
    """Monthly predicted demand for one (StoreID, ProductID) pair."""
    df = pd.DataFrame([
        p for p in predictions
        if str(p.get("StoreID")) == store_id and str(p.get("ProductID")) == product_id
    ])
    fig = go.Figure()
    if not df.empty:
        df["Date"] = pd.to_datetime(df["Date"], format="mixed", errors="coerce")
        df = df.sort_values("Date")
        fig.add_trace(go.Scatter(
            x=df["Date"],
            y=df["PredictedMonthlyDemand"],
            mode='lines+markers',
            name='Predicted Demand',
            line=dict(color='#f57c00', width=3),
            marker=dict(size=8)
        ))
    return _base_layout(fig, f'📦 {store_id} / {product_id}', "Month", "Predicted Monthly Demand", height=400)


def create_feature_importance_chart(pairs: List[Tuple[str, float]], title: str = "Feature Importance"):
    # horizontal bars, most important on top
    ordered = list(reversed(pairs))
    fig = go.Figure(go.Bar(
        x=[value for _, value in ordered],
        y=[name for name, _ in ordered],
        orientation='h',
        marker=dict(color='#1a237e'),
    ))
    _base_layout(fig, f'🔍 {title}', "Importance", "", height=max(300, 40 * len(pairs) + 120))
    fig.update_layout(hovermode="closest")
    return fig


def create_pricing_chart(pricing: Sequence[Dict], title: str = "Price Optimization",
                         value_column: str = "profit", value_label: str = "Profit"):
    """
    Demand (left axis) and profit or revenue (right axis) across candidate prices.
    """
    df = pd.DataFrame(list(pricing))
    fig = go.Figure()
    if df.empty:
        return _base_layout(fig, f'💰 {title}', "Price", "Value")

    df = df.sort_values("price")
    for column, label, color in (("predicted_demand", "Predicted Demand", '#2962FF'),
                                 (value_column, value_label, '#00C853')):
        if column not in df.columns:
            continue
        fig.add_trace(go.Scatter(
            x=df["price"],
            y=df[column],
            mode='lines+markers',
            name=label,
            line=dict(color=color, width=3),
            yaxis="y2" if column == value_column else "y",
        ))

    _base_layout(fig, f'💰 {title}', "Price", "Demand")
    fig.update_layout(yaxis2=dict(title=value_label, overlaying="y", side="right", showgrid=False))
    return fig


def best_price(pricing: Sequence[Dict]) -> Optional[Dict]:
    """Pricing row with the highest profit."""
    rows = [p for p in pricing if p.get("profit") is not None]
    return max(rows, key=lambda p: p["profit"]) if rows else None
