# frontend/components.py
# ----------------------
# Responsibility:
# - Shared Streamlit render helpers for the portal pages
# - Export panel: run an exporter with live progress bars, then offer the download

import logging
from typing import Iterable, List, Optional, Sequence

import pandas as pd
import streamlit as st

from portal.catalog import ModelSpec
from portal.data_preparation import FilePreview, format_file_size
from portal.errors import PortalError
from portal.exporters import EXPORTERS, default_archive_name
from portal.samples import sample_csv
from portal.upload_progress import StepStatus, UploadStep

logger = logging.getLogger(__name__)

EXPORT_FAILED_MESSAGE = "Export failed. Ensure required packages are installed and try again."

# follow-up results kept between reruns of the workspace page
RESULT_STATE_KEYS = ("future_rows", "pricing_linear", "pricing_loglog", "selection_rows")

_STATUS_ICONS = {
    StepStatus.PENDING: "⚪",
    StepStatus.PROCESSING: "⏳",
    StepStatus.COMPLETED: "✅",
    StepStatus.ERROR: "❌",
}


def inject_css():
    st.markdown("""
    <style>
        .stApp {
            background-color: #f4f6f9;
        }

        .main-header {
            font-size: 2.5rem;
            font-weight: 700;
            color: #1a237e;
            margin-bottom: 0.5rem;
        }

        .insight-box {
            background: linear-gradient(135deg, #e8f4fd 0%, #e0f2f1 100%);
            border-left: 4px solid #2196f3;
            padding: 20px;
            border-radius: 8px;
            margin-bottom: 20px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }

        .insight-title {
            color: #1565c0;
            font-weight: bold;
            font-size: 1.1em;
            margin-bottom: 10px;
        }

        .metric-card {
            background: white;
            padding: 15px;
            border-radius: 10px;
            box-shadow: 0 2px 8px rgba(0,0,0,0.08);
        }

        .data-quality-good {
            color: #2e7d32;
            font-weight: bold;
        }

        .data-quality-warning {
            color: #f57c00;
            font-weight: bold;
        }
    </style>
    """, unsafe_allow_html=True)


def breadcrumb(parts: Sequence[str]):
    st.caption(" › ".join(parts))


# --- MODEL WORKSPACE ---

def render_data_requirements(model: ModelSpec):
    """Required columns, notes, and the sample dataset download."""
    with st.expander("📋 Data Requirements", expanded=True):
        if model.required_columns:
            st.markdown("**Required columns:** " + ", ".join(f"`{c}`" for c in model.required_columns))
        for note in model.requirements:
            st.markdown(f"- {note}")
        if model.strict_headers:
            st.warning("Headers are checked against the template before upload. Use the sample as a starting point.")

        try:
            content = sample_csv(model.slug)
        except KeyError:
            return
        st.download_button(
            "⬇️ Download Sample Dataset",
            data=content,
            file_name=model.sample_file,
            mime="text/csv",
            key=f"sample_{model.slug}",
        )


def render_upload_progress(steps: Iterable[UploadStep], container=None):
    target = container or st
    lines = []
    for step in steps:
        line = f"{_STATUS_ICONS[step.status]} **{step.label}**"
        if step.message:
            line += f" · {step.message}"
        lines.append(line)
    target.markdown("  \n".join(lines))


def render_file_preview(preview: FilePreview):
    with st.expander("👀 Preview Uploaded Data", expanded=False):
        c1, c2, c3 = st.columns(3)
        c1.metric("File", preview.file_name, format_file_size(preview.file_size), delta_color="off")
        c2.metric("Rows", f"{preview.row_count:,}")
        c3.metric("Columns", preview.column_count)

        if preview.preview_data:
            st.dataframe(pd.DataFrame(preview.preview_data), use_container_width=True)
            st.caption(f"Showing first {len(preview.preview_data)} of {preview.row_count} rows")

        for error in preview.validation_errors:
            st.error(f"❌ {error}")


# --- RESULTS ---

def render_metric_cards(metrics: List[dict]):
    if not metrics:
        return
    cols = st.columns(len(metrics))
    for col, card in zip(cols, metrics):
        change = card.get("change")
        if change is not None:
            sign = "+" if card.get("change_type") == "increase" else "-"
            col.metric(
                label=card["title"],
                value=card["value"],
                delta=f"{sign}{change}",
                # a lower error metric is good news
                delta_color="inverse" if card.get("change_type") == "decrease" else "normal",
            )
        else:
            col.metric(label=card["title"], value=card["value"], delta=card.get("description"), delta_color="off")


def render_parameters(parameters: List[dict]):
    if not parameters:
        return
    st.markdown("### ⚙️ Model Parameters")
    for param in parameters:
        text = f"**{param['name']}**: `{param['value']}`"
        if param.get("description"):
            text += f"  \n<small>{param['description']}</small>"
        st.markdown(text, unsafe_allow_html=True)


def render_data_table(rows: Sequence[dict], title: str = "📄 Forecast Data"):
    if not rows:
        return
    st.markdown(f"### {title}")
    st.dataframe(pd.DataFrame(list(rows)), use_container_width=True, hide_index=True)


# --- EXPORT ---

def export_state_key(kind: str) -> str:
    return f"export_{kind}"


def reset_upload_state(state) -> None:
    """
    Forget the current upload and everything produced from it.

    Args:
        state: st.session_state, or any mutable mapping
    """
    state["upload_result"] = None
    for key in [export_state_key(kind) for kind in EXPORTERS] + list(RESULT_STATE_KEYS):
        state.pop(key, None)


def render_export_panel(kind: str, data, label: str = "📥 Export to Excel", prefix: Optional[str] = None):
    """
    Button that runs one exporter with store / product progress bars.

    The produced file is kept in session state so the download button
    survives reruns.
    """
    exporter, _, mime, extension = EXPORTERS[kind]
    state_key = export_state_key(kind)

    if st.button(label, key=f"{state_key}_button"):
        store_bar = st.progress(0.0, text="Preparing export...")
        product_text = st.empty()

        def on_store_progress(current: int, total: int):
            store_bar.progress(min(current / max(total, 1), 1.0), text=f"Stores: {current}/{total}")

        def on_product_progress(current: int):
            product_text.caption(f"Products done in current store: {current}")

        try:
            st.session_state[state_key] = exporter(
                data,
                on_store_progress=on_store_progress,
                on_product_progress=on_product_progress,
            )
        except PortalError as e:
            logger.error("%s export failed: %s", kind, e.message)
            st.session_state[state_key] = None
            st.error(f"❌ {EXPORT_FAILED_MESSAGE}")
        except Exception:
            logger.exception("%s export crashed", kind)
            st.session_state[state_key] = None
            st.error(f"❌ {EXPORT_FAILED_MESSAGE}")
        finally:
            store_bar.empty()
            product_text.empty()

    content = st.session_state.get(state_key)
    if content:
        st.download_button(
            "⬇️ Download",
            data=content,
            file_name=default_archive_name(prefix or f"{kind}_forecast", extension),
            mime=mime,
            key=f"{state_key}_download",
        )
