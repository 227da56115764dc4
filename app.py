"""
Order Registry Dashboard

A Streamlit dashboard for tracking purchase orders.
Run with: streamlit run app.py
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
from openai import OpenAIError

from integrations import (
    DocumentExtractor,
    JsonFileStore,
    OrderRegistry,
    PendingDecisionError,
    Settings,
    SourceDocument,
    export_filename,
    setup_logging,
)
from tracker.classification import is_late, status_tone
from tracker.filters import ALL_VENDORS, RegistryView, short_customer_name, unique_vendors
from tracker.insights import SummaryGenerationError, SummaryGenerator
from tracker.reconciliation import DuplicateDecision

# Page config
st.set_page_config(
    page_title="Order Registry",
    page_icon="📦",
    layout="wide",
)

st.title("📦 Order Registry")
st.caption("Purchase order tracking, reconciliation and operational metrics")

TONE_EMOJI = {"fulfilled": "🟢", "late": "🔴", "open": "🟡"}
CATEGORY_COLORS = {
    "Fulfilled": "#2ecc71",
    "Exceptions": "#e74c3c",
    "In Transit": "#3498db",
    "Pending": "#9b59b6",
}


@st.cache_resource
def load_settings() -> Settings:
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_dir)
    return settings


def open_registry(settings: Settings) -> OrderRegistry:
    """Open the registry; AI features are disabled if no API key is configured."""
    try:
        extractor = DocumentExtractor(model=settings.extraction_model)
        summarizer = SummaryGenerator(model=settings.summary_model)
    except OpenAIError:
        extractor, summarizer = None, None
    return OrderRegistry.open(
        JsonFileStore(settings.data_dir), extractor=extractor, summarizer=summarizer
    )


settings = load_settings()
if "registry" not in st.session_state:
    st.session_state.registry = open_registry(settings)
registry: OrderRegistry = st.session_state.registry

if registry.extractor is None:
    st.warning("OPENAI_API_KEY is not set: document scans and executive reports are disabled.")

# --- Sidebar: import, history, export ---
with st.sidebar:
    st.header("Import")
    uploads = st.file_uploader(
        "Scanned documents or CSV",
        type=["png", "jpg", "jpeg", "webp", "pdf", "csv"],
        accept_multiple_files=True,
    )
    reimport = st.checkbox("Re-import files already analyzed")

    if st.button(
        "Process files",
        disabled=not uploads or bool(registry.pending_imports),
        help="Resolve the duplicate records first" if registry.pending_imports else None,
        use_container_width=True,
    ):
        documents = [
            SourceDocument(name=f.name, content=f.getvalue(), mime_type=f.type or "image/png")
            for f in uploads
        ]
        try:
            with st.spinner(f"Processing {len(documents)} document(s)..."):
                result = registry.import_documents(
                    documents, confirm_reprocess=lambda name: reimport
                )
        except PendingDecisionError:
            st.warning("Resolve the duplicate records before importing more files.")
        else:
            if result.accepted:
                st.success(f"Import successful. {len(result.accepted)} records added.")
            elif not result.requires_decision:
                st.info("No new records found.")

    st.divider()
    st.header(f"Archived Items ({len(registry.history)})")
    if not registry.history:
        st.caption("No archived records")
    for item in registry.history:
        col_a, col_b = st.columns([4, 1])
        col_a.markdown(f"**{item.customer_name}**  \nPO#{item.order_num}")
        if col_b.button("↩", key=f"restore-{item.id}"):
            registry.restore_order(item.id)
            st.rerun()

    st.divider()
    st.download_button(
        "⬇️ Export CSV",
        data=registry.export_csv(),
        file_name=export_filename(),
        mime="text/csv",
        disabled=not registry.orders,
        use_container_width=True,
    )

    with st.expander("Factory reset"):
        confirm = st.checkbox("Permanently remove all order records and history")
        if st.button("Reset", disabled=not confirm):
            registry.factory_reset()
            st.session_state.pop("summary", None)
            st.rerun()

# --- Duplicate decision ---
if registry.pending_imports:
    with st.container(border=True):
        st.subheader("⚠️ Duplicate Records")
        st.write(f"{len(registry.pending_imports)} existing entries detected.")
        dup_df = pd.DataFrame(
            [
                {
                    "Vendor": p.new_order.vendor_code,
                    "Customer": p.new_order.customer_name,
                    "PO#": p.new_order.order_num,
                    "Status": p.new_order.status,
                }
                for p in registry.pending_imports
            ]
        )
        st.dataframe(dup_df, use_container_width=True, hide_index=True)
        col_skip, col_keep = st.columns(2)
        if col_skip.button("Ignore", use_container_width=True):
            registry.resolve_duplicates(DuplicateDecision.SKIP)
            st.rerun()
        if col_keep.button("Import All", type="primary", use_container_width=True):
            registry.resolve_duplicates(DuplicateDecision.KEEP)
            st.rerun()

metrics = registry.metrics()

# --- Key Metrics Row ---
col1, col2, col3 = st.columns(3)
col1.metric("Total Registry", metrics.total, delta="orders", delta_color="off")
col2.metric("Active Pipeline", metrics.pending_count, delta="open", delta_color="off")
col3.metric("Overdue Orders", metrics.late_count, delta="alerts", delta_color="inverse")

st.divider()

if not registry.orders:
    st.info("Upload scanned POS documents or CSV data to start tracking orders.")
    st.stop()

# --- Registry Table ---
st.subheader("Order Registry")

filter_col1, filter_col2, filter_col3 = st.columns([2, 1, 1])
query = filter_col1.text_input("Search registry", placeholder="Customer, vendor, PO#, notes")
vendor = filter_col2.selectbox("Vendor", [ALL_VENDORS] + unique_vendors(registry.orders))
view = filter_col3.radio(
    "View", [v.value for v in RegistryView], horizontal=True, format_func=str.title
)

visible = registry.view(query=query, vendor=vendor, view=view)

table_df = pd.DataFrame(
    [
        {
            "id": o.id,
            "#": o.line_number,
            "Vendor": o.vendor_code,
            "Customer": short_customer_name(o.customer_name),
            "Description/Notes": o.description,
            "Est ID": o.est_num,
            "Order #": o.order_num,
            "Date": o.order_date,
            "ETA": f"{o.expected_recv_date} ⏰ LATE"
            if is_late(o.status, o.expected_recv_date)
            else o.expected_recv_date,
            "Status": f"{TONE_EMOJI[status_tone(o.status, o.expected_recv_date)]} {o.status}",
        }
        for o in visible
    ],
    columns=["id", "#", "Vendor", "Customer", "Description/Notes", "Est ID",
             "Order #", "Date", "ETA", "Status"],
)

edited = st.data_editor(
    table_df,
    use_container_width=True,
    hide_index=True,
    column_config={"id": None},
    disabled=[c for c in table_df.columns if c != "Description/Notes"],
    key=f"registry_table-{st.session_state.get('table_version', 0)}",
)

# Only the description column is editable
changed_rows = [
    (before.id, after["Description/Notes"] or "")
    for before, (_, after) in zip(table_df.itertuples(index=False), edited.iterrows())
    if before[4] != after["Description/Notes"]
]
if changed_rows:
    for order_id, description in changed_rows:
        registry.update_description(order_id, description)
    # Editor edits are positional; start a fresh editor so they don't follow the filters
    st.session_state.table_version = st.session_state.get("table_version", 0) + 1
    st.rerun()

st.caption(f"Showing {len(visible)} of {len(registry.orders)} orders")

with st.expander("🗑️ Delete an order"):
    labels = {o.id: f"{o.vendor_code} · {o.customer_name} · PO#{o.order_num}" for o in visible}
    to_delete = st.selectbox("Order", list(labels), format_func=labels.get)
    if st.button("Move to archive", disabled=to_delete is None):
        registry.delete_order(to_delete)
        st.rerun()

st.divider()

# --- Operational Metrics ---
header_col, button_col = st.columns([3, 1])
header_col.subheader("📊 Operational Metrics")

if button_col.button("Generate Executive Report", use_container_width=True):
    st.session_state.pop("summary", None)
    with st.spinner("Compiling summary..."):
        try:
            st.session_state.summary = registry.generate_summary()
        except SummaryGenerationError:
            st.error("AI reporting failed. Please try again.")

m1, m2, m3 = st.columns(3)
m1.metric("Average Lead Time", f"{metrics.avg_lead_time_days} days",
          help="Average days between order placement and expected arrival.")
m2.metric("Registry Fulfillment", f"{metrics.fulfillment_rate}%",
          help="Share of orders marked received.")
m3.metric("Average Delay", f"{metrics.avg_aging_days} days late",
          help="Average days overdue for orders past their expected arrival.")


def bar_chart(data: list[tuple[str, int]], title: str, color: str, horizontal: bool = False):
    labels = [label for label, _ in data]
    values = [value for _, value in data]
    bar = (
        go.Bar(x=values, y=labels, orientation="h", marker_color=color)
        if horizontal
        else go.Bar(x=labels, y=values, marker_color=color)
    )
    fig = go.Figure(data=[bar])
    fig.update_layout(title=title, height=280, margin=dict(t=40, b=20, l=20, r=20))
    return fig


chart_col1, chart_col2, chart_col3 = st.columns(3)

with chart_col1:
    st.plotly_chart(
        bar_chart(metrics.monthly_volume, "Monthly Load", "#6366f1"), use_container_width=True
    )

with chart_col2:
    fig_status = go.Figure(
        data=[
            go.Pie(
                labels=[label for label, _ in metrics.status_composition],
                values=[count for _, count in metrics.status_composition],
                hole=0.4,
                marker_colors=[CATEGORY_COLORS[label] for label, _ in metrics.status_composition],
            )
        ]
    )
    fig_status.update_layout(
        title="Composition",
        height=280,
        margin=dict(t=40, b=20, l=20, r=20),
        legend=dict(orientation="h", yanchor="bottom", y=-0.2),
    )
    st.plotly_chart(fig_status, use_container_width=True)

with chart_col3:
    st.plotly_chart(
        bar_chart(metrics.day_of_week_volume, "Load Density", "#94a3b8"),
        use_container_width=True,
    )

chart_col4, chart_col5, chart_col6 = st.columns(3)

with chart_col4:
    st.plotly_chart(
        bar_chart(list(reversed(metrics.vendor_volume)), "Top Vendors", "#3498db", horizontal=True),
        use_container_width=True,
    )

with chart_col5:
    st.plotly_chart(
        bar_chart(metrics.aging_tiers, "Aging Tiers (days late)", "#e74c3c"),
        use_container_width=True,
    )

with chart_col6:
    st.plotly_chart(
        bar_chart(
            list(reversed(metrics.vendor_lead_times)),
            "Fastest Vendors (avg lead days)",
            "#2ecc71",
            horizontal=True,
        ),
        use_container_width=True,
    )

# --- Executive Report ---
summary = st.session_state.get("summary")
if summary is not None:
    st.divider()
    st.subheader("📝 Executive Report")
    st.write(summary.summary)
    insight_icon = {"positive": "✅", "warning": "🟠", "alert": "🔴"}
    for insight in summary.insights:
        st.markdown(f"{insight_icon[insight.category]} **{insight.title}**: {insight.content}")

# --- Footer ---
st.divider()
st.caption(
    f"Orders: {metrics.total} | Archived: {len(registry.history)} | "
    f"Files analyzed: {len(registry.processed_files)}"
)
