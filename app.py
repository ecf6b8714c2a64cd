"""
Offer Performance Dashboard

A Streamlit dashboard for scoring catalog offers from sales and stock exports.
Run with: streamlit run app.py
"""

import io
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from offerscore.config import configure_logging, get_settings
from offerscore.clients.catalog_loader import ExportReadError, read_table
from offerscore.clients.cover_client import CoverClient, cover_url, init_cover_cache
from offerscore.core.export import export_filename, to_csv_bytes
from offerscore.core.history import HistoryStore, summary_delta
from offerscore.core.periods import month_label
from offerscore.core.pipeline import MissingSalesDataError, run_analysis
from offerscore.core.scoring import LifecycleTier, PriceTier, ScoreBand
from offerscore.core.selection import SORT_KEYS, filter_items, sort_items
from offerscore.core.summary import kpi_cards

settings = get_settings()

# Page config
st.set_page_config(
    page_title="Offer Performance Dashboard",
    page_icon="📚",
    layout="wide",
)


@st.cache_resource
def startup():
    """One-time process setup: logging and the cover cache."""
    configure_logging(settings)
    return init_cover_cache()


cover_cache = startup()


@st.cache_resource
def cover_client() -> CoverClient:
    """One HTTP client per process, shared across reruns and sessions."""
    return CoverClient(settings, cover_cache)


history = HistoryStore(settings.history_path, cap=settings.history_cap)

st.title("📚 Offer Performance Dashboard")
st.caption("Upload a sales export and, optionally, a stock export")


@st.cache_data
def load_upload(data: bytes, name: str) -> pd.DataFrame:
    """Parse an uploaded export (cached by content)."""
    return read_table(io.BytesIO(data), filename=name)


# --- Inputs ---
upload_col1, upload_col2, upload_col3 = st.columns([2, 2, 1])

with upload_col1:
    sales_file = st.file_uploader(
        "Sales export",
        type=["csv", "txt", "tsv", "xlsx"],
        help="Code, Description, Qty, Avg Price, List Price, Cost, Month/Year (MAAAA)",
    )
with upload_col2:
    stock_file = st.file_uploader(
        "Stock export (optional)",
        type=["csv", "txt", "tsv", "xlsx"],
        help="Item No., Available Qty, Description",
    )
with upload_col3:
    months_back = st.selectbox(
        "Trailing months",
        [0, 3, 6, 12, 24],
        index=[0, 3, 6, 12, 24].index(settings.default_months_back)
        if settings.default_months_back in (0, 3, 6, 12, 24)
        else 0,
        format_func=lambda m: "All" if m == 0 else f"Last {m}",
    )

if sales_file is None:
    st.info("Upload a sales export to start")
    st.stop()

try:
    sales_rows = load_upload(sales_file.getvalue(), sales_file.name)
    stock_rows = load_upload(stock_file.getvalue(), stock_file.name) if stock_file else None
except ExportReadError as exc:
    st.error(f"Error: {exc}")
    st.stop()

try:
    with st.spinner("Scoring offers..."):
        result = run_analysis(sales_rows, stock_rows, months_back=months_back)
except MissingSalesDataError as exc:
    st.error(str(exc))
    st.stop()

summary = result.summary
if summary is None:
    st.warning("No products with a code were found in the sales export")
    st.stop()

previous = history.latest()
delta = summary_delta(summary, previous)

if result.months:
    st.caption(
        f"{len(result.months)}/{result.total_months} months "
        f"({month_label(result.months[0])} → {month_label(result.months[-1])}) | "
        f"{summary.items_with_stock}/{summary.item_count} with stock | "
        f"{summary.items_with_identifier} with identifier"
    )

# --- Key Metrics Row ---
st.header("Key Metrics")
cards = kpi_cards(summary, delta)
for col, card in zip(st.columns(len(cards)), cards):
    with col:
        st.metric(card.label, card.value, delta=card.delta, delta_color=card.delta_color)

st.divider()

# --- Filters ---
filter_col1, filter_col2, filter_col3, filter_col4, filter_col5 = st.columns([1, 1, 1, 2, 1])
with filter_col1:
    tier_filter = st.selectbox(
        "Lifecycle", [None, *LifecycleTier], format_func=lambda t: "All" if t is None else t.label
    )
with filter_col2:
    band_filter = st.selectbox(
        "Band", [None, *ScoreBand], format_func=lambda b: "All" if b is None else b.label
    )
with filter_col3:
    price_filter = st.selectbox(
        "Price tier", [None, *PriceTier], format_func=lambda p: "All" if p is None else p.label
    )
with filter_col4:
    search = st.text_input("Search code, description or identifier")
with filter_col5:
    sort_key = st.selectbox("Sort by", list(SORT_KEYS))

filtered = sort_items(
    filter_items(result.items, tier_filter, band_filter, price_filter, search),
    key=sort_key,
)

# --- Two Column Layout ---
left_col, right_col = st.columns([2, 1])

with left_col:
    st.subheader("🏷️ Scored Offers")
    display_df = pd.DataFrame(
        [
            {
                "Code": i.code,
                "Description": i.description,
                "Score": i.score,
                "Band": i.band.label,
                "Tier": i.lifecycle.label,
                "Price Tier": i.price_tier.label if i.price_tier else "",
                "Margin %": round(i.margin, 1),
                "Trend %": i.trend_pct,
                "Stock": i.on_hand,
                "Coverage": i.coverage_months,
                "Promo Price": i.promo_price,
                "Cover": cover_url(i.code, settings),
                "Sales": list(i.sales.series),
            }
            for i in filtered[:300]
        ]
    )
    st.dataframe(
        display_df,
        use_container_width=True,
        hide_index=True,
        column_config={
            "Score": st.column_config.NumberColumn(format="%.1f"),
            "Coverage": st.column_config.NumberColumn(format="%.0f"),
            "Promo Price": st.column_config.NumberColumn(format="R$ %.2f"),
            "Cover": st.column_config.ImageColumn(),
            "Sales": st.column_config.LineChartColumn(),
        },
    )
    st.caption(f"Showing {min(len(filtered), 300)} of {len(filtered)} products")

with right_col:
    st.subheader("📊 Lifecycle Tiers")
    tiers = list(LifecycleTier)
    fig_tiers = go.Figure(
        data=[
            go.Pie(
                labels=[t.label for t in tiers],
                values=[summary.tier_histogram[t.key] for t in tiers],
                hole=0.4,
                marker_colors=["#DC2626", "#EA580C", "#CA8A04", "#16A34A"],
            )
        ]
    )
    fig_tiers.update_layout(
        height=260,
        margin=dict(t=20, b=20, l=20, r=20),
        legend=dict(orientation="h", yanchor="bottom", y=-0.2),
    )
    st.plotly_chart(fig_tiers, use_container_width=True)

    bands = list(ScoreBand)
    band_counts = [sum(1 for i in result.items if i.band is b) for b in bands]
    fig_bands = go.Figure(
        data=[
            go.Bar(
                x=[b.label for b in bands],
                y=band_counts,
                marker_color=["#15803D", "#4D7C0F", "#A16207", "#C2410C", "#B91C1C"],
                text=band_counts,
                textposition="outside",
            )
        ]
    )
    fig_bands.update_layout(title="Score Bands", height=240, margin=dict(t=40, b=20, l=20, r=20))
    st.plotly_chart(fig_bands, use_container_width=True)

    if filtered and cover_url(filtered[0].code, settings):
        image = cover_client().fetch(filtered[0].code)
        if image:
            st.image(image, caption=filtered[0].description, width=140)

st.divider()

# --- Save & Export ---
save_col, export_col = st.columns(2)

with save_col:
    label = st.text_input("Run label", value=month_label(result.months[-1]) if result.months else "")
    if st.button("💾 Save to history", disabled=not label):
        entries = history.save(label, summary)
        st.success(f"Saved ({len(entries)}/{settings.history_cap} runs kept)")

with export_col:
    st.download_button(
        "⬇ Export CSV",
        data=to_csv_bytes(filtered),
        file_name=export_filename(label or "export"),
        mime="text/csv",
        disabled=not filtered,
    )

# --- Data Quality ---
with st.expander("📋 View Data Quality Reports"):
    for name, report in result.quality_reports.items():
        st.markdown(f"**{report.source_name}** ({report.total_rows:,} rows)")
        if not report.issues:
            st.markdown("✅ No issues found")
        for issue in report.issues[:8]:
            icon = "🔴" if issue.severity == "critical" else "🟡" if issue.severity == "warning" else "🔵"
            st.markdown(f"{icon} {issue.column}: {issue.description}")

# --- History ---
entries = history.load()
if entries:
    with st.expander(f"🕘 History ({len(entries)} runs)"):
        st.dataframe(
            pd.DataFrame([e.model_dump(exclude={"tier_histogram"}) for e in entries]),
            use_container_width=True,
            hide_index=True,
        )

# --- Footer ---
st.divider()
stock_note = f"{len(stock_rows):,} rows" if stock_rows is not None else "not provided"
st.caption(
    "Built with Streamlit | "
    f"Sales: {len(sales_rows):,} rows | "
    f"Stock: {stock_note} | "
    f"Matched: {result.reconciliation.summary()['match_rate']}"
)
