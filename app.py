import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Dict, List, Optional

from marketing_core.aggregate import aggregate_campaigns, aggregate_devices, aggregate_weekly, flatten_demographics
from marketing_core.charts import configure_charts
from marketing_core.data import LOAD_FAILED_MESSAGE, load_marketing_data, load_regional_performance, prepare_context
from marketing_core.filters import DEFAULT_TOP_N, normalize_filters
from marketing_core.metrics_campaigns import compute_campaigns
from marketing_core.metrics_demographic import compute_demographic
from marketing_core.metrics_device import compute_device
from marketing_core.metrics_region import compute_region
from marketing_core.metrics_weekly import compute_weekly

configure_charts()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #374151;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #9CA3AF;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #F9FAFB;}
        .card {border: 1px solid #374151;border-radius: 12px;padding: 16px;background: #1F2937;
               box-shadow: 0 1px 2px rgba(0,0,0,0.2); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #60A5FA;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #374151;border: 1px solid #4B5563;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #D1D5DB;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(selected_campaigns: List[str], week_from: str, week_to: str) -> str:
    campaign_chip = "Campaigns: All" if not selected_campaigns else f"Campaigns: {len(selected_campaigns)} selected"
    if week_from or week_to:
        week_chip = f"Weeks: {week_from or '…'} – {week_to or '…'}"
    else:
        week_chip = "Weeks: All"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [campaign_chip, week_chip]])


def render_page_header(title: str, subtitle: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{subtitle}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


def render_metric_cards(cards: Dict[str, str], labels: Dict[str, str]):
    cols = st.columns(len(labels))
    for col, (key, label) in zip(cols, labels.items()):
        col.metric(label, cards.get(key, "0"))


def render_chart(spec: Optional[dict], empty_message: str = "No data available."):
    if not spec:
        st.info(empty_message)
        return
    st.vega_lite_chart(spec, width="stretch")


# ---------- UI setup ----------
st.set_page_config(page_title="Campaign Performance Dashboard", layout="wide")
inject_base_styles()
st.title("Campaign Performance Dashboard")

data = load_marketing_data()
if data is None:
    st.error(LOAD_FAILED_MESSAGE)
    st.stop()

all_labels = prepare_context({}, data)["all_campaign_labels"]

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    current_page = st.radio("Navigate", ["Campaigns", "Demographic", "Device", "Region", "Weekly"], index=0)

    st.markdown("---")
    st.markdown("### Quick filters")
    selected_campaigns = st.multiselect("Campaigns", options=all_labels, default=[])
    week_cols = st.columns(2)
    week_from = week_cols[0].date_input("Weeks from", value=None)
    week_to = week_cols[1].date_input("Weeks to", value=None)
    with st.expander("Advanced settings", expanded=False):
        top_n = st.slider("Top N campaigns", min_value=5, max_value=50, value=DEFAULT_TOP_N, step=5)

filters = normalize_filters(
    {
        "selected_campaigns": selected_campaigns,
        "week_from": week_from.isoformat() if week_from else "",
        "week_to": week_to.isoformat() if week_to else "",
        "top_n": top_n,
    }
)
ctx = prepare_context(filters, data)
filter_summary_html = format_filter_summary(filters.selected_campaigns, filters.week_from, filters.week_to)


def render_campaigns_page():
    payload = compute_campaigns(filters, ctx)
    export_df = aggregate_campaigns(ctx["campaigns"], ctx["campaign_labels"])
    render_page_header("Campaign View", "Overall spend and return per campaign.", filter_summary_html, export_df=export_df, export_name="campaigns.csv")
    kpis = payload["kpis"]
    if not kpis:
        st.info("No campaigns match the selected filters.")
        return
    with card("Totals"):
        cols = st.columns(4)
        cols[0].metric("Campaigns", f"{kpis['campaign_count']:,}")
        cols[1].metric("Total Spend", f"${kpis['total_spend']:,.0f}")
        cols[2].metric("Total Revenue", f"${kpis['total_revenue']:,.0f}")
        cols[3].metric("ROAS", f"{kpis['roas']:.2f}x")
    with card("Revenue by Week"):
        render_chart(payload["charts"].get("revenue_trend"), "No weekly data for the selected campaigns.")
    with card("Top Campaigns"):
        top = pd.DataFrame(payload["top"])
        st.dataframe(
            top[["rank", "campaign", "platform", "status", "spend_display", "revenue_display", "roas_display"]].rename(
                columns={"spend_display": "spend", "revenue_display": "revenue", "roas_display": "roas"}
            ),
            hide_index=True,
            width="stretch",
        )


def render_demographic_page():
    payload = compute_demographic(filters, ctx)
    render_page_header("Demographic View", "Audience performance by gender and age group.", filter_summary_html, export_df=flatten_demographics(ctx["campaigns"]), export_name="demographic.csv")
    card_labels = {"total_clicks": "Total Clicks", "total_spend": "Total Spend", "total_revenue": "Total Revenue"}
    gender_cols = st.columns(2)
    for col, gender in zip(gender_cols, ["male", "female"]):
        with col:
            with card(f"{gender.title()} Metrics"):
                render_metric_cards(payload["cards"][gender], card_labels)

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Spend by Age Group"):
            render_chart(payload["charts"].get("spend_by_age_group"))
    with chart_cols[1]:
        with card("Revenue by Age Group"):
            render_chart(payload["charts"].get("revenue_by_age_group"))

    table_cols = st.columns(2)
    for col, gender in zip(table_cols, ["male", "female"]):
        with col:
            with card(f"Performance by {gender.title()} Age Groups"):
                rows = payload["tables"][gender]
                if not rows:
                    st.info("No age group data.")
                else:
                    st.dataframe(pd.DataFrame(rows), hide_index=True, width="stretch")


def render_device_page():
    payload = compute_device(filters, ctx)
    render_page_header("Device Performance", "Comparing campaign effectiveness across devices.", filter_summary_html, export_df=aggregate_devices(ctx["campaigns"]), export_name="device.csv")
    if not payload["devices"]:
        st.info("No device data available.")
        return
    card_labels = {"total_spend": "Total Spend", "total_revenue": "Total Revenue", "total_conversions": "Total Conversions"}
    device_cols = st.columns(min(3, len(payload["devices"])))
    for i, device in enumerate(payload["devices"]):
        with device_cols[i % len(device_cols)]:
            with card(f"{device} Performance"):
                render_metric_cards(payload["cards"][device], card_labels)

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Revenue by Device"):
            render_chart(payload["charts"].get("revenue_by_device"))
    with chart_cols[1]:
        with card("CTR & Conversion Rate by Device"):
            render_chart(payload["charts"].get("performance_by_device"))
    with card("Device Comparison"):
        st.dataframe(pd.DataFrame(payload["table"]), hide_index=True, width="stretch")


def render_region_page():
    payload = compute_region(filters)
    render_page_header("Region View", "Revenue and spend by region.", filter_summary_html, export_df=load_regional_performance(), export_name="region.csv")
    with card("Regional Revenue"):
        render_chart(payload["charts"].get("region_map"), "No regional data available.")
    if payload["table"]:
        with card("Regions"):
            st.dataframe(pd.DataFrame(payload["table"]), hide_index=True, width="stretch")


def render_weekly_page():
    payload = compute_weekly(filters, ctx)
    render_page_header("Weekly View", "Track campaign performance on a week-by-week basis.", filter_summary_html, export_df=aggregate_weekly(ctx["weekly_campaigns"]), export_name="weekly.csv")
    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Weekly Revenue Over Time"):
            render_chart(payload["charts"].get("revenue_by_week"), "No weekly data available.")
    with chart_cols[1]:
        with card("Weekly Spend Over Time"):
            render_chart(payload["charts"].get("spend_by_week"), "No weekly data available.")


if current_page == "Campaigns":
    render_campaigns_page()
elif current_page == "Demographic":
    render_demographic_page()
elif current_page == "Device":
    render_device_page()
elif current_page == "Region":
    render_region_page()
else:
    render_weekly_page()
