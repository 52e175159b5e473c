# ui_components.py - Dashboard UI components for the access analyzer

import html

import streamlit as st
import pandas as pd
from typing import Any, Dict, List, Optional

from access_analyzer import constants as C
from access_analyzer.analysis.dashboard import Analytics
from access_analyzer.datamodels.events import SourceOption


def render_header(current_file: str = ""):
    """Render header with title and the name of the loaded export."""
    col1, col2 = st.columns([3, 1])

    with col1:
        st.markdown("### CrowdStrike Service Access Analyzer")

    with col2:
        if current_file:
            st.markdown(f"""
            <div style='text-align: right; font-size: 12px; color: #888;'>
                {html.escape(current_file)}
            </div>
            """, unsafe_allow_html=True)


def render_info_card(title: str, content: str, color: str = "#f8f9fa"):
    """Render information card with professional styling."""
    st.markdown(f"""
    <div style='
        background-color: {color};
        border-left: 4px solid #1f77b4;
        padding: 15px;
        margin: 10px 0;
        border-radius: 5px;
    '>
        <h4 style='margin: 0 0 10px 0; color: #1f77b4;'>{title}</h4>
        <p style='margin: 0; color: #333;'>{content}</p>
    </div>
    """, unsafe_allow_html=True)


def render_metric_cards(metrics: Dict[str, Any]):
    """Render key metrics side by side."""
    cols = st.columns(len(metrics))
    for col, (key, value) in zip(cols, metrics.items()):
        with col:
            st.metric(key, value)


def render_welcome_screen():
    """About, data source and required headers, shown before a file is loaded."""
    col1, col2, col3 = st.columns(3)

    with col1:
        render_info_card(
            "About",
            "Upload your \"On-Prem Service Access\" CSV export to spot unique access patterns, "
            "track frequencies and map relationships over time. Everything runs locally.",
        )

    with col2:
        render_info_card(
            "Data Source",
            "Identity Protection &rarr; Threat Hunter &rarr; Activity, filter for "
            "\"On-Prem Service Access\" events, then Export as CSV.",
        )

    with col3:
        render_info_card("Required Headers", ", ".join(C.REQUIRED_COLUMNS))


def render_sidebar_filters(options: List[SourceOption], search_term: str, selected_source: str,
                           constraints, date_range) -> Dict[str, Any]:
    """Render search, source selector and date range controls. Returns the widget values and button clicks."""
    st.sidebar.markdown("---")

    values: Dict[str, Any] = {}
    with st.sidebar.expander("Filters", expanded=True):
        values["search_term"] = st.text_input("Search", value=search_term, placeholder="Search by source, target, IP...")

        labels = {"": "All Sources"}
        labels.update({opt.value: opt.label for opt in options})
        keys = list(labels)
        index = keys.index(selected_source) if selected_source in labels else 0
        values["selected_source"] = st.selectbox("Source", keys, index=index, format_func=lambda k: labels[k])

    with st.sidebar.expander("Date Range", expanded=bool(date_range.start_date or date_range.end_date)):
        bounds = {"min_value": constraints.min_date, "max_value": constraints.max_date}
        values["start_date"] = st.date_input("Start Date", value=date_range.start_date, **bounds)
        values["end_date"] = st.date_input("End Date", value=date_range.end_date, **bounds)
        quick_cols = st.columns(len(C.QUICK_RANGE_DAYS))
        values["quick_days"] = None
        for col, days in zip(quick_cols, C.QUICK_RANGE_DAYS):
            with col:
                if st.button(f"{days}d", key=f"quick_{days}", help=f"Last {days} days"):
                    values["quick_days"] = days
        values["apply_range"] = st.button("Apply Filter", type="primary", use_container_width=True)
        values["clear_range"] = st.button("Clear Range", use_container_width=True)

    values["reset_filters"] = st.sidebar.button("Reset all filters")
    values["close_file"] = st.sidebar.button("Close current file")
    return values


def render_data_table(df: pd.DataFrame, title: str, max_height: int = C.MAX_TABLE_HEIGHT):
    """Render data table; an empty frame shows the no-results state."""
    st.markdown(f"#### {title}")
    if df.empty:
        st.info(C.NO_RESULTS_MESSAGE)
        return

    st.dataframe(
        df,
        use_container_width=True,
        hide_index=True,
        height=min(max_height, len(df) * 35 + 50)
    )


def render_progress_list(title: str, items: List[Dict[str, Any]], total: Optional[float], unit: str):
    """Label/value bars scaled against total (the top entry when total is None)."""
    st.markdown(f"#### {title}")
    if not items:
        st.caption("No matching data")
        return
    scale = total or max(item["value"] for item in items) or 1
    for item in items:
        st.caption(f"{item['label']} - {item['value']} {unit}")
        st.progress(min(item["value"] / scale, 1.0))


def render_bar_chart(title: str, labels: List[str], values: List[float], value_name: str):
    st.markdown(f"#### {title}")
    if not labels:
        st.caption("No matching data")
        return
    st.bar_chart(pd.DataFrame({value_name: values}, index=labels))


def render_overview(analytics: Analytics):
    """Overview tab: the six aggregates as progress lists and charts."""
    if analytics.is_empty:
        st.info("No Matching Data")
        return

    col1, col2 = st.columns(2)
    with col1:
        render_progress_list("Top Sources by Activity",
                             [{"label": s.source, "value": s.total_freq} for s in analytics.top_sources],
                             None, "events")
        render_progress_list("Top Services",
                             [{"label": s.service, "value": s.percentage} for s in analytics.service_stats],
                             100, "%")
        render_progress_list("Top Source IPs",
                             [{"label": ip.ip, "value": ip.total_freq} for ip in analytics.ip_distribution[:C.TOP_SOURCES_LIMIT]],
                             None, "events")
    with col2:
        render_bar_chart("Common Time Patterns",
                         [t.time_pattern for t in analytics.time_pattern_analysis],
                         [t.total_freq for t in analytics.time_pattern_analysis], "events")
        top_targets = analytics.target_frequency[:C.TOP_SOURCES_LIMIT]
        render_bar_chart("Most Targeted Systems",
                         [t.label for t in top_targets], [t.frequency for t in top_targets], "events")
        render_bar_chart("Strongest Source-Target Relations",
                         [r.label for r in analytics.relationship_strength],
                         [r.strength for r in analytics.relationship_strength], "strength")


def render_server_analysis(analytics: Analytics):
    """Server Analysis tab: one panel per source IP."""
    if not analytics.ip_distribution:
        st.info("No Matching Data")
        return

    for server in analytics.ip_distribution:
        title = f"{server.ip} ({', '.join(server.hostnames)})" if server.hostnames else server.ip
        with st.expander(title, expanded=False):
            render_metric_cards({
                "Total Events": server.total_freq,
                "Unique Services": server.unique_services,
                "Unique Targets": server.unique_targets,
                "Avg Events / Target": server.avg_events_per_target,
            })
            st.markdown("**Services:** " + ", ".join(server.services))
            st.markdown("**Targets:** " + ", ".join(server.targets))
