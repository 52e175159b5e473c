# Streamlit UI and orchestration for the access analyzer

import os
os.environ.setdefault("STREAMLIT_WATCHER_TYPE", "none")

import hashlib

import streamlit as st

from access_analyzer import constants as C
from access_analyzer.analysis.date_range import quick_range
from access_analyzer.analysis.export import rows_to_frame
from access_analyzer.analysis.session import AnalyzerSession
from access_analyzer.datamodels.events import ROW_FIELDS
from access_analyzer.infra.errors import AnalyzerError, describe_error
from access_analyzer.infra.logging_setup import get_session_logger, setup_logging
from access_analyzer.infra.storage import JsonFileStore
from access_analyzer.settings import load_settings
from access_analyzer.ui_components import (
    render_data_table, render_header, render_metric_cards, render_overview,
    render_server_analysis, render_sidebar_filters, render_welcome_screen,
)

st.set_page_config(
    page_title="CrowdStrike Service Access Analyzer",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource(show_spinner=False)
def _settings():
    settings = load_settings()
    setup_logging(settings.log_level)
    return settings


@st.cache_data(show_spinner=False)
def _hash_bytes(b: bytes) -> str:
    return hashlib.sha256(b or b"").hexdigest()


settings = _settings()
audit_log = get_session_logger("dashboard", settings.log_dir)

# Initialize session state
if "analyzer" not in st.session_state:
    st.session_state["analyzer"] = AnalyzerSession.restore(JsonFileStore(settings.cache_path), settings=settings)
session: AnalyzerSession = st.session_state["analyzer"]

render_header(session.current_file)

if not session.has_data:
    render_welcome_screen()

uploaded_file = st.file_uploader("Select CSV File", type=["csv"], help="CrowdStrike On-Prem Service Access export",
                                 key=f"uploader_{st.session_state.get('uploader_key', 0)}")
if uploaded_file is not None:
    uploaded_bytes = uploaded_file.getvalue()
    file_hash = _hash_bytes(uploaded_bytes)
    # Reruns re-send the same upload; only a new file is processed
    if st.session_state.get("uploaded_file_hash") != file_hash:
        st.session_state["uploaded_file_hash"] = file_hash
        with st.spinner("Processing data..."):
            try:
                session.load_bytes(uploaded_bytes, uploaded_file.name)
                audit_log.info(f"Loaded {uploaded_file.name}: {session.pattern_count} patterns")
            except AnalyzerError as e:
                # session.error carries the message shown below
                audit_log.warning(f"Rejected {uploaded_file.name}: {describe_error(e)}")

if session.error:
    st.error(session.error)

if not session.has_data:
    st.stop()

controls = render_sidebar_filters(
    session.source_options(),
    session.filters.search_term,
    session.filters.selected_source_ip,
    session.date_constraints,
    session.date_range,
)

if controls["close_file"]:
    session.reset()
    st.session_state.pop("uploaded_file_hash", None)
    # a fresh widget key empties the uploader
    st.session_state["uploader_key"] = st.session_state.get("uploader_key", 0) + 1
    st.rerun()

if controls["reset_filters"]:
    session.reset_filters()
    st.rerun()

try:
    if controls["quick_days"]:
        window = quick_range(controls["quick_days"], session.date_constraints.max_date)
        session.set_date_range(window.start_date, window.end_date)
        session.apply_date_range()
        st.rerun()
    if controls["apply_range"]:
        session.set_date_range(controls["start_date"], controls["end_date"])
        session.apply_date_range()
        st.rerun()
    if controls["clear_range"]:
        session.clear_date_range()
        st.rerun()
except AnalyzerError as e:
    st.error(describe_error(e))

if controls["search_term"] != session.filters.search_term:
    session.set_search_term(controls["search_term"])
if controls["selected_source"] != session.filters.selected_source_ip:
    session.select_source(controls["selected_source"])

# --- Results ---
columns = list(ROW_FIELDS)
sort_col1, sort_col2 = st.columns([3, 1])
with sort_col1:
    current_label = next(label for label, attr in ROW_FIELDS.items() if attr == session.filters.sort_key)
    sort_label = st.selectbox("Sort by", columns, index=columns.index(current_label))
with sort_col2:
    direction = st.radio("Order", [C.SORT_ASC, C.SORT_DESC], horizontal=True,
                         index=[C.SORT_ASC, C.SORT_DESC].index(session.filters.sort_direction))
session.set_sort(sort_label, direction)

rows = session.view()
render_metric_cards({
    "Unique Patterns": session.pattern_count,
    "Events": session.event_count,
    "Matching Patterns": len(rows),
})

filename, csv_text = session.export_csv()
st.download_button("Export to CSV", data=csv_text, file_name=filename, mime="text/csv")

render_data_table(rows_to_frame(rows), "Results")

st.markdown("### Analytics Dashboard")
analytics = session.analytics()
overview_tab, server_tab = st.tabs(["Overview", "Server Analysis"])
with overview_tab:
    render_overview(analytics)
with server_tab:
    render_server_analysis(analytics)
