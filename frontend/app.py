import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import pandas as pd
import streamlit as st
from utils.api_client import cached_cases
from utils.theme import apply_theme, get_colors, kpi_tile, render_sidebar_branch, section_title

st.set_page_config(
    page_title="Lab Results Desk",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded",
)
apply_theme()
render_sidebar_branch()
COLORS = get_colors()

branch_id = st.session_state.branch_id

st.markdown(
    f"""
    <div style="margin-bottom:8px;">
        <span style="font-size:1.8rem;font-weight:800;color:{COLORS['text']};">
            Lab Results Desk
        </span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Branch <b>{branch_id}</b>: register cases, enter results and print reports.
    </p>
    """,
    unsafe_allow_html=True,
)

ok, cases = cached_cases(branch_id)
if not ok:
    st.error("Could not reach the API. Is the backend running?")
    st.stop()

in_progress = sum(1 for c in cases if c.get("report_status") == "In Progress")
final = sum(1 for c in cases if c.get("report_status") == "Final")
due = sum(1 for c in cases if c.get("status") == "due")

cols = st.columns(4)
tiles = [
    ("Recent Cases", len(cases), COLORS["primary"]),
    ("In Progress", in_progress, COLORS["warning"] if in_progress else COLORS["success"]),
    ("Final", final, COLORS["info"]),
    ("Payment Due", due, COLORS["danger"] if due else COLORS["success"]),
]
for col, (label, value, color) in zip(cols, tiles):
    col.markdown(kpi_tile(label, value, color), unsafe_allow_html=True)

st.markdown("<div style='height:24px'></div>", unsafe_allow_html=True)

nav_items = [
    ("📝", "Register Case", "Capture patient details, tests and payment."),
    ("🧮", "Enter Results", "Fill parameter values; formulas recalculate on demand."),
    ("🖨️", "View Report", "Print view, report status and CSV export."),
    ("⚙️", "Print Settings", "Branch layout: markers, colours, category order."),
]
nav_cols = st.columns(len(nav_items))
for col, (icon, title, desc) in zip(nav_cols, nav_items):
    col.markdown(
        f"""
        <div class="nav-card">
            <div class="nav-icon">{icon}</div>
            <div class="nav-title">{title}</div>
            <div class="nav-desc">{desc}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )

section_title("Recent cases")
if not cases:
    st.info("No cases registered for this branch yet.")
else:
    df = pd.DataFrame(
        [
            {
                "Reg. No": c["reg_no"],
                "DCN": c["dcn"],
                "Patient": f"{c['patient']['first_name']} {c['patient']['last_name']}".strip(),
                "Age": f"{c['patient']['age']:g} {c['patient']['age_unit']}",
                "Sex": c["patient"]["sex"],
                "Report": c["report_status"],
                "Payment": c["status"],
                "Balance": c["payment"]["balance"],
                "Registered": c["created_at"][:16].replace("T", " "),
            }
            for c in cases
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)
