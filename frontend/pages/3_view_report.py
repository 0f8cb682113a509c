import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import re

import pandas as pd
import plotly.graph_objects as go
import streamlit as st
import streamlit.components.v1 as components

from utils.api_client import ApiClient, cached_cases
from utils.theme import (
    apply_theme,
    case_label,
    get_colors,
    kpi_tile,
    plotly_layout_defaults,
    render_sidebar_branch,
    section_title,
)

st.set_page_config(page_title="View Report", page_icon="🖨️", layout="wide")
apply_theme()
render_sidebar_branch()
COLORS = get_colors()

client = ApiClient(st.session_state.branch_id)

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🖨️ View Report</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        The print layout follows this branch's print settings.
    </p>
    """,
    unsafe_allow_html=True,
)

ok, cases = cached_cases(st.session_state.branch_id)
if not ok or not cases:
    st.info("No cases available for this branch.")
    st.stop()

ids = [c["id"] for c in cases]
default_index = ids.index(st.session_state["active_case_id"]) if st.session_state.get("active_case_id") in ids else 0
case = st.selectbox("Case", cases, index=default_index, format_func=case_label)
case_id = case["id"]

res = client.result(case_id)
if res.status_code == 404:
    st.info("No results saved for this case yet.")
    st.stop()
if not res.ok:
    st.error(res.json().get("message", "Failed to load result."))
    st.stop()
result = res.json()["data"]

_RANGE_RE = re.compile(r"(-?\d+(?:\.\d+)?)\s*-\s*(-?\d+(?:\.\d+)?)")


def _flag(value: str, reference: str) -> str:
    match = _RANGE_RE.search(reference or "")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ""
    if not match:
        return ""
    if number < float(match.group(1)):
        return "L"
    if number > float(match.group(2)):
        return "H"
    return ""


def _rows(nodes: list[dict], category: str, block: str = "") -> list[dict]:
    rows = []
    for node in nodes:
        if "params" in node:
            for param in node["params"]:
                rows.append(
                    {
                        "Category": category,
                        "Panel / Package": block,
                        "Test": node["testName"],
                        "Parameter": param["name"],
                        "Value": param["value"],
                        "Unit": param["unit"],
                        "Reference": param["reference"],
                        "Flag": _flag(param["value"], param["reference"]),
                    }
                )
        else:
            rows.extend(_rows(node["tests"], category, node["panelOrPackageName"]))
    return rows


rows = [row for category in result["categories"] for row in _rows(category["items"], category["categoryName"])]
df = pd.DataFrame(rows)

# ── Summary ───────────────────────────────────────────────────────────────
filled = int((df["Value"] != "").sum()) if not df.empty else 0
flagged = int((df["Flag"] != "").sum()) if not df.empty else 0
k1, k2, k3, k4 = st.columns(4)
k1.markdown(kpi_tile("Parameters", len(df), COLORS["primary"]), unsafe_allow_html=True)
k2.markdown(kpi_tile("Filled", filled, COLORS["info"]), unsafe_allow_html=True)
k3.markdown(kpi_tile("Flagged", flagged, COLORS["danger"] if flagged else COLORS["success"]), unsafe_allow_html=True)
k4.markdown(kpi_tile("Report", case["report_status"], COLORS["text"]), unsafe_allow_html=True)

if filled:
    fig = go.Figure(
        go.Pie(
            labels=["Within range", "Flagged"],
            values=[filled - flagged, flagged],
            hole=0.55,
            marker=dict(colors=[COLORS["success"], COLORS["danger"]]),
            textinfo="label+value",
        )
    )
    fig.update_layout(**plotly_layout_defaults("Result flags"))
    st.plotly_chart(fig, use_container_width=True)

# ── Report status ─────────────────────────────────────────────────────────
section_title("Report status")
flow = ["In Progress", "Signed Off", "Final"]
current = flow.index(case["report_status"])
cols = st.columns(len(flow) - 1)
for col, status in zip(cols, flow[current + 1:]):
    if col.button(f"Mark {status}", use_container_width=True):
        update = client.set_report_status(case_id, status)
        if update.ok:
            cached_cases.clear()
            st.rerun()
        else:
            st.error(update.json().get("message", "Status change failed."))
if case.get("tat_minutes") is not None:
    st.caption(f"Turnaround: {case['tat_minutes'] // 60}h {case['tat_minutes'] % 60}m")

# ── Print view ────────────────────────────────────────────────────────────
section_title("Print view")
html_res = client.print_html(case_id)
if html_res.ok:
    components.html(html_res.text, height=900, scrolling=True)
    st.download_button("Download HTML", html_res.text, file_name=f"report_{result['report_no']}.html", mime="text/html")
else:
    st.error("Failed to render the print view.")

if not df.empty:
    st.download_button(
        "Export CSV",
        df.to_csv(index=False),
        file_name=f"report_{result['report_no']}.csv",
        mime="text/csv",
    )
