"""
Shared theme, CSS injection, color palette, and UI helper functions
for the lab operator Streamlit frontend.
"""

from __future__ import annotations

import streamlit as st

from utils.api_client import DEFAULT_BRANCH

# ---------------------------------------------------------------------------
# Color palettes (light + dark)
# ---------------------------------------------------------------------------
COLORS_LIGHT: dict[str, str] = {
    "primary": "#0D9488",       # teal-600
    "accent": "#F97316",        # orange-500
    "danger": "#EF4444",        # red-500
    "danger_light": "#FEE2E2",  # red-100
    "warning": "#F59E0B",       # amber-500
    "warning_light": "#FEF3C7", # amber-100
    "success": "#10B981",       # emerald-500
    "success_light": "#D1FAE5", # emerald-100
    "info": "#3B82F6",          # blue-500
    "info_light": "#DBEAFE",    # blue-100
    "text": "#1E293B",          # slate-800
    "text_secondary": "#475569", # slate-600
    "text_muted": "#475569",    # slate-600
    "bg_card": "#FFFFFF",
    "bg_page": "#F8FAFC",       # slate-50
    "border": "#E2E8F0",        # slate-200
}

COLORS_DARK: dict[str, str] = {
    "primary": "#14B8A6",       # teal-400
    "accent": "#FB923C",        # orange-400
    "danger": "#F87171",        # red-400
    "danger_light": "#450A0A",  # red-950
    "warning": "#FBBF24",       # amber-400
    "warning_light": "#451A03", # amber-950
    "success": "#34D399",       # emerald-400
    "success_light": "#022C22", # emerald-950
    "info": "#60A5FA",          # blue-400
    "info_light": "#172554",    # blue-950
    "text": "#F1F5F9",          # slate-100
    "text_secondary": "#CBD5E1", # slate-300
    "text_muted": "#94A3B8",    # slate-400
    "bg_card": "#1E293B",       # slate-800
    "bg_page": "#0F172A",       # slate-900
    "border": "#334155",        # slate-700
}


def get_colors() -> dict[str, str]:
    """Return the active palette based on ``st.session_state.dark_mode``."""
    if st.session_state.get("dark_mode", False):
        return COLORS_DARK
    return COLORS_LIGHT


# ---------------------------------------------------------------------------
# Plotly helpers (palette-aware)
# ---------------------------------------------------------------------------
def plotly_layout_defaults(title: str = "", height: int = 300) -> dict:
    """Return a dict of common Plotly layout kwargs for consistent styling."""
    c = get_colors()
    return dict(
        title=dict(text=title, font=dict(size=16, color=c["text"])),
        template="plotly_dark" if st.session_state.get("dark_mode") else "plotly_white",
        height=height,
        margin=dict(l=20, r=20, t=50, b=20),
        font=dict(family="Inter, system-ui, sans-serif", size=13, color=c["text"]),
        paper_bgcolor="rgba(0,0,0,0)",
        showlegend=False,
    )


# ---------------------------------------------------------------------------
# CSS injection (built dynamically for active palette)
# ---------------------------------------------------------------------------
_CSS_TEMPLATE = """
<style>
[data-testid="stAppViewContainer"] {
    background-color: %(bg_page)s;
}
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] p,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] span,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] td {
    color: %(text)s;
}

/* ---------- Flag badges ---------- */
.flag-badge {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 9999px;
    font-size: 0.75rem;
    font-weight: 600;
    letter-spacing: 0.03em;
}
.flag-high  { background: %(danger_light)s; color: %(danger)s; }
.flag-low   { background: %(info_light)s;   color: %(info)s; }
.flag-normal { background: %(success_light)s; color: %(success)s; }
.flag-formula { background: %(warning_light)s; color: %(warning)s; }

/* ---------- KPI tile ---------- */
.kpi-tile {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 20px;
    text-align: center;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.kpi-value {
    font-size: 2rem;
    font-weight: 800;
    line-height: 1.1;
}
.kpi-label {
    font-size: 0.82rem;
    color: %(text_muted)s;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    margin-top: 6px;
}

/* ---------- Nav card ---------- */
.nav-card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 24px;
    text-align: center;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.nav-icon { font-size: 2rem; margin-bottom: 8px; }
.nav-title { font-weight: 700; font-size: 1rem; color: %(text)s; }
.nav-desc { color: %(text_muted)s; font-size: 0.82rem; margin-top: 4px; }

/* ---------- Result entry ---------- */
.block-title {
    font-weight: 700;
    color: %(text)s;
    background: %(bg_card)s;
    border-left: 4px solid %(primary)s;
    padding: 6px 12px;
    margin: 12px 0 6px 0;
}
.group-title {
    font-weight: 600;
    color: %(text_secondary)s;
    margin: 8px 0 2px 0;
}

/* ---------- Section title ---------- */
.section-title {
    font-size: 1.15rem;
    font-weight: 700;
    color: %(text)s;
    margin: 24px 0 12px 0;
    padding-bottom: 8px;
    border-bottom: 2px solid %(primary)s;
    display: inline-block;
}

[data-testid="stSidebar"] {
    background-color: %(bg_card)s !important;
}
[data-testid="stSidebar"] * {
    color: %(text)s !important;
}
</style>
"""


def apply_theme() -> None:
    """Inject global CSS into the page. Call once at the top of every page."""
    if "dark_mode" not in st.session_state:
        st.session_state.dark_mode = False
    if "branch_id" not in st.session_state:
        st.session_state.branch_id = DEFAULT_BRANCH
    st.markdown(_CSS_TEMPLATE % get_colors(), unsafe_allow_html=True)


# ---------------------------------------------------------------------------
# Sidebar branch switch / dark-mode toggle
# ---------------------------------------------------------------------------
def render_sidebar_branch() -> None:
    with st.sidebar:
        branch = st.text_input("Branch", value=st.session_state.get("branch_id", DEFAULT_BRANCH), key="branch_input")
        if branch.strip() and branch.strip() != st.session_state.branch_id:
            st.session_state.branch_id = branch.strip()
            st.cache_data.clear()
            st.rerun()

        dark = st.toggle("🌙 Dark mode", value=st.session_state.get("dark_mode", False), key="dark_mode_toggle")
        if dark != st.session_state.get("dark_mode", False):
            st.session_state.dark_mode = dark
            st.rerun()
        st.divider()


# ---------------------------------------------------------------------------
# Reusable HTML helpers
# ---------------------------------------------------------------------------
def flag_badge(flag: str | None, is_formula: bool = False) -> str:
    """Return an HTML span styled as a flag badge."""
    if is_formula and not flag:
        return '<span class="flag-badge flag-formula">CALC</span>'
    if flag == "high":
        return '<span class="flag-badge flag-high">H</span>'
    if flag == "low":
        return '<span class="flag-badge flag-low">L</span>'
    return '<span class="flag-badge flag-normal">OK</span>'


def kpi_tile(label: str, value: str | int | float, color: str) -> str:
    """Return HTML for a single KPI tile."""
    return (
        f'<div class="kpi-tile">'
        f'  <div class="kpi-value" style="color:{color};">{value}</div>'
        f'  <div class="kpi-label">{label}</div>'
        f'</div>'
    )


def section_title(text: str) -> None:
    st.markdown(f'<div class="section-title">{text}</div>', unsafe_allow_html=True)


def case_label(case: dict) -> str:
    patient = case.get("patient", {})
    name = f"{patient.get('first_name', '')} {patient.get('last_name', '')}".strip()
    return f"{case.get('reg_no')} · {name or 'Unknown'} · {case.get('report_status')}"
