import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient
from utils.theme import apply_theme, get_colors, render_sidebar_branch, section_title

st.set_page_config(page_title="Print Settings", page_icon="⚙️", layout="wide")
apply_theme()
render_sidebar_branch()
COLORS = get_colors()

client = ApiClient(st.session_state.branch_id)

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">⚙️ Print Settings</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Applies to every report printed from branch <b>{st.session_state.branch_id}</b>.
    </p>
    """,
    unsafe_allow_html=True,
)

res = client.print_settings()
if not res.ok:
    st.error("Failed to load print settings.")
    st.stop()
settings = res.json()["data"]
design, general, show_hide = settings["design"], settings["general"], settings["show_hide"]

with st.form("print_settings"):
    section_title("Design")
    c1, c2, c3 = st.columns(3)
    design["font_family"] = c1.selectbox(
        "Font", ["Arial", "Helvetica", "Times New Roman", "Verdana"],
        index=["Arial", "Helvetica", "Times New Roman", "Verdana"].index(design["font_family"])
        if design["font_family"] in ["Arial", "Helvetica", "Times New Roman", "Verdana"] else 0,
    )
    design["font_size"] = c2.number_input("Font size", min_value=8, max_value=20, value=design["font_size"])
    design["spacing"] = c3.number_input("Line spacing", min_value=0.8, max_value=2.0, value=float(design["spacing"]), step=0.1)
    c1, c2, c3, c4 = st.columns(4)
    design["bold_values"] = c1.checkbox("Bold values", value=design["bold_values"])
    design["red_abnormal"] = c2.checkbox("Red abnormal values", value=design["red_abnormal"])
    design["bold_abnormal"] = c3.checkbox("Bold abnormal values", value=design["bold_abnormal"])
    design["indent_nested"] = c4.checkbox("Indent nested tests", value=design["indent_nested"])

    section_title("General")
    c1, c2, c3, c4 = st.columns(4)
    general["use_hl_markers"] = c1.checkbox("H/L arrow markers", value=general["use_hl_markers"])
    general["category_new_page"] = c2.checkbox("New page per category", value=general["category_new_page"])
    general["capitalize_tests"] = c3.checkbox("Capitalise headings", value=general["capitalize_tests"])
    general["use_nabl_format"] = c4.checkbox("NABL heading style", value=general["use_nabl_format"])
    order_text = st.text_input("Category order (comma separated)", value=", ".join(general["category_order"]))
    general["category_order"] = [name.strip() for name in order_text.split(",") if name.strip()]

    section_title("Show / hide")
    c1, c2 = st.columns(2)
    show_hide["show_page_number"] = c1.checkbox("Page numbers", value=show_hide["show_page_number"])
    show_hide["show_tat_time"] = c2.checkbox("Turnaround time", value=show_hide["show_tat_time"])

    submitted = st.form_submit_button("Save settings", use_container_width=True, type="primary")

if submitted:
    saved = client.save_print_settings(settings)
    if saved.ok:
        st.success("Print settings saved.")
    else:
        st.error(f"Save failed: {saved.json().get('message', saved.text)}")
