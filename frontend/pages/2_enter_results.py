import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, cached_cases
from utils.theme import apply_theme, case_label, flag_badge, get_colors, render_sidebar_branch, section_title

st.set_page_config(page_title="Enter Results", page_icon="🧮", layout="wide")
apply_theme()
render_sidebar_branch()
COLORS = get_colors()

client = ApiClient(st.session_state.branch_id)

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">🧮 Enter Results</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Values outside the reference range are flagged, never rejected. Calculated parameters refresh on Recalculate.
    </p>
    """,
    unsafe_allow_html=True,
)

ok, cases = cached_cases(st.session_state.branch_id)
if not ok:
    st.error("Failed to load cases.")
    st.stop()
if not cases:
    st.info("No cases for this branch. Register one first.")
    st.stop()

ids = [c["id"] for c in cases]
default_index = ids.index(st.session_state["active_case_id"]) if st.session_state.get("active_case_id") in ids else 0
case = st.selectbox("Case", cases, index=default_index, format_func=case_label)
case_id = case["id"]

# Entry state is kept per case so reruns do not lose typed values.
state_key = f"entry_{case_id}"
if state_key not in st.session_state:
    res = client.entry(case_id)
    if not res.ok:
        st.error(res.json().get("message", "Failed to load the entry form."))
        st.stop()
    data = res.json()["data"]
    st.session_state[state_key] = {
        "categories": data["categories"],
        "values": data["values"],
        "form": data["form"],
        "saved": data["saved"],
        "flags": {},
    }
entry = st.session_state[state_key]
values: dict[str, str] = entry["values"]


def _render_test(test: dict) -> None:
    if len(test["groups"]) > 1 or sum(len(g["fields"]) for g in test["groups"]) > 1:
        st.markdown(f"**{test['test_name']}**")
    for group in test["groups"]:
        if group["title"]:
            st.markdown(f'<div class="group-title">{group["title"]}</div>', unsafe_allow_html=True)
        for field in group["fields"]:
            c1, c2, c3, c4, c5 = st.columns([4, 3, 2, 3, 1])
            c1.markdown(field["name"])
            key = f"v_{case_id}_{field['param_id']}"
            st.session_state.setdefault(key, values.get(field["param_id"], ""))
            values[field["param_id"]] = c2.text_input(
                field["name"],
                key=key,
                label_visibility="collapsed",
                disabled=field["is_formula"],
            )
            c3.markdown(field["unit"] or "—")
            c4.markdown(field["reference"] or "—")
            flag = entry["flags"].get(field["param_id"], field["flag"])
            c5.markdown(flag_badge(flag, field["is_formula"]), unsafe_allow_html=True)


def _render_item(item: dict) -> None:
    if item["kind"] == "test":
        _render_test(item)
        return
    st.markdown(f'<div class="block-title">{item["name"]}</div>', unsafe_allow_html=True)
    for child in item["children"]:
        _render_item(child)


for section in entry["form"]:
    section_title(section["category_name"])
    for item in section["items"]:
        _render_item(item)

st.divider()
c1, c2 = st.columns(2)
if c1.button("Recalculate", use_container_width=True):
    res = client.calculate(case_id, entry["categories"], values)
    if res.ok:
        data = res.json()["data"]
        entry["values"] = data["values"]
        entry["flags"] = data["flags"]
        for param_id, value in data["values"].items():
            st.session_state[f"v_{case_id}_{param_id}"] = value
        st.rerun()
    else:
        st.error(res.json().get("message", "Calculation failed."))

if c2.button("Save results", use_container_width=True, type="primary"):
    res = client.save_result(case_id, entry["categories"], values, exists=entry["saved"])
    if res.ok:
        st.success("Results saved.")
        st.session_state.pop(state_key, None)
        st.session_state.active_case_id = case_id
        cached_cases.clear()
    else:
        st.error(f"Save failed: {res.json().get('message', res.text)}")
