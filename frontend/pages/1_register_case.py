import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, cached_cases
from utils.theme import apply_theme, get_colors, kpi_tile, render_sidebar_branch, section_title

st.set_page_config(page_title="Register Case", page_icon="📝", layout="wide")
apply_theme()
render_sidebar_branch()
COLORS = get_colors()

client = ApiClient(st.session_state.branch_id)

if "selected_items" not in st.session_state:
    st.session_state.selected_items = {}

st.markdown(
    f"""
    <div style="margin-bottom:4px;">
        <span style="font-size:1.6rem;font-weight:800;color:{COLORS['text']};">📝 Register Case</span>
    </div>
    <p style="color:{COLORS['text_muted']};margin-top:0;">
        Pick tests, panels or packages and capture the patient and payment details.
    </p>
    """,
    unsafe_allow_html=True,
)

# ── Catalog search ────────────────────────────────────────────────────────
section_title("Tests")
query = st.text_input("Search catalog", placeholder="e.g. hemoglobin, CBC, health checkup")
if query.strip():
    res = client.search_catalog(query.strip())
    if res.ok:
        hits = res.json()["data"]
        if not hits:
            st.caption("No matches.")
        for hit in hits:
            c1, c2, c3 = st.columns([6, 2, 2])
            c1.markdown(f"**{hit['name']}** · {hit['kind']}" + (f" · {hit['category']}" if hit.get("category") else ""))
            c2.markdown(f"₹ {hit['price']:.0f}")
            if c3.button("Add", key=f"add_{hit['kind']}_{hit['id']}"):
                st.session_state.selected_items[hit["id"]] = hit
                st.rerun()
    else:
        st.error("Catalog search failed.")

selected = st.session_state.selected_items
if selected:
    for item_id, item in list(selected.items()):
        c1, c2 = st.columns([8, 2])
        c1.markdown(f"• {item['name']} ({item['kind']})")
        if c2.button("Remove", key=f"rm_{item_id}"):
            selected.pop(item_id)
            st.rerun()
else:
    st.info("No tests selected yet.")


def _tests_map(items: dict) -> dict[str, list[str]]:
    tests: dict[str, list[str]] = {}
    for item in items.values():
        if item["kind"] == "panel":
            key = "PANELS"
        elif item["kind"] == "package":
            key = "PACKAGES"
        else:
            key = item.get("category") or "Other"
        tests.setdefault(key, []).append(item["id"])
    return tests


total_price = sum(item["price"] for item in selected.values())

# ── Patient + payment ─────────────────────────────────────────────────────
section_title("Patient & Payment")
with st.form("case_form"):
    c1, c2, c3 = st.columns([1, 3, 3])
    title = c1.selectbox("Title", ["Mr", "Ms", "Mrs", "Master", "Baby", "Dr"])
    first_name = c2.text_input("First name")
    last_name = c3.text_input("Last name")

    c1, c2, c3, c4 = st.columns(4)
    mobile = c1.text_input("Mobile")
    age = c2.number_input("Age", min_value=0.0, value=30.0, step=1.0)
    age_unit = c3.selectbox("Age unit", ["Years", "Months", "Days"])
    sex = c4.selectbox("Sex", ["Male", "Female", "Other"])

    c1, c2 = st.columns(2)
    doctor = c1.text_input("Referring doctor")
    uhid = c2.text_input("UHID")

    c1, c2, c3, c4 = st.columns(4)
    total = c1.number_input("Total", min_value=0.0, value=float(total_price))
    discount = c2.number_input("Discount", min_value=0.0, value=0.0)
    received = c3.number_input("Received", min_value=0.0, value=0.0)
    mode = c4.selectbox("Mode", ["cash", "card", "upi"])

    submitted = st.form_submit_button("Register case", use_container_width=True, type="primary")

if submitted:
    if not first_name or not mobile:
        st.error("First name and mobile are required.")
    elif not selected:
        st.error("Select at least one test, panel or package.")
    else:
        res = client.create_case(
            {
                "patient": {
                    "title": title,
                    "first_name": first_name,
                    "last_name": last_name,
                    "mobile": mobile,
                    "age": age,
                    "age_unit": age_unit,
                    "sex": sex,
                    "doctor": doctor,
                    "uhid": uhid,
                },
                "tests": _tests_map(selected),
                "payment": {"total": total, "discount": discount, "received": received, "mode": mode},
            }
        )
        if res.ok:
            case = res.json()["data"]
            st.success(f"Case registered. Reg. No **{case['reg_no']}**, DCN {case['dcn']}.")
            k1, k2, k3 = st.columns(3)
            k1.markdown(kpi_tile("Balance", f"{case['payment']['balance']:.2f}", COLORS["danger"] if case["status"] == "due" else COLORS["success"]), unsafe_allow_html=True)
            k2.markdown(kpi_tile("Payment", case["status"], COLORS["text"]), unsafe_allow_html=True)
            k3.markdown(kpi_tile("Items", sum(len(v) for v in case["tests"].values()), COLORS["primary"]), unsafe_allow_html=True)
            st.session_state.selected_items = {}
            st.session_state.active_case_id = case["id"]
            cached_cases.clear()
        else:
            st.error(f"Registration failed: {res.json().get('message', res.text)}")
