import os

import requests
import streamlit as st

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
DEFAULT_BRANCH = os.getenv("DEFAULT_BRANCH_ID", "main")


class ApiClient:
    def __init__(self, branch_id: str | None = None):
        self.branch_id = branch_id or DEFAULT_BRANCH

    @property
    def headers(self):
        return {"X-Branch-Id": self.branch_id}

    # -- cases -------------------------------------------------------------

    def create_case(self, payload: dict):
        return requests.post(f"{BASE_URL}/api/cases", json=payload, headers=self.headers, timeout=60)

    def case(self, case_id: str):
        return requests.get(f"{BASE_URL}/api/cases/{case_id}", headers=self.headers, timeout=60)

    def set_report_status(self, case_id: str, report_status: str):
        return requests.patch(
            f"{BASE_URL}/api/cases/{case_id}/report-status",
            json={"report_status": report_status},
            headers=self.headers,
            timeout=60,
        )

    # -- results -----------------------------------------------------------

    def entry(self, case_id: str):
        return requests.get(f"{BASE_URL}/api/results/{case_id}/entry", headers=self.headers, timeout=60)

    def calculate(self, case_id: str, categories: list[dict], values: dict[str, str]):
        return requests.post(
            f"{BASE_URL}/api/results/{case_id}/calculate",
            json={"categories": categories, "values": values},
            headers=self.headers,
            timeout=60,
        )

    def save_result(self, case_id: str, categories: list[dict], values: dict[str, str], exists: bool = False):
        method = requests.put if exists else requests.post
        return method(
            f"{BASE_URL}/api/results/{case_id}",
            json={"categories": categories, "values": values},
            headers=self.headers,
            timeout=60,
        )

    def result(self, case_id: str):
        return requests.get(f"{BASE_URL}/api/results/{case_id}", headers=self.headers, timeout=60)

    def print_html(self, case_id: str):
        return requests.get(f"{BASE_URL}/api/results/{case_id}/print", headers=self.headers, timeout=60)

    # -- catalog / settings -------------------------------------------------

    def search_catalog(self, query: str):
        return requests.get(f"{BASE_URL}/api/catalog/search", params={"q": query}, headers=self.headers, timeout=60)

    def print_settings(self):
        return requests.get(f"{BASE_URL}/api/print-settings/{self.branch_id}", timeout=60)

    def save_print_settings(self, payload: dict):
        return requests.put(f"{BASE_URL}/api/print-settings/{self.branch_id}", json=payload, timeout=60)


# ---------------------------------------------------------------------------
# Cached data fetchers. Return (ok, data) from the envelope, cached for 60 seconds.
# These are standalone functions so @st.cache_data can hash the arguments.
# ---------------------------------------------------------------------------

@st.cache_data(ttl=60, show_spinner=False)
def cached_cases(branch_id: str, report_status: str | None = None) -> tuple[bool, list]:
    params = {"report_status": report_status} if report_status else None
    res = requests.get(f"{BASE_URL}/api/cases", params=params, headers={"X-Branch-Id": branch_id}, timeout=60)
    return res.ok, res.json()["data"] if res.ok else []

