from lims.models.catalog import LabTest
from lims.seed.catalog_seed import seed_catalog


def _create_case(client, tests: dict, sex: str = "Male", age: float = 30) -> str:
    response = client.post(
        "/api/cases",
        json={
            "patient": {"first_name": "Ravi", "last_name": "Kumar", "mobile": "9876543210", "age": age, "sex": sex},
            "tests": tests,
        },
    )
    assert response.status_code == 201
    return response.json()["data"]["id"]


def _seeded_case(client, db_session) -> tuple[str, dict]:
    seed_catalog(db_session)
    hb = db_session.query(LabTest).filter(LabTest.name == "Hemoglobin").one()
    bmi_test = db_session.query(LabTest).filter(LabTest.name == "Body Mass Index").one()
    params = {p.name: p.id for p in bmi_test.parameters}
    ids = {"hb": hb.id, "weight": params["Weight"], "height": params["Height"], "bmi": params["BMI"]}
    return _create_case(client, {"Haematology": [hb.id], "Clinical": [bmi_test.id]}), ids


def _params_by_id(categories: list[dict]) -> dict:
    found = {}

    def walk(nodes):
        for node in nodes:
            if "params" in node:
                for param in node["params"]:
                    found[param["paramId"]] = param
            else:
                walk(node["tests"])

    for category in categories:
        walk(category["items"])
    return found


def test_entry_form_resolves_case_items_with_references(client, db_session):
    case_id, ids = _seeded_case(client, db_session)

    response = client.get(f"/api/results/{case_id}/entry")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["saved"] is False
    assert [c["categoryName"] for c in data["categories"]] == ["Haematology", "Clinical"]
    params = _params_by_id(data["categories"])
    assert params[ids["hb"]]["reference"] == "13 - 17"
    assert params[ids["bmi"]]["reference"] == "18.5 - 24.9"
    assert all(value == "" for value in data["values"].values())
    assert ids["bmi"] in data["formula_ids"]
    assert data["form"][0]["items"][0]["test_name"] == "Hemoglobin"


def test_reference_falls_back_to_generic_rule_for_other_demographics(client, db_session):
    seed_catalog(db_session)
    hb = db_session.query(LabTest).filter(LabTest.name == "Hemoglobin").one()
    case_id = _create_case(client, {"Haematology": [hb.id]}, sex="Female", age=70)

    data = client.get(f"/api/results/{case_id}/entry").json()["data"]

    assert _params_by_id(data["categories"])[hb.id]["reference"] == "11 - 16"


def test_calculate_fills_formula_and_flags(client, db_session):
    case_id, ids = _seeded_case(client, db_session)

    response = client.post(
        f"/api/results/{case_id}/calculate",
        json={"values": {ids["hb"]: "12", ids["weight"]: "70", ids["height"]: "175"}},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["values"][ids["bmi"]] == "22.86"
    assert data["flags"][ids["hb"]] == "low"
    assert data["flags"][ids["bmi"]] is None


def test_save_reload_edit_print_and_delete(client, db_session):
    case_id, ids = _seeded_case(client, db_session)
    document = client.get(f"/api/results/{case_id}/entry").json()["data"]["categories"]
    values = {ids["hb"]: "12", ids["weight"]: "70", ids["height"]: "175"}

    saved = client.post(f"/api/results/{case_id}", json={"categories": document, "values": values})
    assert saved.status_code == 201
    saved_params = _params_by_id(saved.json()["data"]["categories"])
    assert saved_params[ids["bmi"]]["value"] == "22.86"
    assert saved.json()["data"]["status"] == "Completed"

    duplicate = client.post(f"/api/results/{case_id}", json={"categories": document, "values": values})
    assert duplicate.status_code == 409

    reloaded = client.get(f"/api/results/{case_id}/entry").json()["data"]
    assert reloaded["saved"] is True
    assert reloaded["values"][ids["hb"]] == "12"
    assert reloaded["values"][ids["bmi"]] == "22.86"
    assert reloaded["categories"] == saved.json()["data"]["categories"]

    updated = client.put(
        f"/api/results/{case_id}",
        json={"categories": reloaded["categories"], "values": {ids["weight"]: "81"}},
    )
    assert updated.status_code == 200
    assert _params_by_id(updated.json()["data"]["categories"])[ids["bmi"]]["value"] == "26.45"

    printed = client.get(f"/api/results/{case_id}/print")
    assert printed.status_code == 200
    assert printed.headers["content-type"].startswith("text/html")
    assert "26.45" in printed.text
    assert "13 - 17" in printed.text
    assert "Haematology" in printed.text

    assert client.delete(f"/api/results/{case_id}").status_code == 200
    assert client.get(f"/api/results/{case_id}").status_code == 404


def test_print_uses_branch_settings(client, db_session):
    case_id, ids = _seeded_case(client, db_session)
    document = client.get(f"/api/results/{case_id}/entry").json()["data"]["categories"]
    client.post(f"/api/results/{case_id}", json={"categories": document, "values": {ids["hb"]: "12"}})

    settings = client.get("/api/print-settings/main").json()["data"]
    settings["general"]["capitalize_tests"] = True
    settings["general"]["use_hl_markers"] = False
    assert client.put("/api/print-settings/main", json=settings).status_code == 200

    html = client.get(f"/api/results/{case_id}/print").text
    assert "HAEMATOLOGY" in html
    assert "↓" not in html


def test_unknown_case_returns_not_found_envelope(client):
    response = client.get("/api/results/does-not-exist/entry")

    assert response.status_code == 404
    assert response.json() == {"statusCode": 404, "message": "Case not found", "error": "NotFound"}


def test_malformed_document_is_rejected(client):
    case_id = _create_case(client, {})

    response = client.post(f"/api/results/{case_id}", json={"categories": [{"items": []}], "values": {}})

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


def test_missing_catalog_items_do_not_break_entry(client):
    case_id = _create_case(client, {"Haematology": ["deleted-test"], "PANELS": ["deleted-panel"]})

    response = client.get(f"/api/results/{case_id}/entry")

    assert response.status_code == 200
    assert response.json()["data"]["categories"] == []


def test_results_are_scoped_to_the_case_branch(client, db_session):
    case_id, ids = _seeded_case(client, db_session)
    document = client.get(f"/api/results/{case_id}/entry").json()["data"]["categories"]
    client.post(f"/api/results/{case_id}", json={"categories": document, "values": {ids["hb"]: "12"}})
    other = {"X-Branch-Id": "north"}

    assert client.get(f"/api/results/{case_id}/entry", headers=other).status_code == 404
    assert client.post(f"/api/results/{case_id}/calculate", json={"values": {}}, headers=other).status_code == 404
    assert client.get(f"/api/results/{case_id}", headers=other).status_code == 404
    assert client.put(
        f"/api/results/{case_id}", json={"categories": document, "values": {}}, headers=other
    ).status_code == 404
    assert client.get(f"/api/results/{case_id}/print", headers=other).status_code == 404
    assert client.delete(f"/api/results/{case_id}", headers=other).status_code == 404

    assert client.get(f"/api/results/{case_id}").status_code == 200


def test_print_header_uses_patient_snapshot_from_save(client, db_session):
    case_id, ids = _seeded_case(client, db_session)
    document = client.get(f"/api/results/{case_id}/entry").json()["data"]["categories"]
    client.post(f"/api/results/{case_id}", json={"categories": document, "values": {ids["hb"]: "12"}})

    edited = client.put(
        f"/api/cases/{case_id}",
        json={"patient": {"first_name": "Arjun", "last_name": "Mehta", "mobile": "9876543210", "age": 30, "sex": "Male"}},
    )
    assert edited.status_code == 200

    html = client.get(f"/api/results/{case_id}/print").text
    assert "Ravi Kumar" in html
    assert "Arjun" not in html
