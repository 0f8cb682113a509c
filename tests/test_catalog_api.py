from lims.seed.catalog_seed import seed_catalog


def _create_bmi_test(client) -> dict:
    response = client.post(
        "/api/catalog/tests",
        json={
            "name": "Body Mass Index",
            "short_name": "BMI",
            "type": "multi",
            "category": "Clinical",
            "parameters": [
                {"name": "Weight", "unit": "kg"},
                {"name": "Height", "unit": "cm"},
                {"name": "BMI", "unit": "kg/m2"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["data"]


def test_create_and_get_test_with_parameters(client):
    created = _create_bmi_test(client)

    assert [p["name"] for p in created["parameters"]] == ["Weight", "Height", "BMI"]
    fetched = client.get(f"/api/catalog/tests/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["data"]["name"] == "Body Mass Index"


def test_duplicate_parameter_names_are_rejected(client):
    response = client.post(
        "/api/catalog/tests",
        json={"name": "Broken", "parameters": [{"name": "Weight"}, {"name": "weight "}]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "BadRequest"


def test_reference_range_lifecycle(client):
    test = _create_bmi_test(client)
    bmi_param = next(p for p in test["parameters"] if p["name"] == "BMI")

    added = client.post(
        f"/api/catalog/tests/{test['id']}/reference-ranges",
        json=[
            {"parameter_id": bmi_param["id"], "lower": 18.5, "upper": 24.9},
            {"sex": "Male", "min_age": 18, "max_age": 60, "lower": 1, "upper": 2},
        ],
    )
    assert added.status_code == 201
    rows = added.json()["data"]
    assert rows[0]["parameter_name"] == "BMI"
    assert rows[1]["parameter_name"] is None

    updated = client.put(f"/api/catalog/reference-ranges/{rows[1]['id']}", json={"lower": 3, "upper": 4})
    assert updated.status_code == 200
    assert updated.json()["data"]["lower"] == 3
    assert updated.json()["data"]["sex"] == "Any"

    assert client.delete(f"/api/catalog/reference-ranges/{rows[0]['id']}").status_code == 200
    listed = client.get(f"/api/catalog/tests/{test['id']}/reference-ranges").json()["data"]
    assert [row["id"] for row in listed] == [rows[1]["id"]]


def test_inverted_bounds_are_rejected(client):
    test = _create_bmi_test(client)

    response = client.post(f"/api/catalog/tests/{test['id']}/reference-ranges", json=[{"lower": 10, "upper": 5}])

    assert response.status_code == 400


def test_formula_create_marks_parameter_and_delete_clears_it(client):
    test = _create_bmi_test(client)
    bmi_param = next(p for p in test["parameters"] if p["name"] == "BMI")

    created = client.post(
        "/api/catalog/formulas",
        json={
            "test_id": test["id"],
            "parameter_id": bmi_param["id"],
            "formula_string": "Weight / (Height/100 * Height/100)",
            "dependencies": [{"parameter_name": "Weight"}, {"parameter_name": "Height"}],
        },
    )
    assert created.status_code == 201
    formula_id_param = created.json()["data"]["parameter_id"]
    assert formula_id_param == bmi_param["id"]

    params = client.get(f"/api/catalog/tests/{test['id']}").json()["data"]["parameters"]
    assert next(p for p in params if p["name"] == "BMI")["is_formula"] is True

    fetched = client.get(f"/api/catalog/formulas/{bmi_param['id']}").json()["data"]
    assert [d["parameter_name"] for d in fetched["dependencies"]] == ["Weight", "Height"]

    duplicate = client.post(
        "/api/catalog/formulas",
        json={
            "test_id": test["id"],
            "parameter_id": bmi_param["id"],
            "formula_string": "Weight",
            "dependencies": [{"parameter_name": "Weight"}],
        },
    )
    assert duplicate.status_code == 400


def test_formula_without_dependencies_is_rejected(client):
    test = _create_bmi_test(client)

    response = client.post(
        "/api/catalog/formulas",
        json={"test_id": test["id"], "formula_string": "1 + 1", "dependencies": []},
    )

    assert response.status_code == 400


def test_formula_with_unknown_dependency_is_rejected(client):
    test = _create_bmi_test(client)
    bmi_param = next(p for p in test["parameters"] if p["name"] == "BMI")

    by_id = client.post(
        "/api/catalog/formulas",
        json={
            "test_id": test["id"],
            "parameter_id": bmi_param["id"],
            "formula_string": "Ghost * 2",
            "dependencies": [{"parameter_name": "Ghost", "parameter_id": "no-such-param"}],
        },
    )
    by_name = client.post(
        "/api/catalog/formulas",
        json={
            "test_id": test["id"],
            "parameter_id": bmi_param["id"],
            "formula_string": "Ghost * 2",
            "dependencies": [{"parameter_name": "Ghost"}],
        },
    )

    assert by_id.status_code == 400
    assert by_name.status_code == 400
    assert client.get(f"/api/catalog/formulas/{bmi_param['id']}").status_code == 404


def test_formula_update_checks_dependencies(client):
    test = _create_bmi_test(client)
    params = {p["name"]: p["id"] for p in test["parameters"]}
    created = client.post(
        "/api/catalog/formulas",
        json={
            "test_id": test["id"],
            "parameter_id": params["BMI"],
            "formula_string": "Weight / (Height/100 * Height/100)",
            "dependencies": [
                {"parameter_name": "Weight", "parameter_id": params["Weight"]},
                {"parameter_name": "Height", "parameter_id": params["Height"]},
            ],
        },
    ).json()["data"]
    url = f"/api/catalog/formulas/{created['id']}"

    assert client.put(url, json={"dependencies": []}).status_code == 400
    assert client.put(url, json={"dependencies": [{"parameter_name": "Ghost", "parameter_id": "nope"}]}).status_code == 400

    updated = client.put(url, json={"formula_string": "Weight", "dependencies": [{"parameter_name": "Weight"}]})
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["formula_string"] == "Weight"
    assert [d["parameter_name"] for d in data["dependencies"]] == ["Weight"]


def test_formula_for_unknown_test_is_not_found(client):
    response = client.post(
        "/api/catalog/formulas",
        json={"test_id": "missing", "formula_string": "A", "dependencies": [{"parameter_name": "A"}]},
    )

    assert response.status_code == 404


def test_panels_and_packages(client):
    test = _create_bmi_test(client)

    panel = client.post(
        "/api/catalog/panels", json={"name": "Vitals", "category": "Clinical", "test_ids": [test["id"]]}
    ).json()["data"]
    package = client.post(
        "/api/catalog/packages", json={"name": "Wellness", "fee": 499, "panel_ids": [panel["id"]]}
    )
    assert package.status_code == 201

    assert client.get(f"/api/catalog/panels/{panel['id']}").json()["data"]["test_ids"] == [test["id"]]
    fetched = client.get(f"/api/catalog/packages/{package.json()['data']['id']}").json()["data"]
    assert fetched["panel_ids"] == [panel["id"]]

    again = client.post("/api/catalog/packages", json={"name": "Wellness"})
    assert again.status_code == 400


def test_search_ranks_prefix_matches_first(client, db_session):
    seed_catalog(db_session)

    results = client.get("/api/catalog/search", params={"q": "hemo"}).json()["data"]

    assert results[0]["name"] == "Hemoglobin"
    assert results[0]["kind"] == "test"


def test_search_finds_panels_and_packages(client, db_session):
    seed_catalog(db_session)

    kinds = {item["name"]: item["kind"] for item in client.get("/api/catalog/search", params={"q": "complete blood"}).json()["data"]}
    assert kinds.get("Complete Blood Count") == "panel"

    kinds = {item["name"]: item["kind"] for item in client.get("/api/catalog/search", params={"q": "basic health"}).json()["data"]}
    assert kinds.get("Basic Health Checkup") == "package"


def test_unknown_catalog_items_return_404(client):
    assert client.get("/api/catalog/tests/nope").status_code == 404
    assert client.get("/api/catalog/panels/nope").status_code == 404
    assert client.get("/api/catalog/packages/nope").status_code == 404
    assert client.get("/api/catalog/formulas/nope").status_code == 404
