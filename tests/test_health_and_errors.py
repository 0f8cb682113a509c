def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_root_envelope(client):
    payload = client.get("/").json()
    assert payload["statusCode"] == 200
    assert payload["data"]["service"] == "lims"


def test_print_settings_defaults_are_created_on_first_read(client):
    response = client.get("/api/print-settings/east")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["general"]["use_hl_markers"] is True
    assert data["design"]["red_abnormal"] is False


def test_print_settings_update_round_trips(client):
    settings = client.get("/api/print-settings/east").json()["data"]
    settings["design"]["red_abnormal"] = True
    settings["general"]["category_order"] = ["Biochemistry", "Haematology"]

    response = client.put("/api/print-settings/east", json=settings)

    assert response.status_code == 200
    reloaded = client.get("/api/print-settings/east").json()["data"]
    assert reloaded["design"]["red_abnormal"] is True
    assert reloaded["general"]["category_order"] == ["Biochemistry", "Haematology"]


def test_missing_case_uses_error_envelope(client):
    response = client.get("/api/cases/missing")

    assert response.status_code == 404
    payload = response.json()
    assert payload["statusCode"] == 404
    assert payload["error"] == "NotFound"
