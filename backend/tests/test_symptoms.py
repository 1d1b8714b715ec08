from __future__ import annotations

from conftest import OTHER_USER_ID, auth_header


def _add(client, symptom="Breast pain", severity="mild", notes=None, user=None):
    body = {"symptom": symptom, "severity": severity}
    if notes is not None:
        body["notes"] = notes
    headers = auth_header(user) if user else auth_header()
    return client.post("/api/v1/symptoms", json=body, headers=headers)


def test_create_symptom(api_client):
    resp = _add(api_client, symptom="Lump noticed", severity="moderate", notes="left side")
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["symptom"] == "Lump noticed"
    assert data["severity"] == "moderate"
    assert data["notes"] == "left side"
    assert data["id"]
    assert data["created_at"]


def test_severity_defaults_to_mild(api_client):
    resp = api_client.post("/api/v1/symptoms", json={"symptom": "Fatigue"}, headers=auth_header())
    assert resp.status_code == 201, resp.text
    assert resp.json()["severity"] == "mild"


def test_blank_symptom_rejected(api_client):
    resp = _add(api_client, symptom="   ")
    assert resp.status_code == 400


def test_unknown_severity_rejected(api_client):
    resp = _add(api_client, severity="catastrophic")
    assert resp.status_code == 400


def test_list_is_newest_first_and_scoped(api_client):
    _add(api_client, symptom="First")
    _add(api_client, symptom="Second")
    _add(api_client, symptom="Someone else", user=OTHER_USER_ID)

    resp = api_client.get("/api/v1/symptoms", headers=auth_header())
    assert resp.status_code == 200
    assert [item["symptom"] for item in resp.json()["items"]] == ["Second", "First"]


def test_summary_counts_total_and_severe(api_client):
    _add(api_client, severity="severe")
    _add(api_client, severity="severe")
    _add(api_client, severity="mild")
    _add(api_client, severity="severe", user=OTHER_USER_ID)

    resp = api_client.get("/api/v1/symptoms/summary", headers=auth_header())
    assert resp.status_code == 200
    assert resp.json() == {"total": 3, "severe": 2}


def test_summary_empty(api_client):
    resp = api_client.get("/api/v1/symptoms/summary", headers=auth_header())
    assert resp.json() == {"total": 0, "severe": 0}


def test_symptoms_require_auth(api_client):
    assert api_client.get("/api/v1/symptoms").status_code == 401
    assert api_client.post("/api/v1/symptoms", json={"symptom": "x"}).status_code == 401
