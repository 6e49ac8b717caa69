from conftest import COMPANY

BASE = "/api/v1/jobs"


def _create(client, payload, headers=COMPANY):
    res = client.post(BASE, json=payload, headers=headers)
    assert res.status_code == 201, res.json()
    return res.json()["data"]


def test_create_job_starts_as_draft(client, job_payload):
    job = _create(client, job_payload)
    assert job["status"] == "draft"
    assert job["company_id"] == "acme"
    assert job["created_by"] == "u1"
    assert job["requirements"][0]["skill"] == "Python"
    assert job["salary"]["currency"] == "USD"


def test_create_job_validation(client, job_payload):
    bad = dict(job_payload, title="Dev", description="too short", requirements=[])
    res = client.post(BASE, json=bad, headers=COMPANY)
    assert res.status_code == 400
    error = res.json()["error"]
    assert "title: Job title must be between 5 and 200 characters" in error
    assert "description: Job description must be between 50 and 5000 characters" in error
    assert "requirements" in error

    bad = dict(job_payload, requirements=[{"skill": "Python", "level": "guru", "required": True, "weight": 2}])
    assert client.post(BASE, json=bad, headers=COMPANY).status_code == 400


def test_list_filters(client, job_payload):
    _create(client, job_payload)
    _create(client, dict(job_payload, location="Berlin, Germany", type="contract"))

    def titles(**params):
        return client.get(BASE, params=params, headers=COMPANY).json()["data"]

    assert len(titles()) == 2
    assert len(titles(location="berlin")) == 1
    assert len(titles(type="contract")) == 1
    assert titles(status="active") == []
    assert client.get(BASE, headers={"X-Company-Id": "globex"}).json()["data"] == []


def test_status_transitions(client, job_payload):
    job_id = _create(client, job_payload)["id"]

    res = client.post(f"{BASE}/{job_id}/pause", headers=COMPANY)
    assert res.status_code == 400
    assert res.json()["error"] == "Only active jobs can be paused"

    published = client.post(f"{BASE}/{job_id}/publish", headers=COMPANY).json()["data"]
    assert published["status"] == "active"
    assert published["published_at"] is not None

    assert client.post(f"{BASE}/{job_id}/pause", headers=COMPANY).json()["data"]["status"] == "paused"
    closed = client.post(f"{BASE}/{job_id}/close", headers=COMPANY).json()["data"]
    assert closed["status"] == "closed"
    assert closed["closed_at"] is not None

    assert client.post(f"{BASE}/{job_id}/archive", headers=COMPANY).json()["data"]["status"] == "archived"
    res = client.post(f"{BASE}/{job_id}/publish", headers=COMPANY)
    assert res.status_code == 400


def test_update_duplicate_and_delete(client, job_payload):
    job_id = _create(client, job_payload)["id"]

    res = client.put(f"{BASE}/{job_id}", json={"title": "  Staff Python Engineer  "}, headers=COMPANY)
    assert res.json()["data"]["title"] == "Staff Python Engineer"
    assert client.put(f"{BASE}/{job_id}", json={"status": "open"}, headers=COMPANY).status_code == 400

    copy = client.post(f"{BASE}/{job_id}/duplicate", headers=COMPANY).json()["data"]
    assert copy["title"] == "Staff Python Engineer (Copy)"
    assert copy["status"] == "draft"
    assert copy["id"] != job_id

    assert client.delete(f"{BASE}/{job_id}", headers=COMPANY).json()["message"] == "Job deleted successfully"
    res = client.get(f"{BASE}/{job_id}", headers=COMPANY)
    assert res.status_code == 404
    assert res.json()["error"] == "Job not found"


def test_bias_check_needs_llm(client, job_payload, monkeypatch):
    job_id = _create(client, job_payload)["id"]
    assert client.post(f"{BASE}/{job_id}/bias-check", headers=COMPANY).status_code == 503

    seen = []

    async def fake_detect(text):
        seen.append(text)
        return {"detected": False, "types": []}

    monkeypatch.setattr("api.endpoints.jobs.llm.detect_bias", fake_detect)
    res = client.post(f"{BASE}/{job_id}/bias-check", headers=COMPANY)
    assert res.json()["data"] == {"detected": False, "types": []}
    assert seen[0].startswith("Senior Python Engineer")


def test_update_status_follows_transition_rules(client, job_payload):
    job_id = _create(client, job_payload)["id"]

    res = client.put(f"{BASE}/{job_id}", json={"status": "paused"}, headers=COMPANY)
    assert res.status_code == 400
    assert res.json()["error"] == "Only active jobs can be paused"

    active = client.put(f"{BASE}/{job_id}", json={"status": "active"}, headers=COMPANY).json()["data"]
    assert active["status"] == "active"
    assert active["published_at"] is not None

    res = client.put(f"{BASE}/{job_id}", json={"status": "draft"}, headers=COMPANY)
    assert res.status_code == 400

    closed = client.put(f"{BASE}/{job_id}", json={"status": "closed"}, headers=COMPANY).json()["data"]
    assert closed["closed_at"] is not None

    client.post(f"{BASE}/{job_id}/archive", headers=COMPANY)
    res = client.put(f"{BASE}/{job_id}", json={"status": "active"}, headers=COMPANY)
    assert res.status_code == 400
    assert res.json()["error"] == "Archived jobs cannot be published"
    assert client.get(f"{BASE}/{job_id}", headers=COMPANY).json()["data"]["status"] == "archived"


def test_update_rejects_blank_location(client, job_payload):
    job_id = _create(client, job_payload)["id"]
    res = client.put(f"{BASE}/{job_id}", json={"location": "   "}, headers=COMPANY)
    assert res.status_code == 400
    assert "Location is required" in res.json()["error"]

    res = client.put(f"{BASE}/{job_id}", json={"location": "  Remote "}, headers=COMPANY)
    assert res.json()["data"]["location"] == "Remote"
