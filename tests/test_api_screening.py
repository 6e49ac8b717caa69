import asyncio

import pytest

from domain.services.screening_pipeline import run_screening
from infra.repositories.resumes_repository import ResumesRepository

from conftest import COMPANY

BASE = "/api/v1/screening"
resumes_repo = ResumesRepository()


def _processed_resume(company_id="acme", parsed=None):
    resume = resumes_repo.create(file_name="jane.docx", file_path="jane.docx", file_size=1,
                                 file_type=".docx", company_id=company_id, candidate_id="c1")
    resumes_repo.mark_processed(resume["id"], parsed or {
        "skills": [{"name": "Python", "level": "advanced"}, {"name": "Kubernetes", "level": "intermediate"}],
        "raw_text": "Python and Kubernetes",
    })
    return resume["id"]


@pytest.fixture
def job_id(client, job_payload):
    return client.post("/api/v1/jobs", json=job_payload, headers=COMPANY).json()["data"]["id"]


def _create(client, job_id, resume_id):
    res = client.post(BASE, json={"job_id": job_id, "resume_id": resume_id}, headers=COMPANY)
    assert res.status_code == 201, res.json()
    return res.json()["data"]


def test_create_requires_job_and_resume_in_company(client, job_id):
    foreign = _processed_resume(company_id="globex")
    res = client.post(BASE, json={"job_id": job_id, "resume_id": foreign}, headers=COMPANY)
    assert res.status_code == 404
    assert res.json()["error"] == "Resume not found"

    res = client.post(BASE, json={"job_id": "nope", "resume_id": _processed_resume()}, headers=COMPANY)
    assert res.json()["error"] == "Job not found"


def test_create_start_and_run(client, job_id, spawned):
    screening = _create(client, job_id, _processed_resume())
    assert screening["status"] == "pending"
    assert screening["candidate_id"] == "c1"

    res = client.post(f"{BASE}/{screening['id']}/start", headers=COMPANY)
    assert res.json()["message"] == "Screening started"
    assert spawned == [f"screening:{screening['id']}"]
    progress = client.get(f"{BASE}/{screening['id']}/progress", headers=COMPANY).json()["data"]
    assert progress["progress"] == 0

    res = client.get(f"{BASE}/{screening['id']}/analysis", headers=COMPANY)
    assert res.status_code == 400

    asyncio.run(run_screening(screening["id"]))
    analysis = client.get(f"{BASE}/{screening['id']}/analysis", headers=COMPANY).json()["data"]
    assert analysis["score"] == 100.0
    assert analysis["ai_analysis"]["fit_level"] == "excellent"
    assert analysis["breakdown"]["overall"] == 100.0

    listed = client.get(BASE, params={"status": "completed", "job_id": job_id}, headers=COMPANY).json()
    assert listed["pagination"]["total"] == 1

    applications = client.get(f"/api/v1/jobs/{job_id}/applications", headers=COMPANY).json()
    assert applications["data"][0]["id"] == screening["id"]
    stats = client.get(f"/api/v1/jobs/{job_id}/analytics", headers=COMPANY).json()["data"]
    assert stats["total_screenings"] == 1
    assert stats["max_score"] == 100.0
    assert stats["fit_distribution"]["excellent"] == 1


def test_start_rejects_running_screening(client, job_id):
    screening = _create(client, job_id, _processed_resume())
    client.put(f"{BASE}/{screening['id']}", json={"status": "in_progress"}, headers=COMPANY)
    res = client.post(f"{BASE}/{screening['id']}/start", headers=COMPANY)
    assert res.status_code == 400
    assert res.json()["error"] == "Screening already in progress"


def test_manual_status_changes(client, job_id):
    sid = _create(client, job_id, _processed_resume())["id"]
    assert client.put(f"{BASE}/{sid}", json={"score": 101}, headers=COMPANY).status_code == 400
    assert client.put(f"{BASE}/{sid}", json={"score": 88.5}, headers=COMPANY).json()["data"]["score"] == 88.5
    assert client.post(f"{BASE}/{sid}/complete", headers=COMPANY).json()["data"]["status"] == "completed"
    assert client.post(f"{BASE}/{sid}/review", headers=COMPANY).json()["data"]["status"] == "reviewed"
    assert client.post(f"{BASE}/{sid}/reject", headers=COMPANY).json()["data"]["status"] == "rejected"

    assert client.delete(f"{BASE}/{sid}", headers=COMPANY).json()["message"] == "Screening deleted successfully"
    res = client.get(f"{BASE}/{sid}", headers=COMPANY)
    assert res.status_code == 404
    assert res.json()["error"] == "Screening not found"


def test_notes(client, job_id):
    sid = _create(client, job_id, _processed_resume())["id"]
    res = client.post(f"{BASE}/{sid}/notes", json={"note": "Strong systems design", "rating": 4}, headers=COMPANY)
    assert res.status_code == 201
    assert res.json()["data"]["reviewer_name"] == "Riley"
    assert client.post(f"{BASE}/{sid}/notes", json={"note": "x", "rating": 9}, headers=COMPANY).status_code == 400

    notes = client.get(f"{BASE}/{sid}/notes", headers=COMPANY).json()["data"]
    assert [n["note"] for n in notes] == ["Strong systems design"]


def test_bulk_screening(client, job_id, spawned):
    good = _processed_resume()
    res = client.post(f"{BASE}/bulk", json={"job_id": job_id, "resume_ids": [good, "missing"]}, headers=COMPANY)
    data = res.json()["data"]
    assert data["created"] == 1
    assert data["errors"] == [{"resume_id": "missing", "error": "Resume not found"}]
    assert spawned == [f"screening:{data['screening_ids'][0]}"]


def test_deleting_job_removes_its_screenings(client, job_id):
    sid = _create(client, job_id, _processed_resume())["id"]
    client.delete(f"/api/v1/jobs/{job_id}", headers=COMPANY)
    assert client.get(f"{BASE}/{sid}", headers=COMPANY).status_code == 404


def test_interview_questions(client, job_id, monkeypatch):
    sid = _create(client, job_id, _processed_resume())["id"]

    async def fake_questions(parsed, requirements):
        return {"technical_questions": [{"question": f"How do you use {requirements[0]['skill']}?"}]}

    monkeypatch.setattr("api.endpoints.screening.llm.generate_interview_questions", fake_questions)
    res = client.post(f"{BASE}/{sid}/interview-questions", headers=COMPANY)
    assert res.json()["data"]["technical_questions"][0]["question"] == "How do you use Python?"
