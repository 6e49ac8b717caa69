import asyncio

from domain.services import resume_pipeline, screening_pipeline
from infra.realtime.broker import broker
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.resumes_repository import ResumesRepository
from infra.repositories.screenings_repository import ScreeningsRepository

resumes_repo = ResumesRepository()
jobs_repo = JobsRepository()
screenings_repo = ScreeningsRepository()


def _resume(path, **extra):
    return resumes_repo.create(file_name="jane.docx", file_path=path, file_size=1,
                               file_type=".docx", company_id="acme", uploaded_by="u1", **extra)


def _drain(sub):
    events = []
    while not sub.queue.empty():
        events.append(sub.queue.get_nowait())
    return events


def test_process_resume_without_llm(resume_docx):
    resume = _resume(resume_docx)

    async def run():
        sub = broker.subscribe("user:u1", "company:acme")
        parsed = await resume_pipeline.process_resume(resume["id"])
        return parsed, _drain(sub)

    parsed, events = asyncio.run(run())
    assert parsed["personal_info"]["email"] == "jane.doe@example.com"

    stored = resumes_repo.get(resume["id"], "acme")
    assert stored["status"] == "processed"
    assert stored["processed_at"] is not None
    assert stored["parsed_data"]["personal_info"]["first_name"] == "Jane"

    progress = [e["data"]["progress"] for e in events if e["event"] == "resume:progress"]
    assert progress == [10, 40, 100]
    assert events[-1]["event"] == "resume:processed"
    assert resume_pipeline.progress_snapshot(stored)["progress"] == 100


def test_process_resume_uses_llm_when_configured(resume_docx, monkeypatch):
    resume = _resume(resume_docx)

    async def fake_parse(text):
        return {"skills": [{"name": "Python"}], "raw_text": text}

    monkeypatch.setattr(resume_pipeline.llm, "is_configured", lambda: True)
    monkeypatch.setattr(resume_pipeline.llm, "parse_resume_text", fake_parse)
    asyncio.run(resume_pipeline.process_resume(resume["id"]))
    assert resumes_repo.get(resume["id"], "acme")["parsed_data"]["skills"] == [{"name": "Python"}]


def test_process_resume_failure_marks_failed(tmp_path):
    resume = _resume(str(tmp_path / "missing.docx"))

    async def run():
        sub = broker.subscribe("company:acme")
        result = await resume_pipeline.process_resume(resume["id"])
        return result, _drain(sub)

    result, events = asyncio.run(run())
    assert result is None
    stored = resumes_repo.get(resume["id"], "acme")
    assert stored["status"] == "failed"
    assert stored["error"]
    assert events[-1]["event"] == "resume:failed"
    assert broker.get_progress("resume", resume["id"])["status"] == "failed"


def test_missing_resume_is_ignored():
    assert asyncio.run(resume_pipeline.process_resume("nope")) is None


def test_schedule_goes_through_spawner(spawned):
    resume_pipeline.schedule_resume_processing("r1")
    screening_pipeline.schedule_screening("s1")
    assert spawned == ["resume:r1", "screening:s1"]


def _screening(job_payload, parsed=None, status="processed"):
    job = jobs_repo.create(job_payload, company_id="acme")
    resume = _resume("unused.docx")
    resumes_repo.update(resume["id"], status=status, parsed_data=parsed or {})
    return screenings_repo.create(job["id"], resume["id"], None, company_id="acme")


def test_run_screening_with_keyword_scorer(job_payload):
    screening = _screening(job_payload, {
        "skills": [{"name": "Python", "level": "expert"}],
        "raw_text": "Python developer",
    })

    async def run():
        sub = broker.subscribe("company:acme")
        result = await screening_pipeline.run_screening(screening["id"])
        return result, _drain(sub)

    result, events = asyncio.run(run())
    assert result["score"] == 60.0
    stored = screenings_repo.get(screening["id"], "acme")
    assert stored["status"] == "completed"
    assert stored["score"] == 60.0
    assert stored["breakdown"]["overall"] == 60.0
    assert stored["ai_analysis"]["fit_level"] == "average"
    assert stored["started_at"] <= stored["completed_at"]
    assert [e["event"] for e in events][-1] == "screening:completed"


def test_run_screening_requires_processed_resume(job_payload):
    screening = _screening(job_payload, status="processing")
    assert asyncio.run(screening_pipeline.run_screening(screening["id"])) is None
    stored = screenings_repo.get(screening["id"], "acme")
    assert stored["status"] == "pending"
    assert stored["error"] == "Resume not yet processed"


def test_summarize_clamps_and_fills_fit_level():
    summary = screening_pipeline.summarize({"overall_score": 120, "experience_match": 70})
    assert summary["score"] == 100.0
    assert summary["breakdown"]["experience"] == 70.0
    assert summary["ai_analysis"]["fit_level"] == "excellent"
