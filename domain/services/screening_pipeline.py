import logging
from typing import Dict, Optional

from domain.services import tasks
from domain.services.keyword_scorer import fit_level, score_match
from infra.llm import client as llm
from infra.realtime.broker import broker, company_room
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.resumes_repository import ResumesRepository
from infra.repositories.screenings_repository import ScreeningsRepository

logger = logging.getLogger(__name__)
jobs_repo = JobsRepository()
resumes_repo = ResumesRepository()
screenings_repo = ScreeningsRepository()


class ScreeningError(RuntimeError):
    pass


def _push(screening: Dict, progress: int, status: str, message: str) -> Dict:
    entry = broker.set_progress("screening", screening["id"], {
        "screening_id": screening["id"],
        "progress": progress,
        "status": status,
        "message": message,
    })
    broker.publish(company_room(screening.get("company_id")), "screening:progress:update", entry)
    return entry


async def match(parsed: Dict, job: Dict) -> Dict:
    requirements = job.get("requirements") or []
    if not llm.is_configured():
        logger.info("No LLM provider configured; using keyword scorer")
        return score_match(parsed, requirements)
    return await llm.match_resume_to_job(parsed, job.get("description", ""), requirements)


def summarize(result: Dict) -> Dict:
    score = min(100.0, max(0.0, float(result.get("overall_score") or 0.0)))
    breakdown = {
        "skills": result.get("skill_breakdown") or [],
        "experience": float(result.get("experience_match") or 0.0),
        "education": float(result.get("education_match") or 0.0),
        "cultural_fit": float(result.get("cultural_fit") or 0.0),
        "overall": score,
    }
    ai_analysis = {
        "strengths": result.get("strengths") or [],
        "weaknesses": result.get("weaknesses") or [],
        "recommendations": result.get("recommendations") or [],
        "fit_level": result.get("fit_level") or fit_level(score),
    }
    return {"score": score, "breakdown": breakdown, "ai_analysis": ai_analysis}


async def run_screening(screening_id: str) -> Optional[Dict]:
    screening = screenings_repo.get(screening_id, scoped=False)
    if not screening:
        logger.warning("Screening %s vanished before it ran", screening_id)
        return None

    logger.info("=== Starting screening %s ===", screening_id)
    room = company_room(screening.get("company_id"))
    try:
        screenings_repo.start(screening_id)
        _push(screening, 10, "in_progress", "Loading candidate profile")

        job = jobs_repo.get(screening["job_id"], scoped=False)
        resume = resumes_repo.get(screening["resume_id"], scoped=False)
        if not job:
            raise ScreeningError("Job not found")
        if not resume:
            raise ScreeningError("Resume not found")
        if resume["status"] != "processed":
            raise ScreeningError("Resume not yet processed")

        _push(screening, 60, "in_progress", "Matching candidate against job requirements")
        result = summarize(await match(resume.get("parsed_data") or {}, job))
        logger.info("Screening %s scored %.2f (%s)", screening_id, result["score"],
                    result["ai_analysis"]["fit_level"])

        screenings_repo.complete(screening_id, **result)
        _push(screening, 100, "completed", "Screening completed")
        broker.publish(room, "screening:completed", {
            "screening_id": screening_id,
            "score": result["score"],
            "message": "Screening completed",
        })
        logger.info("=== Screening %s completed ===", screening_id)
        return result
    except Exception as e:
        logger.exception("Screening %s failed: %s", screening_id, e)
        screenings_repo.fail(screening_id, str(e))
        _push(screening, 100, "failed", str(e))
        broker.publish(room, "screening:failed", {"screening_id": screening_id, "error": str(e)})
        return None


def schedule_screening(screening_id: str) -> None:
    tasks.spawn(run_screening(screening_id), name=f"screening:{screening_id}")


def progress_snapshot(screening: Dict) -> Dict:
    cached = broker.get_progress("screening", screening["id"])
    if cached:
        return cached
    progress = {"pending": 0, "in_progress": 10}.get(screening["status"], 100)
    return {"screening_id": screening["id"], "progress": progress, "status": screening["status"],
            "message": screening.get("error") or ""}
