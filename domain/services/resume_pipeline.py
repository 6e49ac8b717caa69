import logging
from typing import Dict, Optional

from domain.services import tasks
from domain.services.resume_inspection import fallback_parsed_data, read_clean_text
from infra.llm import client as llm
from infra.realtime.broker import broker, company_room, user_room
from infra.repositories.resumes_repository import ResumesRepository

logger = logging.getLogger(__name__)
resumes_repo = ResumesRepository()


def _push(resume: Dict, progress: int, status: str, message: str) -> Dict:
    data = {
        "resume_id": resume["id"],
        "progress": progress,
        "status": status,
        "message": message,
    }
    entry = broker.set_progress("resume", resume["id"], data)
    broker.publish_many(
        [user_room(resume.get("uploaded_by")), company_room(resume.get("company_id"))],
        "resume:progress",
        entry,
    )
    return entry


async def parse_text(text: str) -> Dict:
    if not llm.is_configured():
        logger.info("No LLM provider configured; using heuristic resume parsing")
        return fallback_parsed_data(text)
    return await llm.parse_resume_text(text)


async def process_resume(resume_id: str) -> Optional[Dict]:
    resume = resumes_repo.get(resume_id, scoped=False)
    if not resume:
        logger.warning("Resume %s vanished before processing", resume_id)
        return None

    logger.info("Starting background parsing for resume %s", resume_id)
    rooms = [user_room(resume.get("uploaded_by")), company_room(resume.get("company_id"))]
    try:
        resumes_repo.update_status(resume_id, "processing")
        _push(resume, 10, "processing", "Extracting text")
        text = read_clean_text(resume["file_path"], resume["file_type"])
        logger.info("Resume %s text length: %d chars", resume_id, len(text))

        _push(resume, 40, "processing", "Parsing with AI")
        parsed = await parse_text(text)

        resumes_repo.mark_processed(resume_id, parsed)
        _push(resume, 100, "processed", "Resume processed")
        broker.publish_many(rooms, "resume:processed", {"resume_id": resume_id})
        logger.info("Completed parsing for resume %s", resume_id)
        return parsed
    except Exception as e:
        logger.exception("Error parsing resume %s: %s", resume_id, e)
        resumes_repo.fail(resume_id, str(e))
        _push(resume, 100, "failed", str(e))
        broker.publish_many(rooms, "resume:failed", {"resume_id": resume_id, "error": str(e)})
        return None


def schedule_resume_processing(resume_id: str) -> None:
    tasks.spawn(process_resume(resume_id), name=f"resume:{resume_id}")


def progress_snapshot(resume: Dict) -> Dict:
    cached = broker.get_progress("resume", resume["id"])
    if cached:
        return cached
    progress = {"uploaded": 0, "processing": 10, "processed": 100, "failed": 100}.get(resume["status"], 0)
    return {"resume_id": resume["id"], "progress": progress, "status": resume["status"],
            "message": resume.get("error") or ""}
