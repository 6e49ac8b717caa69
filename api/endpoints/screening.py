import logging
from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import PageParams, RequestContext, get_context, get_page
from app.errors import AppError, NotFoundError
from domain.schemas import (
    ApiResponse,
    BulkScreeningRequest,
    NoteCreate,
    ScreeningCreate,
    ScreeningStatus,
    ScreeningUpdate,
)
from domain.services.screening_pipeline import progress_snapshot, schedule_screening
from infra.db.models import utcnow
from infra.llm import client as llm
from infra.realtime.broker import broker, company_room
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.resumes_repository import ResumesRepository
from infra.repositories.screenings_repository import ScreeningsRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/screening")
jobs_repo = JobsRepository()
resumes_repo = ResumesRepository()
screenings_repo = ScreeningsRepository()


def _get_or_404(screening_id: str, ctx: RequestContext) -> dict:
    screening = screenings_repo.get(screening_id, ctx.company_id)
    if not screening:
        raise NotFoundError("Screening not found")
    return screening


def _start(screening: dict) -> None:
    if screening["status"] == "in_progress":
        raise AppError("Screening already in progress", 400)
    broker.set_progress("screening", screening["id"], {
        "screening_id": screening["id"],
        "progress": 0,
        "status": "pending",
        "message": "Screening queued",
    })
    schedule_screening(screening["id"])


def add_note(screening: dict, note: str, rating: Optional[int], ctx: RequestContext) -> dict:
    saved = screenings_repo.add_note(screening["id"], note, rating,
                                     reviewer_id=ctx.user_id, reviewer_name=ctx.user_name)
    broker.publish(company_room(screening.get("company_id")), "screening:comment:added", {
        "screening_id": screening["id"],
        "comment": note,
        "rating": rating,
        "user_id": ctx.user_id,
        "user_name": ctx.user_name,
    })
    return saved


@router.get("", response_model=ApiResponse)
async def list_screenings(status: Optional[ScreeningStatus] = None,
                          job_id: Optional[str] = None,
                          candidate_id: Optional[str] = None,
                          paging: PageParams = Depends(get_page),
                          ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    rows, pagination = screenings_repo.list(ctx.company_id, page=paging.page, limit=paging.limit,
                                            status=status, job_id=job_id, candidate_id=candidate_id)
    return ApiResponse(data=rows, pagination=pagination)


@router.post("", response_model=ApiResponse, status_code=201)
async def create_screening(body: ScreeningCreate, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    if not jobs_repo.get(body.job_id, ctx.company_id):
        raise NotFoundError("Job not found")
    resume = resumes_repo.get(body.resume_id, ctx.company_id)
    if not resume:
        raise NotFoundError("Resume not found")
    screening = screenings_repo.create(body.job_id, body.resume_id,
                                       body.candidate_id or resume.get("candidate_id"),
                                       company_id=ctx.company_id)
    return ApiResponse(data=screening, message="Screening created successfully")


@router.post("/bulk", response_model=ApiResponse)
async def bulk_screening(body: BulkScreeningRequest, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    if not jobs_repo.get(body.job_id, ctx.company_id):
        raise NotFoundError("Job not found")
    created, errors = [], []
    for resume_id in body.resume_ids:
        resume = resumes_repo.get(resume_id, ctx.company_id)
        if not resume:
            errors.append({"resume_id": resume_id, "error": "Resume not found"})
            continue
        screening = screenings_repo.create(body.job_id, resume_id, resume.get("candidate_id"),
                                           company_id=ctx.company_id)
        _start(screening)
        created.append(screening["id"])
    logger.info("Bulk screening for job %s: %d started, %d errors", body.job_id, len(created), len(errors))
    return ApiResponse(
        data={"screening_ids": created, "created": len(created), "errors": errors},
        message=f"Started {len(created)} screenings",
    )


@router.get("/{screening_id}", response_model=ApiResponse)
async def get_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=_get_or_404(screening_id, ctx))


@router.put("/{screening_id}", response_model=ApiResponse)
async def update_screening(screening_id: str, body: ScreeningUpdate,
                           ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    screening = _get_or_404(screening_id, ctx)
    fields = body.model_dump(exclude_none=True)
    if fields:
        screening = screenings_repo.update(screening_id, **fields)
    return ApiResponse(data=screening, message="Screening updated successfully")


@router.delete("/{screening_id}", response_model=ApiResponse)
async def delete_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(screening_id, ctx)
    screenings_repo.delete(screening_id)
    return ApiResponse(message="Screening deleted successfully")


@router.post("/{screening_id}/start", response_model=ApiResponse)
async def start_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _start(_get_or_404(screening_id, ctx))
    return ApiResponse(message="Screening started")


@router.post("/{screening_id}/complete", response_model=ApiResponse)
async def complete_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(screening_id, ctx)
    screening = screenings_repo.update(screening_id, status="completed", completed_at=utcnow())
    return ApiResponse(data=screening, message="Screening completed")


@router.post("/{screening_id}/review", response_model=ApiResponse)
async def review_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(screening_id, ctx)
    screening = screenings_repo.update(screening_id, status="reviewed")
    return ApiResponse(data=screening, message="Screening reviewed")


@router.post("/{screening_id}/reject", response_model=ApiResponse)
async def reject_screening(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(screening_id, ctx)
    screening = screenings_repo.update(screening_id, status="rejected")
    return ApiResponse(data=screening, message="Candidate rejected")


@router.get("/{screening_id}/analysis", response_model=ApiResponse)
async def screening_analysis(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    screening = _get_or_404(screening_id, ctx)
    if screening["status"] not in ("completed", "reviewed"):
        raise AppError("Screening not yet completed", 400)
    return ApiResponse(data={
        "score": screening["score"],
        "breakdown": screening["breakdown"],
        "ai_analysis": screening["ai_analysis"],
    })


@router.post("/{screening_id}/notes", response_model=ApiResponse, status_code=201)
async def create_note(screening_id: str, body: NoteCreate,
                      ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    screening = _get_or_404(screening_id, ctx)
    note = add_note(screening, body.note, body.rating, ctx)
    return ApiResponse(data=note, message="Note added successfully")


@router.get("/{screening_id}/notes", response_model=ApiResponse)
async def list_notes(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(screening_id, ctx)
    return ApiResponse(data=screenings_repo.notes(screening_id))


@router.get("/{screening_id}/progress", response_model=ApiResponse)
async def screening_progress(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=progress_snapshot(_get_or_404(screening_id, ctx)))


@router.post("/{screening_id}/interview-questions", response_model=ApiResponse)
async def interview_questions(screening_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    screening = _get_or_404(screening_id, ctx)
    job = jobs_repo.get(screening["job_id"], scoped=False)
    resume = resumes_repo.get(screening["resume_id"], scoped=False)
    if not job or not resume:
        raise NotFoundError("Job or resume not found")
    if resume["status"] != "processed":
        raise AppError("Resume not yet processed", 400)
    questions = await llm.generate_interview_questions(resume["parsed_data"] or {}, job["requirements"] or [])
    return ApiResponse(data=questions)
