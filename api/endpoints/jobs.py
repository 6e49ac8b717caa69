from typing import Optional

from fastapi import APIRouter, Depends

from api.deps import PageParams, RequestContext, get_context, get_page, to_naive_utc
from app.errors import AppError, NotFoundError
from domain.schemas import ApiResponse, JobCreate, JobLevel, JobStatus, JobType, JobUpdate
from domain.services import analytics
from infra.db.models import utcnow
from infra.llm import client as llm
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.screenings_repository import ScreeningsRepository

router = APIRouter(prefix="/jobs")
jobs_repo = JobsRepository()
screenings_repo = ScreeningsRepository()


def _get_or_404(job_id: str, ctx: RequestContext) -> dict:
    job = jobs_repo.get(job_id, ctx.company_id)
    if not job:
        raise NotFoundError("Job not found")
    return job


def _transition(job: dict, status: str) -> dict:
    """Fields to write when moving a job to status, or AppError when not allowed."""
    current = job["status"]
    if status == "active":
        if current == "archived":
            raise AppError("Archived jobs cannot be published", 400)
        return {"status": "active", "published_at": utcnow()}
    if status == "paused" and current != "active":
        raise AppError("Only active jobs can be paused", 400)
    if status == "draft" and current != "draft":
        raise AppError("Only new jobs can be in draft", 400)
    if status == "closed":
        return {"status": "closed", "closed_at": utcnow()}
    return {"status": status}


@router.get("", response_model=ApiResponse)
async def list_jobs(status: Optional[JobStatus] = None,
                    type: Optional[JobType] = None,
                    level: Optional[JobLevel] = None,
                    location: Optional[str] = None,
                    paging: PageParams = Depends(get_page),
                    ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    rows, pagination = jobs_repo.list(ctx.company_id, page=paging.page, limit=paging.limit,
                                      status=status, type=type, level=level, location=location)
    return ApiResponse(data=rows, pagination=pagination)


@router.post("", response_model=ApiResponse, status_code=201)
async def create_job(body: JobCreate, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    data = body.model_dump()
    data["deadline"] = to_naive_utc(body.deadline)
    job = jobs_repo.create(data, company_id=ctx.company_id, created_by=ctx.user_id)
    return ApiResponse(data=job, message="Job created successfully")


@router.get("/{job_id}", response_model=ApiResponse)
async def get_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=_get_or_404(job_id, ctx))


@router.put("/{job_id}", response_model=ApiResponse)
async def update_job(job_id: str, body: JobUpdate, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = _get_or_404(job_id, ctx)
    fields = body.model_dump(exclude_none=True)
    if "deadline" in fields:
        fields["deadline"] = to_naive_utc(body.deadline)
    status = fields.pop("status", None)
    if status and status != job["status"]:
        fields.update(_transition(job, status))
    job = jobs_repo.update(job_id, **fields) if fields else jobs_repo.get(job_id, scoped=False)
    return ApiResponse(data=job, message="Job updated successfully")


@router.delete("/{job_id}", response_model=ApiResponse)
async def delete_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(job_id, ctx)
    jobs_repo.delete(job_id)
    return ApiResponse(message="Job deleted successfully")


@router.post("/{job_id}/publish", response_model=ApiResponse)
async def publish_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = jobs_repo.update(job_id, **_transition(_get_or_404(job_id, ctx), "active"))
    return ApiResponse(data=job, message="Job published successfully")


@router.post("/{job_id}/pause", response_model=ApiResponse)
async def pause_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = jobs_repo.update(job_id, **_transition(_get_or_404(job_id, ctx), "paused"))
    return ApiResponse(data=job, message="Job paused successfully")


@router.post("/{job_id}/close", response_model=ApiResponse)
async def close_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = jobs_repo.update(job_id, **_transition(_get_or_404(job_id, ctx), "closed"))
    return ApiResponse(data=job, message="Job closed successfully")


@router.post("/{job_id}/archive", response_model=ApiResponse)
async def archive_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = jobs_repo.update(job_id, **_transition(_get_or_404(job_id, ctx), "archived"))
    return ApiResponse(data=job, message="Job archived successfully")


@router.post("/{job_id}/duplicate", response_model=ApiResponse, status_code=201)
async def duplicate_job(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(job_id, ctx)
    job = jobs_repo.duplicate(job_id, created_by=ctx.user_id)
    return ApiResponse(data=job, message="Job duplicated successfully")


@router.get("/{job_id}/applications", response_model=ApiResponse)
async def job_applications(job_id: str, paging: PageParams = Depends(get_page),
                           ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(job_id, ctx)
    rows, pagination = screenings_repo.list(ctx.company_id, page=paging.page, limit=paging.limit,
                                            job_id=job_id)
    return ApiResponse(data=rows, pagination=pagination)


@router.get("/{job_id}/analytics", response_model=ApiResponse)
async def job_analytics(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(job_id, ctx)
    return ApiResponse(data=analytics.job_analytics(job_id))


@router.post("/{job_id}/bias-check", response_model=ApiResponse)
async def job_bias_check(job_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    job = _get_or_404(job_id, ctx)
    return ApiResponse(data=await llm.detect_bias(f"{job['title']}\n\n{job['description']}"))
