import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from api.deps import PageParams, RequestContext, get_context, get_page
from app.errors import AppError, NotFoundError
from domain.schemas import ApiResponse, ResumeStatus, ResumeUpdate
from domain.services import resume_inspection
from domain.services.resume_pipeline import progress_snapshot, schedule_resume_processing
from infra.documents.parser import DocumentParseError, UnsupportedFileType
from infra.llm import client as llm
from infra.repositories.resumes_repository import ResumesRepository
from infra.storage.uploads import cleanup_file, read_upload, store_upload

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/resumes")
resumes_repo = ResumesRepository()


def _get_or_404(resume_id: str, ctx: RequestContext) -> dict:
    resume = resumes_repo.get(resume_id, ctx.company_id)
    if not resume:
        raise NotFoundError("Resume not found")
    return resume


async def _ingest(f: UploadFile, ctx: RequestContext, candidate_id: Optional[str],
                  job_id: Optional[str]) -> dict:
    content = await read_upload(f)
    stored = store_upload(f.filename or "resume", f.content_type, content)
    resume = resumes_repo.create(
        file_name=stored.original_name,
        file_path=stored.path,
        file_size=stored.size,
        file_type=stored.extension,
        mime_type=stored.mime_type,
        company_id=ctx.company_id,
        candidate_id=candidate_id,
        job_id=job_id,
        uploaded_by=ctx.user_id,
    )
    schedule_resume_processing(resume["id"])
    return resume


@router.post("/upload", response_model=ApiResponse, status_code=201)
async def upload_resume(file: Optional[UploadFile] = File(default=None),
                        candidate_id: Optional[str] = Form(default=None),
                        job_id: Optional[str] = Form(default=None),
                        ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    if not file:
        raise AppError("No file uploaded", 400)
    resume = await _ingest(file, ctx, candidate_id, job_id)
    return ApiResponse(data=resume, message="Resume uploaded successfully. Parsing in progress.")


@router.post("/bulk-upload", response_model=ApiResponse)
async def bulk_upload_resumes(files: Optional[List[UploadFile]] = File(default=None),
                              candidate_id: Optional[str] = Form(default=None),
                              job_id: Optional[str] = Form(default=None),
                              ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    if not files:
        raise AppError("No files uploaded", 400)
    uploaded, errors = [], []
    for f in files:
        try:
            uploaded.append(await _ingest(f, ctx, candidate_id, job_id))
        except AppError as e:
            errors.append({"file": f.filename, "error": e.message})

    logger.info("Bulk upload: %d stored, %d rejected", len(uploaded), len(errors))
    message = f"Successfully uploaded {len(uploaded)} resumes"
    if errors:
        message += f" with {len(errors)} errors"
    return ApiResponse(
        data={
            "uploaded": len(uploaded),
            "errors": len(errors),
            "resume_ids": [r["id"] for r in uploaded],
            "error_details": errors,
        },
        message=message,
    )


@router.get("", response_model=ApiResponse)
async def list_resumes(status: Optional[ResumeStatus] = None,
                       candidate_id: Optional[str] = None,
                       job_id: Optional[str] = None,
                       paging: PageParams = Depends(get_page),
                       ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    rows, pagination = resumes_repo.list(
        ctx.company_id, page=paging.page, limit=paging.limit,
        status=status, candidate_id=candidate_id, job_id=job_id)
    return ApiResponse(data=rows, pagination=pagination)


@router.get("/{resume_id}", response_model=ApiResponse)
async def get_resume(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=_get_or_404(resume_id, ctx))


@router.put("/{resume_id}", response_model=ApiResponse)
async def update_resume(resume_id: str, body: ResumeUpdate,
                        ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _get_or_404(resume_id, ctx)
    fields = body.model_dump(exclude_none=True)
    if fields:
        resumes_repo.update(resume_id, **fields)
    return ApiResponse(message="Resume updated successfully")


@router.delete("/{resume_id}", response_model=ApiResponse)
async def delete_resume(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    cleanup_file(resume["file_path"])
    resumes_repo.delete(resume_id)
    return ApiResponse(message="Resume deleted successfully")


def _restart(resume_id: str, ctx: RequestContext) -> None:
    _get_or_404(resume_id, ctx)
    resumes_repo.update(resume_id, status="processing", error=None)
    schedule_resume_processing(resume_id)


@router.post("/{resume_id}/parse", response_model=ApiResponse)
async def parse_resume(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _restart(resume_id, ctx)
    return ApiResponse(message="Resume parsing started")


@router.post("/{resume_id}/reprocess", response_model=ApiResponse)
async def reprocess_resume(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    _restart(resume_id, ctx)
    return ApiResponse(message="Resume reprocessing started")


@router.get("/{resume_id}/download")
async def download_resume(resume_id: str, ctx: RequestContext = Depends(get_context)):
    resume = _get_or_404(resume_id, ctx)
    if not os.path.exists(resume["file_path"]):
        raise NotFoundError("Resume file not found")
    return FileResponse(resume["file_path"], media_type="application/octet-stream",
                        filename=resume["file_name"])


@router.get("/{resume_id}/analysis", response_model=ApiResponse)
async def resume_analysis(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    if resume["status"] != "processed":
        raise AppError("Resume not yet processed", 400)
    return ApiResponse(data=await llm.analyze_resume(resume["parsed_data"]))


@router.get("/{resume_id}/skills", response_model=ApiResponse)
async def resume_skills(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    return ApiResponse(data=await llm.extract_skills(resume["parsed_data"] or {}))


@router.get("/{resume_id}/validate", response_model=ApiResponse)
async def validate_resume(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    return ApiResponse(data=await llm.validate_resume(resume["parsed_data"] or {}))


@router.get("/{resume_id}/file-validation", response_model=ApiResponse)
async def validate_resume_file(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    return ApiResponse(data=resume_inspection.validate_resume_file(resume["file_path"], resume["file_type"]))


@router.get("/{resume_id}/stats", response_model=ApiResponse)
async def resume_stats(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    resume = _get_or_404(resume_id, ctx)
    if not os.path.exists(resume["file_path"]):
        raise NotFoundError("Resume file not found")
    try:
        stats = resume_inspection.file_stats(resume["file_path"], resume["file_type"])
    except (DocumentParseError, UnsupportedFileType) as e:
        raise AppError(str(e), 422)
    return ApiResponse(data=stats)


@router.get("/{resume_id}/progress", response_model=ApiResponse)
async def resume_progress(resume_id: str, ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=progress_snapshot(_get_or_404(resume_id, ctx)))
