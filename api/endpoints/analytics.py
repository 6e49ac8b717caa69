from fastapi import APIRouter, Depends

from api.deps import RequestContext, get_context, get_date_range
from domain.schemas import ApiResponse
from domain.services import analytics
from domain.services.analytics import DateRange

router = APIRouter(prefix="/analytics")


@router.get("/dashboard", response_model=ApiResponse)
async def dashboard(window: DateRange = Depends(get_date_range),
                    ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=analytics.dashboard(ctx.company_id, window))


@router.get("/skills", response_model=ApiResponse)
async def skills(window: DateRange = Depends(get_date_range),
                 ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=analytics.skills(ctx.company_id, window))


@router.get("/hiring-funnel", response_model=ApiResponse)
async def hiring_funnel(window: DateRange = Depends(get_date_range),
                        ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=analytics.hiring_funnel(ctx.company_id, window))


@router.get("/screening-efficiency", response_model=ApiResponse)
async def screening_efficiency(window: DateRange = Depends(get_date_range),
                               ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=analytics.screening_efficiency(ctx.company_id, window))


@router.get("/candidate-quality", response_model=ApiResponse)
async def candidate_quality(window: DateRange = Depends(get_date_range),
                            ctx: RequestContext = Depends(get_context)) -> ApiResponse:
    return ApiResponse(data=analytics.candidate_quality(ctx.company_id, window))
