from fastapi import APIRouter

from app.settings import settings
from domain.schemas import ApiResponse
from domain.services import heartbeat
from infra.llm import client as llm

router = APIRouter()


@router.get("/health")
async def health():
    snap = heartbeat.snapshot()
    return {
        "status": "OK",
        "timestamp": snap["timestamp"],
        "uptime": snap["uptime"],
        "environment": settings.ENV,
        "active_connections": snap["active_connections"],
    }


@router.get(settings.API_V1_PREFIX)
async def api_info():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


@router.get(f"{settings.API_V1_PREFIX}/health/llm", response_model=ApiResponse)
async def llm_health() -> ApiResponse:
    configured = llm.is_configured()
    reachable = await llm.test_connection() if configured else False
    return ApiResponse(data={"configured": configured, "reachable": reachable})
