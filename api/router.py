from fastapi import APIRouter
from app.settings import settings
from api.endpoints.resumes import router as resumes_router
from api.endpoints.jobs import router as jobs_router
from api.endpoints.screening import router as screening_router
from api.endpoints.analytics import router as analytics_router

api_router = APIRouter(prefix=settings.API_V1_PREFIX)
api_router.include_router(resumes_router, tags=["resumes"])
api_router.include_router(jobs_router, tags=["jobs"])
api_router.include_router(screening_router, tags=["screening"])
api_router.include_router(analytics_router, tags=["analytics"])
