import asyncio
import contextlib

from fastapi import FastAPI
from app.settings import settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from api.router import api_router
from api.endpoints.health import router as health_router
from api.endpoints.realtime import router as realtime_router
from domain.services import heartbeat
from infra.db.session import init_db

configure_logging()
app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION)


@app.on_event("startup")
async def _on_startup():
    init_db()
    app.state.heartbeat = asyncio.create_task(heartbeat.run(), name="system:health")


@app.on_event("shutdown")
async def _on_shutdown():
    task = getattr(app.state, "heartbeat", None)
    if task is None:
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


attach_error_handlers(app)
app.include_router(health_router, tags=["health"])
app.include_router(api_router)
app.include_router(realtime_router, tags=["realtime"])
