import asyncio
import contextlib
import logging
from typing import Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.deps import RequestContext
from api.endpoints.screening import add_note
from domain.schemas import NoteCreate
from infra.realtime.broker import Subscription, broker, company_room, make_event, user_room
from infra.repositories.resumes_repository import ResumesRepository
from infra.repositories.screenings_repository import ScreeningsRepository

logger = logging.getLogger(__name__)
router = APIRouter()
resumes_repo = ResumesRepository()
screenings_repo = ScreeningsRepository()

TYPED_ROOMS = {"notification:subscribe": "notification", "analytics:subscribe": "analytics"}


async def _forward(ws: WebSocket, sub: Subscription) -> None:
    while True:
        await ws.send_json(await sub.get())


def _reply(sub: Subscription, event: str, data) -> None:
    sub.deliver(make_event(event, data))


def _percent(value) -> int:
    try:
        return min(100, max(0, int(value or 0)))
    except (TypeError, ValueError):
        return 0


def handle_message(sub: Subscription, ctx: RequestContext, message: Dict) -> None:
    if not isinstance(message, dict):
        message = {}
    event = message.get("event")
    data = message.get("data")
    if not isinstance(data, dict):
        data = {}

    if event in TYPED_ROOMS:
        types = [t for t in data.get("types") or [] if isinstance(t, str) and t]
        sub.join(*(f"{TYPED_ROOMS[event]}:{t}:{ctx.company_id}" for t in types))
        logger.info("User %s subscribed to %s: %s", ctx.user_id, TYPED_ROOMS[event], ", ".join(types))
        return

    if event == "resume:upload:progress":
        resume_id = data.get("resume_id")
        if not resume_id:
            _reply(sub, "error", {"message": "resume_id is required"})
            return
        resume = resumes_repo.get(str(resume_id), ctx.company_id)
        if not resume:
            _reply(sub, "error", {"message": "Resume not found"})
            return
        entry = broker.set_progress("resume", resume["id"], {
            "resume_id": resume["id"],
            "progress": _percent(data.get("progress")),
            "status": resume["status"],
            "message": "Uploading",
            "user_id": ctx.user_id,
        })
        _reply(sub, "resume:upload:progress:update", entry)
        return

    if event == "screening:progress":
        screening = screenings_repo.get(str(data.get("screening_id")), ctx.company_id)
        if not screening:
            _reply(sub, "error", {"message": "Screening not found"})
            return
        progress = _percent(data.get("progress"))
        entry = broker.set_progress("screening", screening["id"], {
            "screening_id": screening["id"],
            "progress": progress,
            "status": screening["status"],
            "message": data.get("message") or "",
        })
        _reply(sub, "screening:progress:update", entry)
        if progress >= 100:
            broker.publish(company_room(ctx.company_id), "screening:completed", {
                "screening_id": screening["id"],
                "message": "Screening completed",
            })
        return

    if event == "screening:comment:add":
        screening = screenings_repo.get(str(data.get("screening_id")), ctx.company_id)
        if not screening:
            _reply(sub, "error", {"message": "Screening not found"})
            return
        try:
            body = NoteCreate(note=data.get("comment") or "", rating=data.get("rating"))
        except ValidationError:
            _reply(sub, "error", {"message": "Invalid comment"})
            return
        add_note(screening, body.note, body.rating, ctx)
        return

    _reply(sub, "error", {"message": f"Unknown event: {event}"})


@router.websocket("/ws")
async def realtime(ws: WebSocket, company_id: Optional[str] = None,
                   user_id: Optional[str] = None, user_name: Optional[str] = None):
    ctx = RequestContext(company_id=company_id, user_id=user_id, user_name=user_name)
    sub = broker.subscribe(company_room(company_id), user_room(user_id))
    await ws.accept()
    logger.info("User %s connected (company %s)", user_id, company_id)
    writer = asyncio.create_task(_forward(ws, sub))
    try:
        while True:
            try:
                message = await ws.receive_json()
            except ValueError:
                _reply(sub, "error", {"message": "Malformed message"})
                continue
            handle_message(sub, ctx, message)
    except WebSocketDisconnect:
        logger.info("User %s disconnected", user_id)
    finally:
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await writer
        sub.close()
