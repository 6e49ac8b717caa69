import asyncio

from fastapi import WebSocketDisconnect

from api.endpoints.realtime import realtime
from domain.services import heartbeat
from infra.llm import client as llm
from infra.realtime.broker import broker
from infra.repositories.jobs_repository import JobsRepository
from infra.repositories.resumes_repository import ResumesRepository
from infra.repositories.screenings_repository import ScreeningsRepository


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "OK"
    assert body["environment"]
    assert body["active_connections"] == 0
    assert body["uptime"] >= 0


def test_api_info(client):
    body = client.get("/api/v1").json()
    assert body["status"] == "running"
    assert body["version"]


def test_llm_health(client, monkeypatch):
    assert client.get("/api/v1/health/llm").json()["data"] == {"configured": False, "reachable": False}

    async def reachable():
        return True

    monkeypatch.setattr(llm, "is_configured", lambda: True)
    monkeypatch.setattr(llm, "test_connection", reachable)
    assert client.get("/api/v1/health/llm").json()["data"] == {"configured": True, "reachable": True}


def test_unknown_route(client):
    res = client.get("/api/v1/nothing-here")
    assert res.status_code == 404
    assert res.json() == {"success": False, "error": "Route /api/v1/nothing-here not found"}


def _screening(job_payload):
    job = JobsRepository().create(job_payload, company_id="acme")
    resume = ResumesRepository().create(file_name="cv.pdf", file_path="cv.pdf", file_size=1,
                                        file_type=".pdf", company_id="acme")
    return ScreeningsRepository().create(job["id"], resume["id"], None, company_id="acme")


def test_websocket_comment_is_stored_and_broadcast(client, job_payload):
    screening = _screening(job_payload)
    with client.websocket_connect("/ws?company_id=acme&user_id=u1&user_name=Riley") as ws:
        assert broker.connection_count() == 1
        ws.send_json({"event": "screening:comment:add",
                       "data": {"screening_id": screening["id"], "comment": "Great fit", "rating": 5}})
        message = ws.receive_json()
        assert message["event"] == "screening:comment:added"
        assert message["data"]["comment"] == "Great fit"
        assert message["data"]["user_name"] == "Riley"

    notes = ScreeningsRepository().notes(screening["id"])
    assert [(n["note"], n["rating"]) for n in notes] == [("Great fit", 5)]


def test_websocket_upload_progress_and_errors(client, job_payload):
    resume_id = _screening(job_payload)["resume_id"]
    with client.websocket_connect("/ws?company_id=acme&user_id=u1") as ws:
        ws.send_json({"event": "resume:upload:progress", "data": {"resume_id": resume_id, "progress": 55}})
        message = ws.receive_json()
        assert message["event"] == "resume:upload:progress:update"
        assert message["data"]["progress"] == 55

        ws.send_json({"event": "resume:upload:progress", "data": {"resume_id": "r1", "progress": 55}})
        assert ws.receive_json()["data"] == {"message": "Resume not found"}

        ws.send_json({"event": "screening:comment:add", "data": {"screening_id": "missing", "comment": "x"}})
        assert ws.receive_json()["data"] == {"message": "Screening not found"}

        ws.send_json({"event": "video:screening:join", "data": {}})
        message = ws.receive_json()
        assert message["event"] == "error"
        assert message["data"] == {"message": "Unknown event: video:screening:join"}


def test_websocket_typed_subscriptions(client):
    with client.websocket_connect("/ws?company_id=acme&user_id=u1") as ws:
        ws.send_json({"event": "analytics:subscribe", "data": {"types": ["dashboard", "skills"]}})
        ws.send_json({"event": "notification:subscribe", "data": {"types": ["screening"]}})
        ws.send_json({"event": "ping"})
        assert ws.receive_json()["event"] == "error"
        rooms = set(broker._rooms)

    assert {"analytics:dashboard:acme", "analytics:skills:acme", "notification:screening:acme",
            "company:acme", "user:u1"} <= rooms


def test_websocket_upload_progress_is_served_by_progress_route(client, job_payload):
    resume_id = _screening(job_payload)["resume_id"]
    with client.websocket_connect("/ws?company_id=acme&user_id=u1") as ws:
        ws.send_json({"event": "resume:upload:progress", "data": {"resume_id": resume_id, "progress": 55}})
        ws.receive_json()

    body = client.get(f"/api/v1/resumes/{resume_id}/progress", headers={"X-Company-Id": "acme"}).json()
    assert body["data"]["progress"] == 55
    assert body["data"]["message"] == "Uploading"


def test_websocket_upload_progress_is_company_scoped(client, job_payload):
    resume_id = _screening(job_payload)["resume_id"]
    with client.websocket_connect("/ws?company_id=globex&user_id=u2") as ws:
        ws.send_json({"event": "resume:upload:progress", "data": {"resume_id": resume_id, "progress": 90}})
        assert ws.receive_json()["data"] == {"message": "Resume not found"}
    assert broker.get_progress("resume", resume_id) is None


def test_websocket_screening_progress_and_completion(client, job_payload):
    screening = _screening(job_payload)
    with client.websocket_connect("/ws?company_id=acme&user_id=u1") as ws:
        ws.send_json({"event": "screening:progress",
                      "data": {"screening_id": screening["id"], "progress": 40, "message": "Matching"}})
        update = ws.receive_json()
        assert update["event"] == "screening:progress:update"
        assert update["data"]["progress"] == 40
        assert update["data"]["message"] == "Matching"

        ws.send_json({"event": "screening:progress", "data": {"screening_id": screening["id"], "progress": 100}})
        assert ws.receive_json()["event"] == "screening:progress:update"
        completed = ws.receive_json()
        assert completed["event"] == "screening:completed"
        assert completed["data"]["screening_id"] == screening["id"]

        ws.send_json({"event": "screening:progress", "data": {"screening_id": "missing", "progress": 10}})
        assert ws.receive_json()["data"] == {"message": "Screening not found"}

    body = client.get(f"/api/v1/screening/{screening['id']}/progress", headers={"X-Company-Id": "acme"}).json()
    assert body["data"]["progress"] == 100


class _ScriptedSocket:
    def __init__(self, messages):
        self.messages = list(messages)
        self.sent = []

    async def accept(self):
        return None

    async def receive_json(self):
        await asyncio.sleep(0.01)
        if not self.messages:
            raise WebSocketDisconnect()
        return self.messages.pop(0)

    async def send_json(self, data):
        self.sent.append(data)


def test_websocket_writer_is_finished_on_disconnect():
    async def run():
        ws = _ScriptedSocket([{"event": "ping"}])
        await realtime(ws, company_id="acme", user_id="u1")
        others = [t for t in asyncio.all_tasks() if t is not asyncio.current_task()]
        return ws, others

    ws, others = asyncio.run(run())
    assert others == []
    assert [m["event"] for m in ws.sent] == ["error"]
    assert broker.connection_count() == 0


def test_health_broadcast_reaches_every_connection():
    async def run():
        first = broker.subscribe("company:acme")
        second = broker.subscribe()
        assert heartbeat.broadcast() == 2
        return await first.get(), await second.get()

    first, second = asyncio.run(run())
    assert first["event"] == second["event"] == "system:health"
    assert first["data"]["active_connections"] == 2
    assert first["data"]["memory_usage"]["max_rss_bytes"] > 0
    assert first["data"]["uptime"] >= 0


def test_health_broadcast_loop():
    async def run():
        sub = broker.subscribe("company:acme")
        task = asyncio.create_task(heartbeat.run(0.01))
        message = await asyncio.wait_for(sub.get(), timeout=5)
        task.cancel()
        return message

    assert asyncio.run(run())["event"] == "system:health"
    assert asyncio.run(heartbeat.run(0)) is None
