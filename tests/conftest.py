import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="resume-screening-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.sqlite3')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["HEALTH_BROADCAST_SECONDS"] = "0"

import docx
import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.settings import settings
from domain.services import tasks
from infra.db.session import drop_db, init_db
from infra.realtime.broker import broker

RESUME_LINES = [
    "Jane Doe",
    "jane.doe@example.com",
    "(555) 123-4567",
    "Experience",
    "Senior engineer at Acme building Python and FastAPI services for hiring teams.",
    "Education",
    "Bachelor of Science in Computer Science, State University",
    "Skills",
    "Python, SQL, Docker",
]

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
COMPANY = {"X-Company-Id": "acme", "X-User-Id": "u1", "X-User-Name": "Riley"}


def write_docx(path, lines=RESUME_LINES) -> str:
    document = docx.Document()
    for line in lines:
        document.add_paragraph(line)
    document.save(str(path))
    return str(path)


@pytest.fixture(autouse=True)
def fresh_db():
    drop_db()
    init_db()
    yield
    broker.clear()


@pytest.fixture(autouse=True)
def no_llm(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", None)


@pytest.fixture(autouse=True)
def spawned(monkeypatch):
    """Record background jobs instead of running them."""
    names = []

    def fake_spawn(coro, name=None):
        names.append(name)
        coro.close()

    monkeypatch.setattr(tasks, "spawn", fake_spawn)
    return names


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def resume_docx(tmp_path) -> str:
    return write_docx(tmp_path / "jane.docx")


@pytest.fixture
def docx_bytes(resume_docx) -> bytes:
    with open(resume_docx, "rb") as f:
        return f.read()


@pytest.fixture
def job_payload() -> dict:
    return {
        "title": "Senior Python Engineer",
        "description": "Build and run the services behind our hiring platform. " * 2,
        "requirements": [
            {"skill": "Python", "level": "advanced", "required": True, "weight": 0.6},
            {"skill": "Kubernetes", "level": "intermediate", "required": True, "weight": 0.4},
        ],
        "responsibilities": ["Own backend services"],
        "location": "Remote",
        "type": "full-time",
        "level": "senior",
        "salary": {"min": 100000, "max": 150000, "currency": "USD"},
    }
