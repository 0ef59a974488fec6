import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

# Ensure tests can import project packages regardless of how pytest is invoked.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

# Settings and the engine are built at import time, so the environment has to
# point at a scratch database before anything from mediadash is imported.
_SCRATCH = Path(tempfile.mkdtemp(prefix="mediadash-tests-"))
OPERATOR_TOKEN = "test-operator-token"
os.environ["DATABASE_URL"] = f"sqlite:///{_SCRATCH / 'test.db'}"
os.environ["DOWNLOAD_PATH"] = str(_SCRATCH / "downloads")
os.environ["DOWNLOAD_STEP_DELAY_SECONDS"] = "0"
os.environ["DOWNLOAD_TIMEOUT_SECONDS"] = "300"
os.environ["API_TOKEN"] = OPERATOR_TOKEN
os.environ["YOUTUBE_API_KEY"] = ""
os.environ["SPOTIFY_CLIENT_ID"] = ""
os.environ["SPOTIFY_CLIENT_SECRET"] = ""

from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from mediadash.db import engine, init_db  # noqa: E402


class FakeQueue:
    """Records enqueued jobs instead of talking to Redis."""

    def __init__(self) -> None:
        self.jobs: List[Tuple[str, Dict[str, Any]]] = []

    def enqueue(self, func: str, *args: Any, **kwargs: Any) -> None:
        self.jobs.append((func, kwargs))


@pytest.fixture(autouse=True)
def reset_database():
    SQLModel.metadata.drop_all(engine)
    init_db()
    yield


@pytest.fixture(autouse=True)
def fake_queue(monkeypatch) -> FakeQueue:
    queue = FakeQueue()
    monkeypatch.setattr("mediadash.queue.get_queue", lambda: queue)
    return queue


@pytest.fixture
def make_client():
    from mediadash.main import app

    def _make(email: str = "admin@example.com", *, login: bool = True) -> TestClient:
        client = TestClient(app)
        if login:
            response = client.post(
                "/api/login",
                json={"email": email, "first_name": "Test"},
                headers={"Authorization": f"Bearer {OPERATOR_TOKEN}"},
            )
            assert response.status_code == 200, response.text
            client.user = response.json()
        return client

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def api_key(client) -> Dict[str, Any]:
    response = client.post(
        f"/api/users/{client.user['id']}/api-keys",
        json={"name": "integration", "request_limit": 100},
    )
    assert response.status_code == 201, response.text
    return response.json()
