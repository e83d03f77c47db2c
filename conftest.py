import itertools
import json
import os
import tempfile

# Must be set before any application module reads core.config
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REPLICATE_API_TOKEN", "test-token")
os.environ.setdefault("PUBLIC_BASE_URL", "https://studio.test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="studio-media-"))

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth.models import Base, User, get_db
from auth.security import create_access_token, create_csrf_token
from inference.client import ReplicateClient
from inference.factory import get_replicate_client
import predictions.models  # noqa: F401  registers the predictions table

REPLICATE_BASE = "https://api.replicate.test/v1"


class FakeReplicate:
    """
    In-memory stand-in for the Replicate predictions API, served through
    httpx.MockTransport. Records every request it receives.
    """

    def __init__(self):
        self.requests = []
        self.predictions = {}
        self.sync_response = {"id": "sync-1", "status": "succeeded", "output": ["https://cdn.test/out.png"]}
        self.submit_response = None
        self._ids = itertools.count(1)

    def complete(self, prediction_id, output=None, status="succeeded", error=None):
        self.predictions[prediction_id].update({"status": status, "output": output, "error": error})

    def set_status(self, prediction_id, status):
        self.predictions[prediction_id]["status"] = status

    def calls(self, method, path_fragment=""):
        return [r for r in self.requests if r.method == method and path_fragment in r.url.path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/predictions"):
            if request.headers.get("Prefer") == "wait":
                return httpx.Response(201, json=self.sync_response)
            if self.submit_response is not None:
                return httpx.Response(201, json=self.submit_response)
            body = json.loads(request.content)
            prediction_id = f"pred-{next(self._ids)}"
            self.predictions[prediction_id] = {
                "id": prediction_id,
                "status": "starting",
                "input": body["input"],
                "output": None,
                "error": None,
            }
            return httpx.Response(201, json=self.predictions[prediction_id])

        if request.method == "GET" and "/predictions/" in path:
            prediction_id = path.rsplit("/", 1)[-1]
            if prediction_id not in self.predictions:
                return httpx.Response(404, json={"detail": "Not found."})
            return httpx.Response(200, json=self.predictions[prediction_id])

        return httpx.Response(404, json={"detail": "Not found."})


@pytest.fixture
def provider():
    return FakeReplicate()


@pytest.fixture
def replicate_client(provider):
    return ReplicateClient("test-token", base_url=REPLICATE_BASE, transport=httpx.MockTransport(provider.handler))


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def make_user(db, email, can_upload=True):
    user = User(email=email, hashed_password="not-used", can_upload=can_upload)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {
        "Authorization": f"Bearer {create_access_token({'sub': user.id})}",
        "X-CSRF-Token": create_csrf_token(user.id),
    }


@pytest.fixture
def alice(db):
    return make_user(db, "alice@example.com")


@pytest.fixture
def bob(db):
    return make_user(db, "bob@example.com")


@pytest.fixture
def client(session_factory, replicate_client):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_replicate_client] = lambda: replicate_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
