import os
import sys

# Ensure project root on sys.path
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Settings are read at import time; point everything at throwaway SQLite
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["INIT_DB_ON_STARTUP"] = "false"
os.environ["LOG_SAMPLE_RATE"] = "1.0"

from typing import Dict, List, Optional

import pytest

from worklog.schemas.job import Job
from worklog.services.exceptions import NetworkError, NotFoundError


def make_job(job_id: str, **fields) -> Job:
    data = {
        "id": job_id,
        "area": "Lobby",
        "workType": "Electrical",
        "description": "Replaced ballast",
        "technicianName": "Tom Tech",
        "shift": "Matutino",
        "createdAt": "2026-03-01T08:00:00.000Z",
        "finishedAt": "2026-03-01T09:00:00.000Z",
        "signature": "Tom Tech",
    }
    data.update(fields)
    return Job.model_validate(data)


class FakeRemote:
    """In-memory remote job source with switchable failures."""

    def __init__(self, jobs: Optional[List[Job]] = None):
        self.jobs: Dict[str, Job] = {job.id: job for job in (jobs or [])}
        self.listing: Optional[List[Job]] = None
        self.list_error: Optional[Exception] = None
        self.failing_ids: set = set()
        self.upserts: List[str] = []
        self.deletes: List[str] = []

    def list_jobs(self) -> List[Job]:
        if self.list_error is not None:
            raise self.list_error
        if self.listing is not None:
            return list(self.listing)
        return list(self.jobs.values())

    def upsert_job(self, job: Job) -> None:
        if job.id in self.failing_ids:
            raise NetworkError(target="fake", reason="offline")
        self.upserts.append(job.id)
        self.jobs[job.id] = job.model_copy(update={"sync_status": None})

    def delete_job(self, job_id: str) -> None:
        if job_id in self.failing_ids:
            raise NetworkError(target="fake", reason="offline")
        self.deletes.append(job_id)
        if job_id not in self.jobs:
            raise NotFoundError(job_id)
        self.jobs[job_id] = self.jobs[job_id].model_copy(update={"deleted": True})


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def local_store():
    from worklog.db.session import close_local_session, open_local_session
    from worklog.repositories.local_job import LocalJobStore

    db = open_local_session("sqlite://")
    try:
        yield LocalJobStore(db)
    finally:
        close_local_session(db)


@pytest.fixture
def backend_sessionmaker():
    from worklog.db import base  # noqa: F401
    from worklog.db.base_class import Base
    from worklog.db.session import SessionLocal, engine

    Base.metadata.create_all(bind=engine)
    try:
        yield SessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seeded_technicians(backend_sessionmaker):
    from worklog.repositories.technician import TechnicianRepository
    from worklog.schemas.technician import TechnicianSeed
    from worklog.services.auth_services import AuthService

    roster = [
        TechnicianSeed(id="tech-1", name="Tom Tech", role="tech", password="techpass"),
        TechnicianSeed(id="admin-1", name="Ana Admin", role="admin", password="adminpass"),
    ]
    with backend_sessionmaker() as db:
        AuthService(technician_repo=TechnicianRepository(db)).seed_technicians(roster, db)
    return roster


@pytest.fixture
def client(seeded_technicians):
    from fastapi.testclient import TestClient
    from main import app

    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        test_client.close()


def login(client, technician_id: str, password: str, shift: str = "Nocturno") -> str:
    resp = client.post("/api/auth/login", json={"technicianId": technician_id, "password": password, "shift": shift})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["token"]
