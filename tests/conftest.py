import os

# Must be set before clinicsync.database builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from clinicsync import config, rate_limiter
from clinicsync.database import Base, get_db, get_session_factory
from clinicsync.domain.bookings.router import get_clinic_client
from clinicsync.domain.notifications.router import get_orchestrator_client
from clinicsync.main import app
from clinicsync.models import Booking
from clinicsync.services.clinic_auth_service import ClinicTokenCache
from clinicsync.services.clinic_service import ClinicApiClient
from clinicsync.services.orchestrator_service import OrchestratorClient

CLINIC_URL = "https://clinic.test"
N8N_URL = "https://n8n.test/webhook/confirmations"
N8N_SECRET = "n8n-shared-secret"
BOOKINGS_PATH = "/api/v1/integration/facilities/10/doctors/20/addresses/1/bookings"


def clinic_record(external_id=101, **overrides):
    record = {
        "id": external_id,
        "doctor": "MARIA SOUZA",
        "doctor_id": 20,
        "client": "JOAO SILVA",
        "mobile": "41999998888",
        "date_schedule": "19/02/2026",
        "hour_schedule": "08:30:00",
        "status": "scheduled",
    }
    record.update(overrides)
    return record


class FakeClinic:
    """In-process stand-in for the clinic token + bookings endpoints"""

    def __init__(self):
        self.records = []
        self.requests = []
        self.cancelled = []
        self.token_requests = 0
        self.token_status = 200
        self.bookings_status = 200
        self.cancel_status = 204
        self.raw_bookings_body = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/oauth/v1/token":
            self.token_requests += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_client"})
            return httpx.Response(
                200, json={"access_token": f"token-{self.token_requests}", "expires_in": 3600}
            )

        if request.method == "GET" and request.url.path == BOOKINGS_PATH:
            if self.bookings_status != 200:
                return httpx.Response(self.bookings_status, text="upstream failure")
            body = self.raw_bookings_body or {"result": {"items": self.records}}
            return httpx.Response(200, json=body)

        if request.method == "DELETE" and request.url.path.startswith(BOOKINGS_PATH + "/"):
            self.cancelled.append(int(request.url.path.rsplit("/", 1)[1]))
            return httpx.Response(self.cancel_status)

        return httpx.Response(404)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


class FakeOrchestrator:
    """Records every batch POSTed to n8n"""

    def __init__(self):
        self.batches = []
        self.headers = []
        self.status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.batches.append(json.loads(request.content))
        self.headers.append(request.headers)
        return httpx.Response(self.status, json={"ok": self.status == 200})

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    monkeypatch.setattr(config, "CLINIC_API_URL", CLINIC_URL)
    monkeypatch.setattr(config, "CLINIC_CLIENT_ID", "client-id")
    monkeypatch.setattr(config, "CLINIC_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(config, "CLINIC_FACILITY_ID", "10")
    monkeypatch.setattr(config, "CLINIC_DOCTOR_ID", "20")
    monkeypatch.setattr(config, "CLINIC_ADDRESS_ID", "1")
    monkeypatch.setattr(config, "N8N_WEBHOOK_URL", N8N_URL)
    monkeypatch.setattr(config, "N8N_WEBHOOK_SECRET", N8N_SECRET)
    monkeypatch.setattr(config, "RECONCILE_CONCURRENCY", 1)
    monkeypatch.setattr(config, "MESSAGE_TEMPLATE_FALLBACK", None)
    monkeypatch.setattr(config, "REDIS_URL", None)
    rate_limiter.reset_rate_limits()
    return config


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clinicsync-test.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_record():
    return clinic_record


@pytest.fixture
def fake_clinic():
    return FakeClinic()


@pytest.fixture
def clinic_client(fake_clinic):
    transport = fake_clinic.transport
    return ClinicApiClient(token_cache=ClinicTokenCache(transport=transport), transport=transport)


@pytest.fixture
def fake_orchestrator():
    return FakeOrchestrator()


@pytest.fixture
def orchestrator(fake_orchestrator):
    return OrchestratorClient(transport=fake_orchestrator.transport)


@pytest.fixture
def add_booking(db):
    """Insert a local booking directly, bypassing the sync"""

    def _add(external_id=101, **fields):
        values = {
            "external_id": external_id,
            "patient_name": "JOAO SILVA",
            "patient_mobile": "41999998888",
            "doctor_name": "MARIA SOUZA",
            "date_schedule": "19/02/2026",
            "hour_schedule": "08:30:00",
            "status": "scheduled",
        }
        values.update(fields)
        booking = Booking(**values)
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _add


@pytest.fixture
def client(session_factory, clinic_client, orchestrator):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clinic_client] = lambda: clinic_client
    app.dependency_overrides[get_orchestrator_client] = lambda: orchestrator

    yield TestClient(app)

    app.dependency_overrides.clear()
