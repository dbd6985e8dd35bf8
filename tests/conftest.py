import json
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.analysis_record import AnalysisRecord, ComplianceStatus
from app.services import gemini_service
from app.services.session_service import SessionRegistry

BASE_TIME = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)


def make_record(score=80, hazards=(), progress=50, status=ComplianceStatus.COMPLIANT, minutes=0, **kwargs):
    return AnalysisRecord(
        safety_score=score,
        hazards=tuple(hazards),
        progress_estimate=progress,
        compliance_status=status,
        recommendations=tuple(kwargs.pop("recommendations", ())),
        timestamp=BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )


class FakeModels:
    """Stands in for ``genai.Client().models``; records each call."""

    def __init__(self, text=None, response=None, error=None):
        self.text = text
        self.response = response
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return SimpleNamespace(text=self.text)


@pytest.fixture
def fake_gemini(monkeypatch):
    """Patch the Gemini client factory; returns a function to configure replies."""
    models = FakeModels()
    monkeypatch.setattr(gemini_service, "_configure_google_client", lambda: SimpleNamespace(models=models))

    def configure(text=None, response=None, error=None):
        models.text = text
        models.response = response
        models.error = error
        return models

    return configure


@pytest.fixture
def analysis_payload():
    return {
        "safetyScore": 72,
        "hazards": ["Worker missing hard hat", "Debris on walkway"],
        "progressEstimate": 35,
        "complianceStatus": "Minor Violations",
        "recommendations": ["Enforce PPE at gate", "Clear walkway"],
    }


@pytest.fixture
def analysis_json(analysis_payload):
    return json.dumps(analysis_payload)


@pytest.fixture
def client():
    app.state.sessions = SessionRegistry()
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session_id(client):
    res = client.post("/api/v1/sessions")
    assert res.status_code == 201
    return res.json()["id"]


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def jpeg_bytes():
    return b"\xff\xd8\xff\xe0fake-jpeg-body"
