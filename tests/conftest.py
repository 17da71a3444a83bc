# tests/conftest.py
import os
import tempfile
import threading
import time

import pytest

# Settings are read at import time; point them at throwaway resources first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="roast-logs-")
os.environ["OPENAI_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_dummy"
os.environ["FREE_ROAST_ALLOTMENT"] = "3"

from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from roast_api.core.config import settings  # noqa: E402
from roast_api.core.dependencies import get_db  # noqa: E402
from roast_api.db.init_db import init_db  # noqa: E402
from roast_api.db.session import build_engine  # noqa: E402
from roast_api.errors.exceptions import AnalysisError  # noqa: E402
from roast_api.main import app  # noqa: E402
from roast_api.schemas.analysis_schemas import StructuredAnalysis  # noqa: E402
from roast_api.services.analysis_service import get_analysis_service  # noqa: E402


SAMPLE_ANALYSIS = {
    "grade": "C-",
    "headline": "Synergy evangelist applies for a job that requires actual engineering",
    "rejection": "The role asks for Kubernetes in production. Your resume mentions it once, in a hobby list.",
    "recruiterNotes": [
        {"section": "Experience", "note": "Lots of leadership words, very little shipped software."},
    ],
    "skillGapHeatmap": [
        {"skill": "Kubernetes", "status": "missing", "jdMention": True, "resumeMention": False},
        {"skill": "Go", "status": "weak", "jdMention": True, "resumeMention": True},
        {"skill": "Python", "status": "strong", "jdMention": True, "resumeMention": True},
    ],
    "priorities": [
        {"rank": 1, "issue": "No production infra work", "effort": "High", "impact": "High", "action": "Ship a k8s side project"},
    ],
    "competition": {"estimatedApplicants": 240, "estimatedRank": 120, "percentile": 50, "competitionLevel": "High"},
    "bulletRewrite": {"before": "Drove synergy", "after": "Cut deploy time 40% by moving CI to GitHub Actions", "why": "Numbers"},
    "atsScore": {
        "score": 62,
        "issues": [{"category": "Keywords", "severity": "Critical", "issue": "Kubernetes missing"}],
        "missingKeywords": ["Kubernetes", "Terraform"],
        "tips": ["Mirror the job title"],
    },
    "hiringManagerQuote": "Nice guy. Next.",
    "improvements": ["Quantify impact", "Add infra projects", "Cut the buzzwords", "Lead with Python"],
}

RESUME = "Senior Synergy Evangelist, 2015-present. Python, some Go."
JOB_DESCRIPTION = "Staff Engineer. Kubernetes, Go and Python in production."


class FakeAnalyzer:
    """Stands in for the OpenAI-backed analyzer."""

    def __init__(self, payload=None, error=None):
        self.payload = payload or SAMPLE_ANALYSIS
        self.error = error
        self.calls = 0

    def analyze(self, resume, job_description):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return StructuredAnalysis.model_validate(self.payload)


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so separate sessions (and threads) share one database."""
    test_engine = build_engine(f"sqlite:///{tmp_path / 'roast.db'}")
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def analysis():
    return StructuredAnalysis.model_validate(SAMPLE_ANALYSIS)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def failing_analyzer():
    return FakeAnalyzer(error=AnalysisError("AI returned invalid JSON"))


@pytest.fixture
def client(session_factory, analyzer):
    """TestClient wired to the per-test database and the fake analyzer."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analysis_service] = lambda: analyzer
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(sub, email=None, expires_in=3600, secret=None):
    claims = {"sub": sub, "exp": int(time.time()) + expires_in}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret or settings.AUTH_SECRET_KEY, algorithm=settings.AUTH_ALGORITHM)


@pytest.fixture
def auth_headers():
    """Build bearer headers for a signed-in account."""

    def _headers(sub="user_123", email=None):
        return {"Authorization": f"Bearer {make_token(sub, email)}"}

    return _headers


def run_concurrently(session_factory, action, workers=50):
    """
    Start *workers* threads behind a barrier, each calling ``action(session)``
    with its own session. Returns (results, errors).
    """
    barrier = threading.Barrier(workers)
    lock = threading.Lock()
    results, errors = [], []

    def worker():
        session = session_factory()
        try:
            barrier.wait()
            outcome = action(session)
            with lock:
                results.append(outcome)
        except Exception as exc:  # surfaced through the caller's assertions
            with lock:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors
