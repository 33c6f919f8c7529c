"""
Pytest fixtures for Resume Builder API tests.
Uses in-memory SQLite, local artifact storage in a temp dir, and a fake pdflatex render.
"""
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set before config/session load. Must override any .env / shell values.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["OPENAI_API_KEY"] = ""
os.environ["AWS_ACCESS_KEY_ID"] = ""
os.environ["AWS_SECRET_ACCESS_KEY"] = ""
os.environ["SMTP_HOST"] = ""
os.environ["EMAIL_USER"] = ""

from backend.app.core.config import settings
from backend.app.core.dependencies import get_db
from backend.app.db.base import Base
from backend.app.schemas.resume import resolve_template_id
from backend.app.services.latex_renderer import RenderedResume
from backend.main import app

# In-memory SQLite for tests - StaticPool ensures all sessions share same DB
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Patch the session module so app uses our test engine
import backend.app.db.session as session_module
session_module.engine = engine
session_module.SessionLocal = TestingSessionLocal


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Relative upload_dir / pdf_output_dir resolve inside a per-test temp dir."""
    monkeypatch.chdir(tmp_path)
    yield tmp_path


@pytest.fixture(scope="function")
def db_session():
    """Create tables and a fresh DB session per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """TestClient with an empty resumes table."""
    return TestClient(app)


@pytest.fixture
def resume_payload():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+1 555 0100",
        "summary": "Backend engineer who ships reliable APIs.",
        "linkedin": "linkedin.com/in/janedoe",
        "github": "github.com/janedoe",
        "technical_skills": ["Python", "FastAPI", "SQL"],
        "experience": [
            {
                "role": "Engineer",
                "company": "Acme",
                "duration": "2020-2022",
                "location": "Remote",
                "points": [{"text": "Cut p99 latency by 40%"}],
            }
        ],
        "projects": ["Resume Builder"],
        "education": [{"degree": "B.Tech", "college": "MIT", "year": "2025"}],
        "certifications": ["AWS Certified Developer"],
    }


@pytest.fixture
def fake_render():
    """Replace pdflatex with a stub that writes a tiny PDF. Yields the (resume, template) calls."""
    calls = []

    def _render(resume, template_id):
        resolved = resolve_template_id(template_id)
        out = Path(settings.pdf_output_dir) / f"{resume.name.replace(' ', '_')}_{len(calls)}.pdf"
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(b"%PDF-1.4 test")
        calls.append((resume, resolved))
        return RenderedResume(pdf_path=out, filename=out.name, template=resolved, latex_source="")

    with patch("backend.app.services.resume_service.generate_resume_pdf", side_effect=_render):
        yield calls
