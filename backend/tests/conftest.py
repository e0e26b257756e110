"""Pytest configuration and shared fixtures for the backend tests."""

import io

import pytest
from docx import Document

from core import prompt_manager
from core.errors import UpstreamUnavailable
from registration import RegistrationForm, register_candidate
from registration.schemas import Registration, RegistrationStatus, ResumeData
from storage.memory import MemoryRegistrationStore

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

RESUME_TEXT = (
    "Ada Lovelace\n"
    "Mathematics tutor with six years of classroom experience in NYC public and charter schools. "
    "Skills: lesson planning, classroom management, algebra, geometry."
)


class FakeGateway:
    """Stands in for LLMGateway: pops scripted replies, then repeats ``default``."""

    provider = "fake"
    model = "fake-model"

    def __init__(self, replies=None, *, default="Experienced mathematics tutor.", error=None):
        self.replies = list(replies or [])
        self.default = default
        self.error = error
        self.calls: list[dict] = []

    def chat(self, messages, **kwargs):
        self.calls.append({"messages": messages, **kwargs})
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        if self.default is None:
            raise UpstreamUnavailable("No scripted reply")
        return self.default

    def list_models(self):
        if self.error is not None:
            raise self.error
        return [self.model]


def build_docx(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        grid = doc.add_table(rows=len(table), cols=len(table[0]))
        for i, row in enumerate(table):
            for j, value in enumerate(row):
                grid.cell(i, j).text = value
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Isolation: no Langfuse traffic, fresh prompt cache per test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _offline_langfuse(monkeypatch):
    monkeypatch.delenv("LANGFUSE_PUBLIC_KEY", raising=False)
    monkeypatch.delenv("LANGFUSE_SECRET_KEY", raising=False)
    prompt_manager._langfuse.cache_clear()
    prompt_manager._fetch.cache_clear()
    yield
    prompt_manager._langfuse.cache_clear()
    prompt_manager._fetch.cache_clear()


@pytest.fixture
def store():
    return MemoryRegistrationStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def make_docx():
    return build_docx


@pytest.fixture
def register(store, gateway):
    """Register a candidate through the full pipeline and return the outcome."""

    def _register(
        registration_id: str = "REG-001",
        email: str = "ada@example.com",
        name: str = "Ada Lovelace",
        text: str = RESUME_TEXT,
    ):
        form = RegistrationForm(
            name=name,
            email=email,
            registration_id=registration_id,
            extracted_text=text,
        )
        return register_candidate(form, store=store, gateway=gateway)

    return _register


@pytest.fixture
def make_record(store):
    """Insert a bare record directly, bypassing the pipeline."""

    def _make(
        registration_id: str,
        *,
        session_token: str | None = None,
        status: RegistrationStatus = RegistrationStatus.PROCESSING,
        email: str | None = None,
    ) -> Registration:
        record = Registration(
            registration_id=registration_id,
            session_token=session_token,
            name="Test Candidate",
            email=email or f"{registration_id.lower()}@example.com",
            status=status,
            resume_data=ResumeData(extracted_text="resume text", summary="summary"),
        )
        return store.insert(record)

    return _make


@pytest.fixture
def client(store, gateway):
    from fastapi.testclient import TestClient

    from main import app, get_gateway, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_auth(monkeypatch):
    import main

    monkeypatch.setattr(main, "admin_credentials", lambda: ("admin", "s3cret"))
    return ("admin", "s3cret")
