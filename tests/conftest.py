from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Any

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="resumind-tests-"))
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_ROOT / 'test.db'}"
os.environ["DATA_DIR"] = str(_TEST_ROOT)
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["AI_API_KEY"] = "test-key"

import fitz  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from resumind.api.app import create_app  # noqa: E402
from resumind.config import get_settings  # noqa: E402
from resumind.core.context import AppContext  # noqa: E402
from resumind.core.documents import DocumentPipeline, MarkdownConverter, PreviewRasterizer  # noqa: E402
from resumind.core.job_import import JobPageFetcher  # noqa: E402
from resumind.core.latex import LatexCompiler  # noqa: E402
from resumind.db.base import Base  # noqa: E402
from resumind.db.repositories import Repository  # noqa: E402
from resumind.db.session import SessionLocal, engine  # noqa: E402
from resumind.errors import ServiceUnavailableError  # noqa: E402
from resumind.llm.client import AIClient, CompletionConfig  # noqa: E402
from resumind.llm.generator import StructuredGenerator  # noqa: E402


def completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    """Stands in for ``client.chat.completions``. Replies are consumed in order."""

    def __init__(self) -> None:
        self.replies: list[Any] = []
        self.calls: list[dict[str, Any]] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if not self.replies:
            raise AssertionError("unexpected AI call")
        reply = self.replies.pop(0)
        if callable(reply):
            reply = reply()
        if isinstance(reply, BaseException):
            raise reply
        if kwargs.get("stream"):
            return reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return completion(reply)


class FakeConverter(MarkdownConverter):
    def __init__(self) -> None:
        super().__init__("http://pdf.test")
        self.markdown = ""
        self.healthy = True
        self.error: Exception | None = None
        self.paths: list[Path] = []

    async def check_health(self) -> None:
        if not self.healthy:
            raise ServiceUnavailableError()

    async def convert(self, path: Path) -> str:
        self.paths.append(path)
        assert path.exists()
        if self.error is not None:
            raise self.error
        return self.markdown


class FakeRasterizer(PreviewRasterizer):
    def __init__(self) -> None:
        super().__init__()
        self.image: str | None = "data:image/png;base64,AAAA"
        self.error: Exception | None = None
        self.paths: list[Path] = []

    def render(self, path: Path) -> str | None:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.image


class FakeCompiler(LatexCompiler):
    def __init__(self) -> None:
        super().__init__("http://latex.test/compile", timeout_sec=1.0)
        self.pdf = b"%PDF-1.5 fake"
        self.error: Exception | None = None
        self.calls: list[str] = []

    def _compile_sync(self, latex: str) -> bytes:
        self.calls.append(latex)
        if self.error is not None:
            raise self.error
        return self.pdf


class FakeFetcher(JobPageFetcher):
    def __init__(self) -> None:
        super().__init__("", timeout_sec=1.0)
        self.text = ""
        self.urls: list[str] = []

    def _fetch_sync(self, url: str) -> str:
        self.urls.append(url)
        return self.text


def build_ai(completions: Any, timeout_sec: float = 5.0) -> AIClient:
    config = CompletionConfig(
        model="test-model",
        chat_model="test-chat-model",
        temperature=0.6,
        top_p=1.0,
        max_completion_tokens=1000,
        chat_max_completion_tokens=1000,
        timeout_sec=timeout_sec,
    )
    return AIClient(SimpleNamespace(chat=SimpleNamespace(completions=completions)), config)


def make_pdf(pages: int = 2) -> bytes:
    document = fitz.open()
    for index in range(pages):
        page = document.new_page()
        page.insert_text((72, 72), f"Ada Lovelace - Backend Engineer - page {index + 1}")
        page.insert_text((72, 96), "Built payment APIs in Python and PostgreSQL for 2M daily requests.")
    data = document.tobytes()
    document.close()
    return data


def _detailed(score: int) -> dict[str, Any]:
    return {
        "score": score,
        "tips": [
            {"type": "good", "tip": "Clear impact statements", "explanation": "Bullets lead with outcomes."},
            {"type": "improve", "tip": "Add missing metrics", "explanation": "Quantify the migration work."},
        ],
    }


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def fakes(tmp_path: Path) -> SimpleNamespace:
    settings = get_settings().model_copy(update={"upload_dir": tmp_path / "uploads"})
    completions = FakeCompletions()
    ai = build_ai(completions)
    converter = FakeConverter()
    rasterizer = FakeRasterizer()
    compiler = FakeCompiler()
    fetcher = FakeFetcher()
    context = AppContext(
        settings=settings,
        ai=ai,
        generator=StructuredGenerator(ai, long_timeout_sec=5.0),
        documents=DocumentPipeline(converter, rasterizer, settings.upload_dir),
        latex=compiler,
        jobs=fetcher,
    )
    return SimpleNamespace(
        settings=settings,
        completions=completions,
        converter=converter,
        rasterizer=rasterizer,
        compiler=compiler,
        fetcher=fetcher,
        context=context,
        upload_dir=settings.upload_dir,
    )


@pytest.fixture
def client(fakes: SimpleNamespace) -> TestClient:
    return TestClient(create_app(fakes.context))


@pytest.fixture
def make_user():
    def build(email: str = "ada@example.com") -> tuple[Any, dict[str, str]]:
        with SessionLocal() as db:
            repo = Repository(db)
            user = repo.create_user(email=email, name="Ada")
            token, _ = repo.issue_session(user.id, ttl_min=60)
        return user, {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def auth(make_user) -> tuple[Any, dict[str, str]]:
    return make_user()


@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


@pytest.fixture
def resume_markdown() -> str:
    return (
        "# Ada Lovelace\n\n## Experience\n\n"
        "- Built payment APIs in Python and PostgreSQL serving 2M requests a day\n"
        "- Led the migration of billing jobs to an event-driven pipeline\n\n"
        "## Skills\n\nPython, FastAPI, PostgreSQL, Kafka\n"
    )


@pytest.fixture
def job_description() -> str:
    return (
        "We are hiring a Backend Engineer to design and operate Python services, "
        "own PostgreSQL schemas and build reliable event pipelines."
    )


@pytest.fixture
def feedback_payload() -> dict[str, Any]:
    return {
        "overallScore": 72,
        "ATS": {"score": 80, "tips": [{"type": "good", "tip": "Standard headings"}]},
        "toneAndStyle": _detailed(70),
        "content": _detailed(65),
        "structure": _detailed(75),
        "skills": _detailed(68),
        "lineImprovements": [
            {
                "section": "Experience",
                "sectionTitle": "Acme Corp",
                "original": "Worked on APIs",
                "suggested": "Built 12 REST APIs serving 2M requests a day",
                "reason": "Shows scale with a real number",
                "priority": "high",
                "category": "quantify",
            }
        ],
        "coldOutreachMessage": "Hi, I saw the Backend Engineer opening and would love a quick chat.",
    }


@pytest.fixture
def letter_body() -> dict[str, Any]:
    return {
        "recipientName": "Hiring Manager",
        "opening": "Your payments team is rebuilding billing, and I have done exactly that.",
        "bodyParagraphs": [
            "At Acme I built payment APIs serving two million requests a day.",
            "I also led the move of billing jobs to an event-driven pipeline.",
        ],
        "closing": "I would welcome a short call this week.",
        "signature": "Sincerely",
    }


@pytest.fixture
def letter_header() -> dict[str, Any]:
    return {
        "fullName": "Ada Lovelace",
        "title": "Backend Engineer",
        "email": "ada@example.com",
        "phone": "555-0100",
        "location": "London",
    }
