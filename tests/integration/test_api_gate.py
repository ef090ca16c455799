import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from resumind.api.app import create_app
from resumind.db.models import ResumeAnalysis
from resumind.db.session import SessionLocal


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("post", "/api/analyze"),
        ("post", "/api/import-job"),
        ("post", "/api/import-job-pdf"),
        ("get", "/api/resumes"),
        ("delete", "/api/resumes/abc"),
        ("post", "/api/regenerate-cold-dm"),
        ("post", "/api/cover-letter/generate"),
        ("patch", "/api/cover-letter/abc"),
        ("post", "/api/outreach/abc/regenerate"),
        ("post", "/api/editor/compile"),
        ("post", "/api/editor/chat"),
        ("delete", "/api/user/wipe"),
    ],
)
def test_unauthenticated_calls_get_401(client, fakes, method, path) -> None:
    response = getattr(client, method)(path)
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized"}
    assert fakes.completions.calls == []


def test_invalid_token_is_401(client) -> None:
    response = client.get("/api/resumes", headers={"Authorization": "Bearer not-a-real-token"})
    assert response.status_code == 401


def test_session_cookie_is_accepted(client, auth, fakes) -> None:
    _, headers = auth
    token = headers["Authorization"].split(" ", 1)[1]
    client.cookies.set(fakes.settings.session_cookie_name, token)

    response = client.get("/api/resumes")
    assert response.status_code == 200
    assert response.json() == {"success": True, "resumes": []}


def test_quota_exceeded_returns_429_without_side_effects(client, fakes, auth, pdf_bytes, job_description) -> None:
    _, headers = auth
    for _ in range(2):
        response = client.post("/api/analyze", headers=headers, data={"jobTitle": "Backend Engineer"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields"

    fakes.converter.markdown = "# Resume\n\n" + "Built payment APIs. " * 10
    response = client.post(
        "/api/analyze",
        headers=headers,
        data={"jobTitle": "Backend Engineer", "jobDescription": job_description},
        files={"file": ("resume.pdf", pdf_bytes, "application/pdf")},
    )

    assert response.status_code == 429
    assert response.json() == {"success": False, "error": "Too many requests. Please try again later."}
    assert 1 <= int(response.headers["retry-after"]) <= 60
    assert fakes.completions.calls == []
    assert fakes.converter.paths == []
    with SessionLocal() as db:
        assert db.scalar(select(func.count()).select_from(ResumeAnalysis)) == 0


def test_quota_is_per_identity(client, make_user) -> None:
    _, first = make_user("first@example.com")
    _, second = make_user("second@example.com")
    for _ in range(2):
        client.post("/api/analyze", headers=first, data={})
    assert client.post("/api/analyze", headers=first, data={}).status_code == 429
    assert client.post("/api/analyze", headers=second, data={}).status_code == 400


def test_rate_limiting_can_be_disabled(fakes, auth) -> None:
    fakes.context.settings = fakes.settings.model_copy(update={"disable_rate_limiting": True})
    client = TestClient(create_app(fakes.context))
    _, headers = auth
    statuses = {client.post("/api/analyze", headers=headers, data={}).status_code for _ in range(4)}
    assert statuses == {400}


def test_health_endpoint_is_public(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}
