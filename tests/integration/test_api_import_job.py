JOB = {
    "companyName": "Acme",
    "jobTitle": "Backend Engineer",
    "jobDescription": "Design and operate Python services, own PostgreSQL schemas and event pipelines.",
}
POSTING = "Acme is hiring a Backend Engineer.\n\n" + "You will design and operate Python services. " * 5


def test_import_job_from_url(client, fakes, auth) -> None:
    _, headers = auth
    fakes.fetcher.text = POSTING
    fakes.completions.queue(JOB)

    response = client.post("/api/import-job", headers=headers, json={"url": "https://jobs.example.com/42"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": JOB}
    assert fakes.fetcher.urls == ["https://jobs.example.com/42"]
    assert POSTING.strip() in fakes.completions.calls[0]["messages"][1]["content"]


def test_import_job_requires_url(client, fakes, auth) -> None:
    _, headers = auth
    response = client.post("/api/import-job", headers=headers, json={})
    assert response.status_code == 400
    assert response.json()["error"] == "URL is required"


def test_import_job_rejects_plain_http(client, fakes, auth) -> None:
    _, headers = auth
    response = client.post("/api/import-job", headers=headers, json={"url": "http://jobs.example.com/42"})
    assert response.status_code == 400
    assert response.json()["error"] == "Only HTTPS URLs are supported"
    assert fakes.fetcher.urls == []


def test_import_job_bad_extraction_is_500(client, fakes, auth) -> None:
    _, headers = auth
    fakes.fetcher.text = POSTING
    fakes.completions.queue({**JOB, "jobDescription": "too short"})

    response = client.post("/api/import-job", headers=headers, json={"url": "https://jobs.example.com/42"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to extract valid job data"


def test_import_job_pdf(client, fakes, auth, pdf_bytes) -> None:
    _, headers = auth
    fakes.converter.markdown = POSTING
    fakes.completions.queue(JOB)

    response = client.post(
        "/api/import-job-pdf",
        headers=headers,
        files={"file": ("job.pdf", pdf_bytes, "application/pdf")},
    )

    assert response.status_code == 200
    assert response.json()["data"]["jobTitle"] == "Backend Engineer"
    assert fakes.rasterizer.paths == []
    assert list(fakes.upload_dir.iterdir()) == []


def test_import_job_pdf_with_too_little_text(client, fakes, auth, pdf_bytes) -> None:
    _, headers = auth
    fakes.converter.markdown = "Engineer"

    response = client.post(
        "/api/import-job-pdf",
        headers=headers,
        files={"file": ("job.pdf", pdf_bytes, "application/pdf")},
    )

    assert response.status_code == 400
    assert "too little text" in response.json()["error"]
    assert fakes.completions.calls == []


def test_import_job_pdf_requires_file(client, auth) -> None:
    _, headers = auth
    response = client.post("/api/import-job-pdf", headers=headers, data={"note": "no file"})
    assert response.status_code == 400
    assert response.json()["error"] == "PDF file is required"


def test_import_job_shares_quota_across_sources(client, fakes, auth) -> None:
    _, headers = auth
    for _ in range(5):
        client.post("/api/import-job", headers=headers, json={})
    response = client.post("/api/import-job-pdf", headers=headers, data={})
    assert response.status_code == 429
