from __future__ import annotations

import asyncio
import base64
import logging
import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import fitz
import requests

from resumind.config import Settings
from resumind.core.deadline import race_deadline
from resumind.core.text import MIN_TEXT_LENGTH, truncate_text
from resumind.errors import (
    ContentTooShortError,
    ExternalServiceError,
    InputValidationError,
    RequestTimeoutError,
    ServiceUnavailableError,
)

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
RESUME_MAX_BYTES = 20 * 1024 * 1024
JOB_PDF_MAX_BYTES = 10 * 1024 * 1024
PREVIEW_MAX_CHARS = 5_000_000


@dataclass(slots=True)
class DocumentResult:
    markdown: str
    preview_image: str | None = None


def check_pdf_upload(content_type: str | None, size: int, max_bytes: int) -> None:
    if content_type != PDF_MIME_TYPE:
        raise InputValidationError("Only PDF files are supported")
    if size <= 0:
        raise InputValidationError("PDF file is required")
    if size > max_bytes:
        raise InputValidationError(f"File size must be under {max_bytes // (1024 * 1024)} MB")


def temp_upload_path(upload_dir: Path, prefix: str, owner_id: str) -> Path:
    return upload_dir / f"{prefix}-{owner_id}-{secrets.token_hex(16)}.pdf"


@contextmanager
def temporary_upload(upload_dir: Path, prefix: str, owner_id: str, data: bytes) -> Iterator[Path]:
    """Write ``data`` to a uniquely named file and remove it on exit."""
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = temp_upload_path(upload_dir, prefix, owner_id)
    try:
        path.write_bytes(data)
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to remove temp upload %s: %s", path, exc)


class MarkdownConverter:
    """Client for the PDF-to-markdown conversion service."""

    def __init__(
        self,
        base_url: str,
        *,
        health_timeout_sec: float = 2.0,
        convert_timeout_sec: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.health_timeout_sec = health_timeout_sec
        self.convert_timeout_sec = convert_timeout_sec

    async def check_health(self) -> None:
        try:
            await asyncio.to_thread(
                requests.get,
                f"{self.base_url}/health",
                timeout=self.health_timeout_sec,
            )
        except requests.RequestException as exc:
            logger.warning("PDF service health check failed: %s", exc)
            raise ServiceUnavailableError() from exc

    async def convert(self, path: Path) -> str:
        return await race_deadline(
            asyncio.to_thread(self._convert_sync, path.read_bytes()),
            self.convert_timeout_sec,
            lambda: RequestTimeoutError("PDF parsing timed out. Please try again."),
        )

    def _convert_sync(self, data: bytes) -> str:
        try:
            response = requests.post(
                f"{self.base_url}/convert",
                files={"file": ("document.pdf", data, PDF_MIME_TYPE)},
                timeout=self.convert_timeout_sec,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("PDF conversion failed: %s", exc)
            raise ExternalServiceError("PDF conversion failed") from exc

        markdown = payload.get("markdown") if isinstance(payload, dict) else None
        return markdown if isinstance(markdown, str) else ""


class PreviewRasterizer:
    """Renders the first page of a PDF as a PNG data URL."""

    def __init__(self, *, scale: float = 2.0, max_chars: int = PREVIEW_MAX_CHARS):
        self.scale = scale
        self.max_chars = max_chars

    def render(self, path: Path) -> str | None:
        with fitz.open(path) as document:
            if document.page_count == 0:
                return None
            pixmap = document[0].get_pixmap(matrix=fitz.Matrix(self.scale, self.scale))
            image_bytes = pixmap.tobytes("png")

        data_url = "data:image/png;base64," + base64.b64encode(image_bytes).decode("ascii")
        if len(data_url) > self.max_chars:
            logger.info("Preview discarded: %d chars exceeds %d", len(data_url), self.max_chars)
            return None
        return data_url

    async def try_render(self, path: Path) -> str | None:
        try:
            return await asyncio.to_thread(self.render, path)
        except Exception as exc:
            logger.warning("Preview generation failed: %s", exc)
            return None


class DocumentPipeline:
    def __init__(self, converter: MarkdownConverter, rasterizer: PreviewRasterizer, upload_dir: Path):
        self.converter = converter
        self.rasterizer = rasterizer
        self.upload_dir = Path(upload_dir)

    @classmethod
    def from_settings(cls, settings: Settings) -> DocumentPipeline:
        return cls(
            MarkdownConverter(
                settings.pdf_service_url,
                health_timeout_sec=settings.pdf_health_timeout_sec,
                convert_timeout_sec=settings.pdf_convert_timeout_sec,
            ),
            PreviewRasterizer(scale=settings.preview_scale),
            settings.upload_dir,
        )

    async def process_resume(self, *, owner_id: str, content_type: str | None, data: bytes) -> DocumentResult:
        check_pdf_upload(content_type, len(data), RESUME_MAX_BYTES)
        await self.converter.check_health()

        with temporary_upload(self.upload_dir, "resume", owner_id, data) as path:
            # both calls settle before the temp file is removed
            markdown, preview = await asyncio.gather(
                self.converter.convert(path),
                self.rasterizer.try_render(path),
                return_exceptions=True,
            )

        if isinstance(markdown, BaseException):
            raise markdown
        if isinstance(preview, BaseException):
            preview = None

        text = truncate_text(markdown)
        if len(text.strip()) < MIN_TEXT_LENGTH:
            raise ContentTooShortError(
                "PDF contains too little text. Please upload a text-based resume, not a scanned image."
            )
        return DocumentResult(markdown=text, preview_image=preview)

    async def extract_job_text(self, *, owner_id: str, content_type: str | None, data: bytes) -> str:
        check_pdf_upload(content_type, len(data), JOB_PDF_MAX_BYTES)
        await self.converter.check_health()

        with temporary_upload(self.upload_dir, "job-description", owner_id, data) as path:
            markdown = await self.converter.convert(path)

        text = truncate_text(markdown)
        if len(text.strip()) < MIN_TEXT_LENGTH:
            raise ContentTooShortError(
                "PDF contains too little text. Please use a more detailed job description."
            )
        return text
