from __future__ import annotations

from typing import Any

from pydantic import Field

from resumind.db.base import iso_timestamp
from resumind.db.models import CoverLetter, Outreach, ResumeAnalysis
from resumind.types import CamelModel


class ImportJobBody(CamelModel):
    url: str = Field(min_length=1)


class CoverLetterGenerateBody(CamelModel):
    template_id: str = Field(min_length=1)
    job_title: str = Field(min_length=1, max_length=300)
    header: dict[str, Any]
    company_name: str | None = None
    job_description: str | None = None
    resume_id: str | None = None


class CoverLetterPatchBody(CamelModel):
    content: dict[str, Any]
    updated_at: str = Field(min_length=1)


class SectionRegenerateBody(CamelModel):
    section: str = ""
    feedback: str | None = Field(default=None, max_length=500)


class CompileBody(CamelModel):
    latex: str = Field(min_length=1)


def resume_summary(row: ResumeAnalysis) -> dict[str, Any]:
    return {
        "id": row.id,
        "jobTitle": row.job_title,
        "companyName": row.company_name,
        "overallScore": (row.feedback or {}).get("overallScore"),
        "hasPreview": row.preview_image is not None,
        "createdAt": iso_timestamp(row.created_at),
    }


def resume_detail(row: ResumeAnalysis) -> dict[str, Any]:
    return {
        "id": row.id,
        "jobTitle": row.job_title,
        "jobDescription": row.job_description,
        "companyName": row.company_name,
        "resumeMarkdown": row.resume_markdown,
        "feedback": row.feedback,
        "latexContent": row.latex_content,
        "createdAt": iso_timestamp(row.created_at),
        "updatedAt": iso_timestamp(row.updated_at),
    }


def cover_letter_detail(row: CoverLetter) -> dict[str, Any]:
    return {
        "id": row.id,
        "templateId": row.template_id,
        "jobTitle": row.job_title,
        "companyName": row.company_name,
        "jobDescription": row.job_description,
        "resumeId": row.resume_id,
        "content": row.content,
        "createdAt": iso_timestamp(row.created_at),
        "updatedAt": iso_timestamp(row.updated_at),
    }


def outreach_detail(row: Outreach) -> dict[str, Any]:
    return {
        "id": row.id,
        "channel": row.channel,
        "tone": row.tone,
        "jobTitle": row.job_title,
        "companyName": row.company_name,
        "recipientName": row.recipient_name,
        "subject": row.subject,
        "content": row.content,
        "createdAt": iso_timestamp(row.created_at),
        "updatedAt": iso_timestamp(row.updated_at),
    }
