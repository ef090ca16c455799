from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from resumind.api.deps import get_context, get_db, parse_body, rate_limited, read_json_object, require_user
from resumind.api.schemas import (
    CoverLetterGenerateBody,
    CoverLetterPatchBody,
    SectionRegenerateBody,
    cover_letter_detail,
)
from resumind.core.catalog import get_template_by_id, get_template_or_default, get_templates_by_category
from resumind.core.context import AppContext
from resumind.db.base import iso_timestamp
from resumind.db.models import User
from resumind.db.repositories import Repository, merge_cover_letter_patch
from resumind.errors import ConflictError, InputValidationError, NotFoundError, handle_api_error
from resumind.llm.prompts import format_letter_date
from resumind.types import CoverLetterHeader
from resumind.validation import validate_cover_letter_content, validate_shape

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cover-letter", tags=["cover-letter"])

SECTIONS = ("opening", "body", "closing")


@router.get("/templates")
def list_templates(category: str = "all") -> dict:
    templates = get_templates_by_category(category)
    return {"success": True, "templates": [template.to_wire() for template in templates]}


@router.get("")
def list_cover_letters(user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    rows = Repository(db).list_cover_letters(user.id)
    return {"success": True, "coverLetters": [cover_letter_detail(row) for row in rows]}


@router.get("/{letter_id}")
def get_cover_letter(letter_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    row = Repository(db).get_cover_letter(letter_id, user.id)
    if row is None:
        raise NotFoundError("Cover letter not found")
    return {"success": True, "coverLetter": cover_letter_detail(row)}


@router.post("/generate")
async def generate_cover_letter(
    request: Request,
    user: User = Depends(rate_limited("cover-letter/generate")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = parse_body(CoverLetterGenerateBody, await read_json_object(request), "Missing required fields")
        template = get_template_by_id(body.template_id)
        if template is None:
            raise InputValidationError("Unknown template")
        header = validate_shape(CoverLetterHeader, body.header, shape="cover_letter_header").unwrap(
            message="Invalid header",
            status_code=400,
        )

        repo = Repository(db)
        resume_markdown = None
        if body.resume_id:
            resume = repo.get_resume_analysis(body.resume_id, user.id)
            resume_markdown = resume.resume_markdown if resume else None

        letter_body = await context.generator.draft_cover_letter(
            template=template,
            job_title=body.job_title,
            company_name=body.company_name,
            job_description=body.job_description,
            resume_markdown=resume_markdown,
        )
        content = validate_cover_letter_content(
            {
                "header": header.model_dump(by_alias=True),
                "date": format_letter_date(date.today()),
                **letter_body.model_dump(by_alias=True),
            }
        ).unwrap(message="Generated content failed validation")

        row = repo.create_cover_letter(
            user_id=user.id,
            template_id=template.id,
            job_title=body.job_title,
            company_name=body.company_name,
            job_description=body.job_description,
            content=content.to_wire(),
            resume_id=body.resume_id,
        )
        return JSONResponse({"success": True, "id": row.id, "content": row.content})
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to generate cover letter")


@router.post("/{letter_id}/regenerate")
async def regenerate_section(
    letter_id: str,
    request: Request,
    user: User = Depends(rate_limited("cover-letter/regenerate")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = parse_body(SectionRegenerateBody, await read_json_object(request))
        if body.section not in SECTIONS:
            raise InputValidationError("Invalid section")

        repo = Repository(db)
        row = repo.get_cover_letter(letter_id, user.id)
        if row is None:
            raise NotFoundError("Cover letter not found")
        current = validate_cover_letter_content(row.content).unwrap(message="Stored content is invalid")

        updated = await context.generator.rewrite_cover_letter_section(
            content=current,
            section=body.section,
            job_title=row.job_title,
            company_name=row.company_name,
            template=get_template_or_default(row.template_id),
            feedback=body.feedback,
        )
        # read-modify-write without a version check: a concurrent PATCH may be overwritten
        row = repo.replace_cover_letter_content(row, updated.to_wire())
        return JSONResponse(
            {"success": True, "content": row.content, "updatedAt": iso_timestamp(row.updated_at)}
        )
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to regenerate section")


@router.patch("/{letter_id}")
async def update_cover_letter(
    letter_id: str,
    request: Request,
    user: User = Depends(rate_limited("cover-letter/update")),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        body = parse_body(CoverLetterPatchBody, await read_json_object(request), "Missing content or updatedAt")

        repo = Repository(db)
        row = repo.get_cover_letter(letter_id, user.id)
        if row is None:
            raise NotFoundError("Cover letter not found")
        observed = row.updated_at
        if iso_timestamp(observed) != body.updated_at:
            raise ConflictError()

        validate_cover_letter_content(row.content).unwrap(message="Stored content is invalid")
        merged = validate_cover_letter_content(merge_cover_letter_patch(row.content, body.content)).unwrap(
            message="Invalid content",
            status_code=400,
        )

        new_updated_at = repo.update_cover_letter_content_if_unchanged(
            letter_id=letter_id,
            user_id=user.id,
            content=merged.to_wire(),
            expected_updated_at=observed,
        )
        if new_updated_at is None:
            raise ConflictError()
        return JSONResponse({"success": True, "updatedAt": iso_timestamp(new_updated_at)})
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to update cover letter")


@router.delete("/{letter_id}")
def delete_cover_letter(
    letter_id: str,
    user: User = Depends(rate_limited("cover-letter/delete")),
    db: Session = Depends(get_db),
) -> dict:
    if not Repository(db).delete_cover_letter(letter_id, user.id):
        raise NotFoundError("Cover letter not found")
    return {"success": True}
