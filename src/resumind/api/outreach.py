from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from resumind.api.deps import get_context, get_db, parse_body, rate_limited, read_json_object, require_user
from resumind.api.schemas import outreach_detail
from resumind.core.catalog import get_channel, get_tone
from resumind.core.context import AppContext
from resumind.db.models import User
from resumind.db.repositories import Repository
from resumind.errors import AppError, InputValidationError, NotFoundError, handle_api_error
from resumind.types import OutreachContext, OutreachGenerateRequest
from resumind.validation import validate_outreach_feedback

router = APIRouter(prefix="/api/outreach", tags=["outreach"])


@router.get("")
def list_outreach(user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    rows = Repository(db).list_outreach(user.id)
    return {"success": True, "outreach": [outreach_detail(row) for row in rows]}


@router.get("/{outreach_id}")
def get_outreach(outreach_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    row = Repository(db).get_outreach(outreach_id, user.id)
    if row is None:
        raise NotFoundError("Outreach message not found")
    return {"success": True, "outreach": outreach_detail(row)}


@router.post("/generate")
async def generate_outreach(
    request: Request,
    user: User = Depends(rate_limited("outreach/generate")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = parse_body(OutreachGenerateRequest, await read_json_object(request))
        channel = get_channel(body.channel)
        tone = get_tone(body.tone)
        if channel is None or tone is None:
            raise InputValidationError("Invalid channel or tone")

        repo = Repository(db)
        resume_markdown = None
        if body.resume_id:
            resume = repo.get_resume_analysis(body.resume_id, user.id)
            resume_markdown = resume.resume_markdown if resume else None

        draft = await context.generator.draft_outreach(
            channel=channel,
            tone=tone,
            job_title=body.job_title,
            company_name=body.company_name,
            recipient_name=body.recipient_name,
            job_description=body.job_description,
            resume_markdown=resume_markdown,
            additional_context=body.additional_context,
        )
        snapshot = OutreachContext(
            channel=body.channel,
            tone=body.tone,
            job_description=body.job_description,
            additional_context=body.additional_context,
            resume_markdown=resume_markdown,
        )
        row = repo.create_outreach(
            user_id=user.id,
            channel=channel.id,
            tone=tone.id,
            job_title=body.job_title,
            company_name=body.company_name,
            recipient_name=body.recipient_name,
            subject=draft.subject,
            content=draft.content,
            context=snapshot.to_wire(),
            resume_id=body.resume_id,
        )
        return JSONResponse({"success": True, "id": row.id})
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to generate outreach message")


@router.post("/{outreach_id}/regenerate")
async def regenerate_outreach(
    outreach_id: str,
    request: Request,
    user: User = Depends(rate_limited("outreach/regenerate")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        feedback = validate_outreach_feedback(await read_json_object(request)).unwrap(
            message="Feedback must be 10-500 characters",
            status_code=400,
        )

        repo = Repository(db)
        row = repo.get_outreach(outreach_id, user.id)
        if row is None:
            raise NotFoundError("Outreach message not found")
        channel = get_channel(row.channel)
        tone = get_tone(row.tone)
        if channel is None or tone is None:
            raise AppError("Invalid channel or tone configuration")

        snapshot = OutreachContext.model_validate({"channel": row.channel, "tone": row.tone, **(row.context or {})})
        draft = await context.generator.regenerate_outreach(
            channel=channel,
            tone=tone,
            current_content=row.content,
            current_subject=row.subject,
            user_feedback=feedback.user_feedback,
            job_title=row.job_title,
            company_name=row.company_name,
            recipient_name=row.recipient_name,
            job_description=snapshot.job_description,
            resume_markdown=snapshot.resume_markdown,
        )
        # no version check: last write wins against concurrent edits
        row = repo.update_outreach_message(row, content=draft.content, subject=draft.subject)
        payload = {"success": True, "content": row.content}
        if row.subject:
            payload["subject"] = row.subject
        return JSONResponse(payload)
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to regenerate outreach message")


@router.delete("/{outreach_id}")
def delete_outreach(
    outreach_id: str,
    user: User = Depends(rate_limited("outreach/delete")),
    db: Session = Depends(get_db),
) -> dict:
    if not Repository(db).delete_outreach(outreach_id, user.id):
        raise NotFoundError("Outreach message not found")
    return {"success": True}
