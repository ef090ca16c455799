from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from resumind.api.deps import get_context, get_db, parse_body, rate_limited, read_json_object, require_user
from resumind.api.schemas import CompileBody, ImportJobBody, resume_detail, resume_summary
from resumind.core.context import AppContext
from resumind.core.latex import validate_latex
from resumind.db.models import User
from resumind.db.repositories import Repository
from resumind.errors import InputValidationError, NotFoundError, handle_api_error
from resumind.llm.prompts import UPDATE_RESUME_TOOL, build_editor_system_message
from resumind.types import ColdDMRegenerateRequest, EditorChatRequest
from resumind.validation import validate_feedback, validate_latex_improve_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

REASONING_LEVELS = {"low", "medium", "high"}


def _form_text(form: Any, name: str) -> str | None:
    value = form.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


async def _read_upload(request: Request, missing_message: str) -> tuple[Any, UploadFile]:
    try:
        form = await request.form()
    except Exception as exc:
        raise InputValidationError() from exc
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise InputValidationError(missing_message)
    return form, upload


@router.post("/analyze")
async def analyze_resume(
    request: Request,
    user: User = Depends(rate_limited("analyze")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        form, upload = await _read_upload(request, "Missing required fields")
        job_title = _form_text(form, "jobTitle")
        job_description = _form_text(form, "jobDescription")
        if not job_title or not job_description:
            raise InputValidationError("Missing required fields")
        company_name = _form_text(form, "companyName")
        reasoning_level = _form_text(form, "reasoningLevel") or "low"
        if reasoning_level not in REASONING_LEVELS:
            reasoning_level = "low"

        document = await context.documents.process_resume(
            owner_id=user.id,
            content_type=upload.content_type,
            data=await upload.read(),
        )
        feedback = await context.generator.critique_resume(
            resume_markdown=document.markdown,
            job_title=job_title,
            job_description=job_description,
            company_name=company_name,
            reasoning_level=reasoning_level,
        )
        payload = feedback.to_wire()
        row = Repository(db).create_resume_analysis(
            user_id=user.id,
            job_title=job_title,
            job_description=job_description,
            company_name=company_name,
            resume_markdown=document.markdown,
            feedback=payload,
            preview_image=document.preview_image,
        )
        return JSONResponse({"success": True, "resumeId": row.id, "feedback": payload})
    except Exception as exc:
        return handle_api_error(
            exc,
            external_service_message="PDF service unavailable. Please try again later.",
            default_message="Failed to analyze resume",
        )


@router.post("/import-job")
async def import_job(
    request: Request,
    user: User = Depends(rate_limited("import-job")),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = parse_body(ImportJobBody, await read_json_object(request), "URL is required")
        content = await context.jobs.fetch(body.url)
        job = await context.generator.extract_job_data(content)
        return JSONResponse({"success": True, "data": job.to_wire()})
    except Exception as exc:
        return handle_api_error(
            exc,
            external_service_message="Failed to fetch job posting. Please check the URL.",
            default_message="Failed to process job posting",
        )


@router.post("/import-job-pdf")
async def import_job_pdf(
    request: Request,
    user: User = Depends(rate_limited("import-job")),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        _, upload = await _read_upload(request, "PDF file is required")
        content = await context.documents.extract_job_text(
            owner_id=user.id,
            content_type=upload.content_type,
            data=await upload.read(),
        )
        job = await context.generator.extract_job_data(content)
        return JSONResponse({"success": True, "data": job.to_wire()})
    except Exception as exc:
        return handle_api_error(
            exc,
            external_service_message="PDF service unavailable. Please try again later.",
            default_message="Failed to process job description PDF",
        )


@router.get("/resumes")
def list_resumes(user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    rows = Repository(db).list_resume_analyses(user.id)
    return {"success": True, "resumes": [resume_summary(row) for row in rows]}


@router.get("/resumes/{resume_id}")
def get_resume(resume_id: str, user: User = Depends(require_user), db: Session = Depends(get_db)) -> dict:
    row = Repository(db).get_resume_analysis(resume_id, user.id)
    if row is None:
        raise NotFoundError("Resume not found")
    return {"success": True, "resume": resume_detail(row)}


@router.get("/resumes/{resume_id}/preview")
def get_resume_preview(
    resume_id: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> JSONResponse:
    row = Repository(db).get_resume_analysis(resume_id, user.id)
    if row is None:
        raise NotFoundError("Resume not found")
    if not row.preview_image:
        raise NotFoundError("Preview not available")
    return JSONResponse(
        {"success": True, "previewImage": row.preview_image},
        headers={"Cache-Control": "private, max-age=86400"},
    )


@router.delete("/resumes/{resume_id}")
def delete_resume(
    resume_id: str,
    user: User = Depends(rate_limited("resumes/delete")),
    db: Session = Depends(get_db),
) -> dict:
    if not Repository(db).delete_resume_analysis(resume_id, user.id):
        raise NotFoundError("Resume not found")
    return {"success": True}


@router.post("/regenerate-cold-dm")
async def regenerate_cold_dm(
    request: Request,
    user: User = Depends(rate_limited("regenerate-cold-dm")),
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = parse_body(ColdDMRegenerateRequest, await read_json_object(request))
        repo = Repository(db)
        row = repo.get_resume_analysis(body.resume_id, user.id)
        if row is None:
            raise NotFoundError("Resume not found")
        if not row.resume_markdown:
            raise InputValidationError("Resume markdown not available for regeneration")

        feedback = validate_feedback(row.feedback).unwrap(message="Stored feedback is invalid")
        if not feedback.cold_outreach_message:
            raise InputValidationError("No cold DM exists to regenerate")

        message = await context.generator.regenerate_cold_dm(
            resume_markdown=row.resume_markdown,
            job_title=row.job_title,
            job_description=row.job_description,
            current_message=feedback.cold_outreach_message,
            user_feedback=body.user_feedback,
            company_name=row.company_name,
        )
        updated = feedback.model_copy(update={"cold_outreach_message": message})
        repo.replace_resume_feedback(row, updated.to_wire())
        return JSONResponse({"success": True, "coldOutreachMessage": message})
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to regenerate cold DM")


@router.post("/latex/improve")
async def improve_latex(
    request: Request,
    user: User = Depends(rate_limited("latex/improve")),
    context: AppContext = Depends(get_context),
) -> JSONResponse:
    try:
        body = validate_latex_improve_request(await read_json_object(request)).unwrap(
            message="Invalid request",
            status_code=400,
        )
        result = await context.generator.improve_latex(body)
        return JSONResponse({"success": True, **result.to_wire()})
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to improve LaTeX")


@router.post("/editor/compile", response_model=None)
async def compile_latex(
    request: Request,
    user: User = Depends(rate_limited("editor/compile")),
    context: AppContext = Depends(get_context),
) -> Response:
    try:
        body = parse_body(CompileBody, await read_json_object(request), "LaTeX content required")
        pdf = await context.latex.compile(body.latex)
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to compile LaTeX document")
    return Response(pdf, media_type="application/pdf", headers={"Cache-Control": "no-cache"})


def _sse(payload: Any) -> str:
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


def tool_call_event(name: str, arguments: str) -> dict[str, Any]:
    trimmed = arguments.strip()
    if not trimmed.startswith("{") or not trimmed.endswith("}"):
        return {"error": "AI returned incomplete response. Please try again."}
    try:
        args = json.loads(trimmed)
    except json.JSONDecodeError:
        return {"error": "Failed to parse AI response. Please try again."}

    latex = args.get("latex") or ""
    try:
        validate_latex(latex)
    except InputValidationError as exc:
        return {"error": f"AI returned invalid LaTeX document: {exc.message}"}
    return {"tool_call": {"name": name, "latex": latex, "explanation": args.get("explanation")}}


async def chat_event_stream(stream: AsyncIterator[Any]) -> AsyncIterator[str]:
    tool_name = ""
    tool_args = ""
    try:
        async for chunk in stream:
            choices = getattr(chunk, "choices", None) or []
            delta = getattr(choices[0], "delta", None) if choices else None
            if delta is None:
                continue
            if getattr(delta, "content", None):
                yield _sse({"content": delta.content})
            for call in getattr(delta, "tool_calls", None) or []:
                function = getattr(call, "function", None)
                if function is None:
                    continue
                if function.name:
                    tool_name = function.name
                if function.arguments:
                    tool_args += function.arguments

        if tool_name == "update_resume":
            event = tool_call_event(tool_name, tool_args)
            yield _sse(event)
            explanation = event.get("tool_call", {}).get("explanation")
            if explanation:
                yield _sse({"content": explanation})
    except Exception as exc:
        logger.error("Editor chat stream failed: %s", exc)
        yield _sse({"error": "Stream error occurred"})
    yield _sse("[DONE]")


@router.post("/editor/chat", response_model=None)
async def editor_chat(
    request: Request,
    user: User = Depends(rate_limited("editor/chat")),
    context: AppContext = Depends(get_context),
) -> Response:
    try:
        body = parse_body(EditorChatRequest, await read_json_object(request))
        messages = [{"role": "system", "content": build_editor_system_message(body.current_latex)}]
        messages.extend({"role": item.role, "content": item.content} for item in body.messages)
        stream = await context.ai.stream_chat(messages, tools=[UPDATE_RESUME_TOOL])
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to process chat request")

    return StreamingResponse(
        chat_event_stream(stream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.delete("/user/wipe")
def wipe_user_data(
    user: User = Depends(rate_limited("user/wipe")),
    db: Session = Depends(get_db),
) -> JSONResponse:
    try:
        counts = Repository(db).wipe_user_data(user.id)
    except Exception as exc:
        return handle_api_error(exc, default_message="Failed to delete data")
    logger.info("Wiped user data user=%s counts=%s", user.id, counts)
    return JSONResponse({"success": True, "deleted": counts})
