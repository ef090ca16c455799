from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from resumind.core.catalog import CoverLetterTemplate, OutreachChannelConfig, OutreachToneConfig
from resumind.core.text import hit_truncation_bound, truncate_text
from resumind.errors import AppError, ContentTooLongError, EmptyResponseError
from resumind.llm.client import AIClient, system_user
from resumind.llm.prompts import (
    COLD_DM_SYSTEM_PROMPT,
    COVER_LETTER_SECTION_SYSTEM_PROMPT,
    COVER_LETTER_SYSTEM_PROMPT,
    JOB_EXTRACTION_SYSTEM_PROMPT,
    LATEX_IMPROVE_SYSTEM_PROMPT,
    OUTREACH_SYSTEM_PROMPT,
    RESUME_CRITIQUE_SYSTEM_PROMPT,
    build_cold_dm_prompt,
    build_cover_letter_prompt,
    build_job_extraction_prompt,
    build_latex_improve_prompt,
    build_outreach_prompt,
    build_outreach_regeneration_prompt,
    build_resume_critique_prompt,
    build_section_rewrite_prompt,
)
from resumind.types import (
    CoverLetterBody,
    CoverLetterContent,
    CoverLetterSection,
    Feedback,
    JobData,
    LatexImproveRequest,
    LatexImproveResult,
    ReasoningLevel,
)
from resumind.validation import (
    validate_cover_letter_body,
    validate_cover_letter_content,
    validate_feedback,
    validate_job_data,
    validate_latex_improve_result,
    validate_outreach_email,
)

logger = logging.getLogger(__name__)

OUTREACH_MIN_LENGTH = 20
OUTREACH_MAX_LENGTH = 2000
DEFAULT_SECTION_TONE = "Professional and direct."
PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")


@dataclass(slots=True)
class OutreachDraft:
    content: str
    subject: str | None = None


class StructuredGenerator:
    """One method per generation use case.

    Each method builds its prompt pair, makes a single call through
    :class:`AIClient` and returns a validated value. Nothing here touches
    storage; callers persist the result.
    """

    def __init__(self, ai: AIClient, *, long_timeout_sec: float = 30.0):
        self.ai = ai
        self.long_timeout_sec = long_timeout_sec

    async def critique_resume(
        self,
        *,
        resume_markdown: str,
        job_title: str,
        job_description: str,
        company_name: str | None = None,
        reasoning_level: ReasoningLevel = "low",
        today: date | None = None,
    ) -> Feedback:
        resume_text = truncate_text(resume_markdown)
        if hit_truncation_bound(resume_text):
            raise ContentTooLongError("Resume too detailed. Please use a simpler format.")

        prompt = build_resume_critique_prompt(
            job_title=job_title,
            job_description=job_description,
            resume_markdown=resume_text,
            company_name=company_name,
            today=today,
        )
        data = await self.ai.request_json(
            system_user(RESUME_CRITIQUE_SYSTEM_PROMPT, prompt),
            reasoning_level=reasoning_level,
        )
        return validate_feedback(data).unwrap()

    async def extract_job_data(self, content: str) -> JobData:
        prompt = build_job_extraction_prompt(truncate_text(content))
        data = await self.ai.request_json(
            system_user(JOB_EXTRACTION_SYSTEM_PROMPT, prompt),
            timeout_sec=self.long_timeout_sec,
        )
        return validate_job_data(data).unwrap(message="Failed to extract valid job data")

    async def draft_cover_letter(
        self,
        *,
        template: CoverLetterTemplate,
        job_title: str,
        company_name: str | None = None,
        job_description: str | None = None,
        resume_markdown: str | None = None,
    ) -> CoverLetterBody:
        prompt = build_cover_letter_prompt(
            job_title=job_title,
            template_tone=template.tone,
            company_name=company_name,
            job_description=job_description,
            resume_markdown=truncate_text(resume_markdown) if resume_markdown else None,
        )
        data = await self.ai.request_json(system_user(COVER_LETTER_SYSTEM_PROMPT, prompt))
        # header and date belong to the caller; drop anything the model invents
        data.pop("header", None)
        data.pop("date", None)
        return validate_cover_letter_body(data).unwrap()

    async def rewrite_cover_letter_section(
        self,
        *,
        content: CoverLetterContent,
        section: CoverLetterSection,
        job_title: str,
        company_name: str | None = None,
        template: CoverLetterTemplate | None = None,
        feedback: str | None = None,
    ) -> CoverLetterContent:
        if section == "body":
            current_text = "\n\n".join(content.body_paragraphs)
        else:
            current_text = getattr(content, section)

        prompt = build_section_rewrite_prompt(
            section=section,
            current_text=current_text,
            job_title=job_title,
            company_name=company_name,
            tone=template.tone if template else DEFAULT_SECTION_TONE,
            feedback=feedback,
        )
        text = (
            await self.ai.request_text(system_user(COVER_LETTER_SECTION_SYSTEM_PROMPT, prompt))
        ).strip()
        if not text:
            raise EmptyResponseError()

        merged = content.model_dump(by_alias=True)
        if section == "body":
            merged["bodyParagraphs"] = [part.strip() for part in PARAGRAPH_BREAK.split(text) if part.strip()]
        else:
            merged[section] = text
        return validate_cover_letter_content(merged).unwrap()

    async def draft_outreach(
        self,
        *,
        channel: OutreachChannelConfig,
        tone: OutreachToneConfig,
        job_title: str,
        company_name: str | None = None,
        recipient_name: str | None = None,
        job_description: str | None = None,
        resume_markdown: str | None = None,
        additional_context: str | None = None,
    ) -> OutreachDraft:
        prompt = build_outreach_prompt(
            channel=channel,
            tone=tone,
            job_title=job_title,
            company_name=company_name,
            recipient_name=recipient_name,
            job_description=job_description,
            resume_markdown=resume_markdown,
            additional_context=additional_context,
        )
        return await self._complete_outreach(channel, prompt)

    async def regenerate_outreach(
        self,
        *,
        channel: OutreachChannelConfig,
        tone: OutreachToneConfig,
        current_content: str,
        user_feedback: str,
        job_title: str,
        current_subject: str | None = None,
        company_name: str | None = None,
        recipient_name: str | None = None,
        job_description: str | None = None,
        resume_markdown: str | None = None,
    ) -> OutreachDraft:
        prompt = build_outreach_regeneration_prompt(
            channel=channel,
            tone=tone,
            current_content=current_content,
            current_subject=current_subject,
            user_feedback=user_feedback,
            job_title=job_title,
            company_name=company_name,
            recipient_name=recipient_name,
            job_description=job_description,
            resume_markdown=resume_markdown,
        )
        return await self._complete_outreach(channel, prompt, fallback_subject=current_subject)

    async def regenerate_cold_dm(
        self,
        *,
        resume_markdown: str,
        job_title: str,
        job_description: str,
        current_message: str,
        user_feedback: str,
        company_name: str | None = None,
    ) -> str:
        prompt = build_cold_dm_prompt(
            resume_markdown=resume_markdown,
            job_title=job_title,
            job_description=job_description,
            current_message=current_message,
            user_feedback=user_feedback,
            company_name=company_name,
        )
        text = (await self.ai.request_text(system_user(COLD_DM_SYSTEM_PROMPT, prompt))).strip()
        if not text:
            raise EmptyResponseError()
        return text

    async def improve_latex(self, request: LatexImproveRequest) -> LatexImproveResult:
        prompt = build_latex_improve_prompt(
            latex_code=request.latex_code,
            improvements=request.line_improvements,
            job_title=request.job_title,
            company_name=request.company_name,
        )
        data = await self.ai.request_json(
            system_user(LATEX_IMPROVE_SYSTEM_PROMPT, prompt),
            timeout_sec=self.long_timeout_sec,
        )
        return validate_latex_improve_result(data).unwrap()

    async def _complete_outreach(
        self,
        channel: OutreachChannelConfig,
        prompt: str,
        *,
        fallback_subject: str | None = None,
    ) -> OutreachDraft:
        messages = system_user(OUTREACH_SYSTEM_PROMPT, prompt)
        if channel.is_email:
            data = await self.ai.request_json(messages)
            if fallback_subject and not str(data.get("subject") or "").strip():
                data["subject"] = fallback_subject
            email = validate_outreach_email(data).unwrap()
            return OutreachDraft(content=email.body.strip(), subject=email.subject.strip())

        text = (await self.ai.request_text(messages)).strip()
        if not OUTREACH_MIN_LENGTH <= len(text) <= OUTREACH_MAX_LENGTH:
            logger.warning("Outreach text out of range channel=%s length=%d", channel.id, len(text))
            raise AppError("AI response out of expected range")
        return OutreachDraft(content=text)
