from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

ReasoningLevel = Literal["low", "medium", "high"]
TipType = Literal["good", "improve"]
Priority = Literal["high", "medium", "low"]
ImprovementCategory = Literal["quantify", "action-verb", "keyword", "clarity", "ats"]
ResumeSection = Literal["summary", "experience", "education", "skills", "other"]
CoverLetterSection = Literal["opening", "body", "closing"]
OutreachChannel = Literal["linkedin-dm", "cold-email", "networking", "follow-up"]
OutreachTone = Literal["bold", "warm", "professional", "curious"]
# whole-number scores stay ints on the wire
OverallScore = Annotated[int, Field(ge=0, le=100)] | Annotated[float, Field(ge=0, le=100)]

KNOWN_SECTIONS = {"summary", "experience", "education", "skills"}


class CamelModel(BaseModel):
    """Wire format is camelCase; attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class JobData(CamelModel):
    company_name: str = Field(min_length=1, max_length=200)
    job_title: str = Field(min_length=1, max_length=300)
    job_description: str = Field(min_length=50, max_length=50000)


class ATSTip(CamelModel):
    type: TipType
    tip: str = Field(min_length=1)


class DetailedTip(CamelModel):
    type: TipType
    tip: str = Field(min_length=1)
    explanation: str = Field(min_length=1)


class ATSSection(CamelModel):
    score: int = Field(ge=0, le=100)
    tips: list[ATSTip] = Field(min_length=1)


class DetailedSection(CamelModel):
    score: int = Field(ge=0, le=100)
    tips: list[DetailedTip] = Field(min_length=1)


class LineImprovement(CamelModel):
    section: ResumeSection
    section_title: str
    original: str
    suggested: str
    reason: str
    priority: Priority
    category: ImprovementCategory

    @field_validator("section", mode="before")
    @classmethod
    def bucket_section(cls, value: Any) -> str:
        if not isinstance(value, str):
            return "other"
        normalized = value.strip().lower()
        return normalized if normalized in KNOWN_SECTIONS else "other"


class Feedback(CamelModel):
    overall_score: OverallScore
    ats: ATSSection = Field(alias="ATS")
    tone_and_style: DetailedSection
    content: DetailedSection
    structure: DetailedSection
    skills: DetailedSection
    line_improvements: list[LineImprovement] = Field(default_factory=list)
    cold_outreach_message: str | None = None


class CoverLetterHeader(CamelModel):
    full_name: str = Field(min_length=1, max_length=200)
    title: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=320)
    phone: str = Field(default="", max_length=50)
    location: str = Field(default="", max_length=200)
    linkedin: str | None = Field(default=None, max_length=500)


class CoverLetterBody(CamelModel):
    """The part of a cover letter the model writes."""

    recipient_name: str = Field(default="", max_length=200)
    opening: str = Field(min_length=1)
    body_paragraphs: list[str] = Field(min_length=1)
    closing: str = Field(min_length=1)
    signature: str = Field(min_length=1)

    @field_validator("body_paragraphs")
    @classmethod
    def drop_blank_paragraphs(cls, value: list[str]) -> list[str]:
        paragraphs = [item.strip() for item in value if item and item.strip()]
        if not paragraphs:
            raise ValueError("bodyParagraphs must contain text")
        return paragraphs


class CoverLetterContent(CoverLetterBody):
    header: CoverLetterHeader
    date: str = Field(min_length=1)


class OutreachEmail(CamelModel):
    subject: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1)


class OutreachFeedback(CamelModel):
    user_feedback: str = Field(min_length=10, max_length=500)

    @field_validator("user_feedback", mode="before")
    @classmethod
    def strip_feedback(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class OutreachGenerateRequest(CamelModel):
    channel: OutreachChannel
    tone: OutreachTone
    job_title: str = Field(min_length=1, max_length=300)
    company_name: str | None = Field(default=None, max_length=200)
    recipient_name: str | None = Field(default=None, max_length=200)
    job_description: str | None = Field(default=None, max_length=50000)
    resume_id: str | None = None
    additional_context: str | None = Field(default=None, max_length=2000)


class OutreachContext(CamelModel):
    """Snapshot of the inputs an outreach message was generated from."""

    channel: OutreachChannel
    tone: OutreachTone
    job_description: str | None = None
    additional_context: str | None = None
    resume_markdown: str | None = None


class LatexImproveRequest(CamelModel):
    latex_code: str = Field(min_length=1, max_length=200000)
    line_improvements: list[LineImprovement] = Field(min_length=1)
    job_title: str = Field(min_length=1, max_length=300)
    company_name: str | None = Field(default=None, max_length=200)


class LatexImproveResult(CamelModel):
    improved_latex: str = Field(min_length=1)
    changes_applied: int = Field(ge=0)
    sections_modified: list[str] = Field(default_factory=list)


class ColdDMRegenerateRequest(CamelModel):
    resume_id: str = Field(min_length=1)
    user_feedback: str = Field(min_length=10, max_length=500)

    @field_validator("user_feedback", mode="before")
    @classmethod
    def strip_feedback(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class EditorChatRequest(CamelModel):
    messages: list[ChatMessage] = Field(min_length=1)
    current_latex: str = ""
