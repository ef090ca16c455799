"""Single validation entry point per externally-sourced payload shape.

Every function here returns a :class:`ValidationResult` instead of raising, so
callers decide whether a bad shape is the model's fault (500) or the client's
(400). ``ValidationResult.unwrap`` converts a failure into
:class:`~resumind.errors.SchemaValidationError` for the common case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from resumind.errors import SchemaValidationError
from resumind.types import (
    CoverLetterBody,
    CoverLetterContent,
    Feedback,
    JobData,
    LatexImproveRequest,
    LatexImproveResult,
    LineImprovement,
    OutreachEmail,
    OutreachFeedback,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class ValidationResult(Generic[ModelT]):
    shape: str
    value: ModelT | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.value is not None

    def unwrap(self, *, message: str | None = None, status_code: int | None = None) -> ModelT:
        if self.value is None:
            raise SchemaValidationError(
                self.shape,
                self.error,
                message=message,
                status_code=status_code,
            )
        return self.value


def summarize_errors(exc: ValidationError, limit: int = 5) -> str:
    parts = []
    for item in exc.errors()[:limit]:
        location = ".".join(str(piece) for piece in item.get("loc", ())) or "<root>"
        parts.append(f"{location}: {item.get('msg', 'invalid')}")
    remaining = exc.error_count() - limit
    if remaining > 0:
        parts.append(f"(+{remaining} more)")
    return "; ".join(parts)


def validate_shape(model: type[ModelT], payload: Any, *, shape: str | None = None) -> ValidationResult[ModelT]:
    name = shape or model.__name__
    if isinstance(payload, model):
        return ValidationResult(shape=name, value=payload)
    try:
        return ValidationResult(shape=name, value=model.model_validate(payload))
    except ValidationError as exc:
        summary = summarize_errors(exc)
        logger.warning("Schema validation failed shape=%s errors=%s", name, summary)
        return ValidationResult(shape=name, error=summary)


def validate_job_data(payload: Any) -> ValidationResult[JobData]:
    return validate_shape(JobData, payload, shape="job_data")


def validate_feedback(payload: Any) -> ValidationResult[Feedback]:
    return validate_shape(Feedback, payload, shape="feedback")


def validate_line_improvement(payload: Any) -> ValidationResult[LineImprovement]:
    return validate_shape(LineImprovement, payload, shape="line_improvement")


def validate_cover_letter_body(payload: Any) -> ValidationResult[CoverLetterBody]:
    return validate_shape(CoverLetterBody, payload, shape="cover_letter_body")


def validate_cover_letter_content(payload: Any) -> ValidationResult[CoverLetterContent]:
    return validate_shape(CoverLetterContent, payload, shape="cover_letter_content")


def validate_outreach_feedback(payload: Any) -> ValidationResult[OutreachFeedback]:
    return validate_shape(OutreachFeedback, payload, shape="outreach_feedback")


def validate_outreach_email(payload: Any) -> ValidationResult[OutreachEmail]:
    return validate_shape(OutreachEmail, payload, shape="outreach_email")


def validate_latex_improve_request(payload: Any) -> ValidationResult[LatexImproveRequest]:
    return validate_shape(LatexImproveRequest, payload, shape="latex_improve_request")


def validate_latex_improve_result(payload: Any) -> ValidationResult[LatexImproveResult]:
    return validate_shape(LatexImproveResult, payload, shape="latex_improve_result")
