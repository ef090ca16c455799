import asyncio
from datetime import date

import pytest
from conftest import FakeCompletions, build_ai

from resumind.core.catalog import get_channel, get_template_by_id, get_tone
from resumind.core.text import MAX_TEXT_LENGTH
from resumind.errors import AppError, ContentTooLongError, EmptyResponseError, SchemaValidationError
from resumind.llm.generator import StructuredGenerator
from resumind.types import CoverLetterContent, LatexImproveRequest


@pytest.fixture
def completions() -> FakeCompletions:
    return FakeCompletions()


@pytest.fixture
def generator(completions) -> StructuredGenerator:
    return StructuredGenerator(build_ai(completions), long_timeout_sec=5.0)


def _user_prompt(call: dict) -> str:
    return call["messages"][1]["content"]


def test_critique_returns_validated_feedback(generator, completions, feedback_payload, resume_markdown) -> None:
    completions.queue(feedback_payload)

    feedback = asyncio.run(
        generator.critique_resume(
            resume_markdown=resume_markdown,
            job_title="Backend Engineer",
            job_description="Build services",
            company_name="Acme",
            today=date(2026, 10, 19),
        )
    )

    assert 0 <= feedback.overall_score <= 100
    assert feedback.line_improvements[0].section == "experience"
    prompt = _user_prompt(completions.calls[0])
    assert "Monday, October 19, 2026" in prompt
    assert 'Mention "Acme" naturally once' in prompt
    assert resume_markdown in prompt


def test_critique_rejects_resume_at_truncation_bound(generator, completions) -> None:
    with pytest.raises(ContentTooLongError) as exc_info:
        asyncio.run(
            generator.critique_resume(
                resume_markdown="x" * (MAX_TEXT_LENGTH + 500),
                job_title="Backend Engineer",
                job_description="Build services",
            )
        )
    assert exc_info.value.message == "Resume too detailed. Please use a simpler format."
    assert completions.calls == []


def test_critique_schema_failure_is_terminal(generator, completions, feedback_payload) -> None:
    del feedback_payload["structure"]
    completions.queue(feedback_payload)

    with pytest.raises(SchemaValidationError):
        asyncio.run(
            generator.critique_resume(resume_markdown="resume", job_title="t", job_description="d")
        )
    assert len(completions.calls) == 1


def test_job_extraction_failure_message(generator, completions) -> None:
    completions.queue({"companyName": "Acme", "jobTitle": "Engineer", "jobDescription": "short"})

    with pytest.raises(SchemaValidationError) as exc_info:
        asyncio.run(generator.extract_job_data("posting text"))
    assert exc_info.value.message == "Failed to extract valid job data"
    assert "step by step" in _user_prompt(completions.calls[0])


def test_cover_letter_draft_ignores_model_header(generator, completions, letter_body) -> None:
    completions.queue({**letter_body, "header": {"fullName": "Invented Person"}, "date": "1999"})

    body = asyncio.run(
        generator.draft_cover_letter(
            template=get_template_by_id("technical-deep-dive"),
            job_title="Backend Engineer",
            resume_markdown="## Experience\nBuilt APIs",
        )
    )

    assert body.opening == letter_body["opening"]
    assert "header" not in body.model_dump(by_alias=True)
    prompt = _user_prompt(completions.calls[0])
    assert "Lead with measurable outcomes" in prompt
    assert "Built APIs" in prompt


def _stored_letter(letter_body, letter_header) -> CoverLetterContent:
    return CoverLetterContent.model_validate({**letter_body, "header": letter_header, "date": "October 19, 2026"})


def test_section_rewrite_only_touches_target(generator, completions, letter_body, letter_header) -> None:
    current = _stored_letter(letter_body, letter_header)
    completions.queue("A sharper closing line that asks for a call.")

    updated = asyncio.run(
        generator.rewrite_cover_letter_section(
            content=current,
            section="closing",
            job_title="Backend Engineer",
            feedback="Make it punchier",
        )
    )

    assert updated.closing == "A sharper closing line that asks for a call."
    assert updated.opening == current.opening
    assert updated.body_paragraphs == current.body_paragraphs
    assert updated.header == current.header
    assert "User feedback: Make it punchier" in _user_prompt(completions.calls[0])


def test_body_rewrite_splits_paragraphs(generator, completions, letter_body, letter_header) -> None:
    completions.queue("First new paragraph.\n\n  \nSecond new paragraph.\n\nThird.")

    updated = asyncio.run(
        generator.rewrite_cover_letter_section(
            content=_stored_letter(letter_body, letter_header),
            section="body",
            job_title="Backend Engineer",
        )
    )
    assert updated.body_paragraphs == ["First new paragraph.", "Second new paragraph.", "Third."]


def test_section_rewrite_empty_response(generator, completions, letter_body, letter_header) -> None:
    completions.queue("   ")
    with pytest.raises(EmptyResponseError):
        asyncio.run(
            generator.rewrite_cover_letter_section(
                content=_stored_letter(letter_body, letter_header),
                section="opening",
                job_title="Backend Engineer",
            )
        )


def test_email_outreach_returns_subject(generator, completions) -> None:
    completions.queue({"subject": " Backend role at Acme ", "body": "Hi Sam,\n\nI build payment APIs."})

    draft = asyncio.run(
        generator.draft_outreach(
            channel=get_channel("cold-email"),
            tone=get_tone("warm"),
            job_title="Backend Engineer",
            company_name="Acme",
        )
    )

    assert draft.subject == "Backend role at Acme"
    assert draft.content.startswith("Hi Sam")
    assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_email_regeneration_keeps_previous_subject(generator, completions) -> None:
    completions.queue({"subject": "", "body": "Hi Sam, a shorter version."})

    draft = asyncio.run(
        generator.regenerate_outreach(
            channel=get_channel("cold-email"),
            tone=get_tone("bold"),
            current_content="Hi Sam, long version.",
            current_subject="Backend role at Acme",
            user_feedback="Make it shorter please",
            job_title="Backend Engineer",
        )
    )
    assert draft.subject == "Backend role at Acme"
    assert "Current Subject: Backend role at Acme" in _user_prompt(completions.calls[0])


def test_text_outreach_enforces_length_window(generator, completions) -> None:
    completions.queue("Hi!")

    with pytest.raises(AppError) as exc_info:
        asyncio.run(
            generator.draft_outreach(
                channel=get_channel("linkedin-dm"),
                tone=get_tone("curious"),
                job_title="Backend Engineer",
            )
        )
    assert exc_info.value.message == "AI response out of expected range"
    assert exc_info.value.status_code == 500


def test_text_outreach_has_no_subject(generator, completions) -> None:
    completions.queue("Hi, I noticed your team is hiring a Backend Engineer and wanted to say hello.")

    draft = asyncio.run(
        generator.draft_outreach(
            channel=get_channel("networking"),
            tone=get_tone("professional"),
            job_title="Backend Engineer",
        )
    )
    assert draft.subject is None
    assert completions.calls[0]["response_format"] == {"type": "text"}


def test_improve_latex_validates_result(generator, completions, feedback_payload) -> None:
    request = LatexImproveRequest.model_validate(
        {
            "latexCode": "\\documentclass{article}\\begin{document}Worked on APIs\\end{document}",
            "lineImprovements": feedback_payload["lineImprovements"],
            "jobTitle": "Backend Engineer",
        }
    )
    completions.queue(
        {
            "improvedLatex": "\\documentclass{article}\\begin{document}Built 12 APIs\\end{document}",
            "changesApplied": 1,
            "sectionsModified": ["Experience"],
        }
    )

    result = asyncio.run(generator.improve_latex(request))

    assert result.changes_applied == 1
    prompt = _user_prompt(completions.calls[0])
    assert "[EXPERIENCE]" in prompt
    assert "Worked on APIs" in prompt


def test_improve_latex_rejects_bad_shape(generator, completions, feedback_payload) -> None:
    request = LatexImproveRequest.model_validate(
        {
            "latexCode": "\\documentclass{article}",
            "lineImprovements": feedback_payload["lineImprovements"],
            "jobTitle": "Backend Engineer",
        }
    )
    completions.queue({"improvedLatex": "", "changesApplied": -1})

    with pytest.raises(SchemaValidationError):
        asyncio.run(generator.improve_latex(request))
