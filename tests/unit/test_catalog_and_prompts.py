from datetime import date

from resumind.core.catalog import (
    COVER_LETTER_TEMPLATES,
    get_channel,
    get_template_by_id,
    get_template_or_default,
    get_templates_by_category,
    get_tone,
)
from resumind.llm.prompts import (
    build_cover_letter_prompt,
    build_outreach_prompt,
    build_resume_critique_prompt,
    build_section_rewrite_prompt,
    format_letter_date,
    group_improvements,
)
from resumind.types import LineImprovement


def test_template_lookup_and_default() -> None:
    assert get_template_by_id("nonexistent") is None
    assert get_template_or_default("nonexistent").id == "modern-professional"
    assert get_template_by_id("fresh-start").category == "entry-level"
    assert len({template.id for template in COVER_LETTER_TEMPLATES}) == len(COVER_LETTER_TEMPLATES)


def test_templates_by_category() -> None:
    assert len(get_templates_by_category("all")) == len(COVER_LETTER_TEMPLATES)
    professional = get_templates_by_category("professional")
    assert {template.id for template in professional} == {"modern-professional", "classic-formal"}
    assert get_templates_by_category("startup") == []


def test_template_wire_format_is_camel_case() -> None:
    wire = get_template_by_id("bold-creative").to_wire()
    assert wire["accentColor"] == "#e11d48"
    assert wire["accentBarVariant"] == "top-bar"


def test_only_cold_email_is_email_like() -> None:
    assert get_channel("cold-email").is_email
    assert not get_channel("linkedin-dm").is_email
    assert get_channel("carrier-pigeon") is None
    assert get_tone("warm").name == "Warm and Conversational"
    assert get_tone("grumpy") is None


def test_critique_prompt_without_company() -> None:
    prompt = build_resume_critique_prompt(
        job_title="Backend Engineer",
        job_description="Build APIs",
        resume_markdown="# Ada",
        today=date(2026, 1, 5),
    )
    assert "Current Date: Monday, January 5, 2026" in prompt
    assert "Omit company references" in prompt
    assert "Company:" not in prompt
    assert "overallScore: number" in prompt


def test_cover_letter_prompt_grounds_on_resume_when_given() -> None:
    with_resume = build_cover_letter_prompt(
        job_title="Backend Engineer",
        template_tone="Be bold.",
        resume_markdown="Built APIs at Acme",
    )
    without_resume = build_cover_letter_prompt(job_title="Backend Engineer", template_tone="Be bold.")

    assert "TONE: Be bold." in with_resume
    assert "CANDIDATE RESUME:\nBuilt APIs at Acme" in with_resume
    assert "No resume provided" in without_resume


def test_section_prompt_mentions_paragraph_breaks_only_for_body() -> None:
    body = build_section_rewrite_prompt(section="body", current_text="a", job_title="t", tone="x")
    closing = build_section_rewrite_prompt(section="closing", current_text="a", job_title="t", tone="x")
    assert "double newline" in body
    assert "body paragraphs" in body
    assert "double newline" not in closing


def test_outreach_prompt_format_follows_channel() -> None:
    email = build_outreach_prompt(channel=get_channel("cold-email"), tone=get_tone("bold"), job_title="SRE")
    dm = build_outreach_prompt(
        channel=get_channel("linkedin-dm"),
        tone=get_tone("bold"),
        job_title="SRE",
        recipient_name="Sam",
    )
    assert '"subject"' in email
    assert "plain text message" in dm
    assert 'Address "Sam" by name' in dm


def test_improvements_grouped_by_section_in_first_seen_order() -> None:
    def item(section: str, original: str) -> LineImprovement:
        return LineImprovement.model_validate(
            {
                "section": section,
                "sectionTitle": section,
                "original": original,
                "suggested": original.upper(),
                "reason": "r",
                "priority": "low",
                "category": "clarity",
            }
        )

    grouped = group_improvements([item("skills", "a"), item("experience", "b"), item("skills", "c")])
    assert list(grouped) == ["skills", "experience"]
    assert [entry.original for entry in grouped["skills"]] == ["a", "c"]


def test_letter_date_format() -> None:
    assert format_letter_date(date(2026, 10, 19)) == "October 19, 2026"
