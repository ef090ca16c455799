from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

TemplateCategory = Literal["professional", "creative", "technical", "executive", "entry-level", "startup"]

DEFAULT_TEMPLATE_ID = "modern-professional"
EMAIL_CHANNELS = {"cold-email"}


@dataclass(frozen=True, slots=True)
class CoverLetterTemplate:
    id: str
    name: str
    description: str
    category: TemplateCategory
    tone: str
    accent_color: str
    header_layout: Literal["horizontal", "stacked"]
    font_weight: Literal["normal", "bold"]
    accent_bar_variant: Literal["top-bar", "left-bar", "underline"]

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tone": self.tone,
            "accentColor": self.accent_color,
            "headerLayout": self.header_layout,
            "fontWeight": self.font_weight,
            "accentBarVariant": self.accent_bar_variant,
        }


@dataclass(frozen=True, slots=True)
class OutreachChannelConfig:
    id: str
    name: str
    description: str
    word_range: str

    @property
    def is_email(self) -> bool:
        return self.id in EMAIL_CHANNELS


@dataclass(frozen=True, slots=True)
class OutreachToneConfig:
    id: str
    name: str
    description: str
    directive: str


COVER_LETTER_TEMPLATES: tuple[CoverLetterTemplate, ...] = (
    CoverLetterTemplate(
        id="modern-professional",
        name="Modern Professional",
        description="Clean lines, confident tone. Best for corporate and mid-level roles.",
        category="professional",
        tone=(
            "Write with confident, direct language. Favor short punchy sentences over long "
            "complex ones. Lead with impact, not backstory."
        ),
        accent_color="#4c57e9",
        header_layout="horizontal",
        font_weight="bold",
        accent_bar_variant="top-bar",
    ),
    CoverLetterTemplate(
        id="classic-formal",
        name="Classic Formal",
        description="Traditional letter format with a polished, conservative feel.",
        category="professional",
        tone=(
            "Write in a traditional, polished tone. Use complete sentences and formal structure. "
            "Show respect for the reader's time while demonstrating thoroughness."
        ),
        accent_color="#475569",
        header_layout="stacked",
        font_weight="normal",
        accent_bar_variant="left-bar",
    ),
    CoverLetterTemplate(
        id="bold-creative",
        name="Bold Creative",
        description="Energetic and personality-driven. Great for design, marketing, and media roles.",
        category="creative",
        tone=(
            "Write with energy and personality. Show enthusiasm without being unprofessional. "
            "Use vivid language and let the candidate's passion come through. Be memorable."
        ),
        accent_color="#e11d48",
        header_layout="horizontal",
        font_weight="bold",
        accent_bar_variant="top-bar",
    ),
    CoverLetterTemplate(
        id="technical-deep-dive",
        name="Technical Deep-Dive",
        description="Precise and metric-heavy. Ideal for engineering, data, and technical roles.",
        category="technical",
        tone=(
            "Write with precision and technical credibility. Lead with measurable outcomes and "
            "specific technologies. Be concise. Quantify wherever the resume supports it."
        ),
        accent_color="#0d9488",
        header_layout="stacked",
        font_weight="normal",
        accent_bar_variant="left-bar",
    ),
    CoverLetterTemplate(
        id="executive-leadership",
        name="Executive Leadership",
        description="Strategic and authoritative. Built for director, VP, and C-level applications.",
        category="executive",
        tone=(
            "Write with strategic authority. Focus on leadership impact, business outcomes, and "
            "vision. Use measured, confident language befitting a senior leader. No filler."
        ),
        accent_color="#1e293b",
        header_layout="horizontal",
        font_weight="bold",
        accent_bar_variant="top-bar",
    ),
    CoverLetterTemplate(
        id="fresh-start",
        name="Fresh Start",
        description="Enthusiastic and growth-minded. Perfect for recent graduates and career changers.",
        category="entry-level",
        tone=(
            "Write with genuine enthusiasm and a growth mindset. Emphasize transferable skills, "
            "eagerness to learn, and relevant coursework or projects. Be sincere, not desperate."
        ),
        accent_color="#059669",
        header_layout="horizontal",
        font_weight="normal",
        accent_bar_variant="underline",
    ),
)

OUTREACH_CHANNELS: tuple[OutreachChannelConfig, ...] = (
    OutreachChannelConfig(
        id="linkedin-dm",
        name="LinkedIn DM",
        description="Short, punchy direct message for LinkedIn connections",
        word_range="50-100 words",
    ),
    OutreachChannelConfig(
        id="cold-email",
        name="Cold Email",
        description="Professional email with subject line and structured body",
        word_range="150-250 words",
    ),
    OutreachChannelConfig(
        id="networking",
        name="Networking Request",
        description="Warm introduction for informational interviews or referrals",
        word_range="80-120 words",
    ),
    OutreachChannelConfig(
        id="follow-up",
        name="Follow-Up",
        description="Brief nudge after an application or initial conversation",
        word_range="50-80 words",
    ),
)

OUTREACH_TONES: tuple[OutreachToneConfig, ...] = (
    OutreachToneConfig(
        id="bold",
        name="Bold and Direct",
        description="Confident opener, skip pleasantries, lead with value",
        directive=(
            "Write with confidence. Skip filler greetings. Lead with the strongest value "
            "proposition immediately. Use short, punchy sentences."
        ),
    ),
    OutreachToneConfig(
        id="warm",
        name="Warm and Conversational",
        description="Friendly, genuine curiosity, human touch",
        directive=(
            "Write warmly and conversationally. Show genuine curiosity about the recipient's work. "
            "Use natural language, like talking to a colleague you respect."
        ),
    ),
    OutreachToneConfig(
        id="professional",
        name="Professional and Polished",
        description="Structured, formal but not stiff",
        directive=(
            "Write with polished professionalism. Clear structure, measured tone. Formal enough "
            "for C-suite but not robotic. Every sentence serves a purpose."
        ),
    ),
    OutreachToneConfig(
        id="curious",
        name="Curious and Humble",
        description="Question-led, learning mindset, authentic",
        directive=(
            "Lead with genuine questions and a learning mindset. Show humility about what you "
            "don't know while grounding claims in real experience. Authentic and understated."
        ),
    ),
)


def get_template_by_id(template_id: str | None) -> CoverLetterTemplate | None:
    for template in COVER_LETTER_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def get_template_or_default(template_id: str | None) -> CoverLetterTemplate:
    return get_template_by_id(template_id) or get_template_by_id(DEFAULT_TEMPLATE_ID)


def get_templates_by_category(category: str) -> list[CoverLetterTemplate]:
    if category == "all":
        return list(COVER_LETTER_TEMPLATES)
    return [template for template in COVER_LETTER_TEMPLATES if template.category == category]


def get_channel(channel_id: str | None) -> OutreachChannelConfig | None:
    return next((channel for channel in OUTREACH_CHANNELS if channel.id == channel_id), None)


def get_tone(tone_id: str | None) -> OutreachToneConfig | None:
    return next((tone for tone in OUTREACH_TONES if tone.id == tone_id), None)
