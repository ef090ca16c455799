from __future__ import annotations

from collections import OrderedDict
from datetime import date

from resumind.core.catalog import OutreachChannelConfig, OutreachToneConfig
from resumind.types import LineImprovement


def _lines(*parts: str | None) -> str:
    return "\n".join(part for part in parts if part)


def format_long_date(value: date) -> str:
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


def format_letter_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


# Resume critique

FEEDBACK_FORMAT = """
interface Feedback {
  overallScore: number; //max 100
  ATS: {
    score: number; //rate based on ATS suitability
    tips: { type: "good" | "improve"; tip: string; }[]; //give 3-4 tips
  };
  toneAndStyle: {
    score: number; //max 100
    tips: { type: "good" | "improve"; tip: string; explanation: string; }[]; //give 3-4 tips
  };
  content: { same structure as toneAndStyle };
  structure: { same structure as toneAndStyle };
  skills: { same structure as toneAndStyle };
  lineImprovements: {
    section: "summary" | "experience" | "education" | "skills" | "other";
    sectionTitle: string; //e.g., "Experience - Software Engineer at Google"
    original: string; //exact text from resume to replace
    suggested: string; //improved version with specific changes
    reason: string; //why this change matters (1-2 sentences)
    priority: "high" | "medium" | "low";
    category: "quantify" | "action-verb" | "keyword" | "clarity" | "ats";
  }[]; //provide 8-12 specific line-by-line improvements
  coldOutreachMessage?: string; //optional: under 100 words, resume-grounded, clear CTA
}
""".strip()

RESUME_CRITIQUE_SYSTEM_PROMPT = """
You are a resume analysis expert. Return valid JSON (no markdown formatting, no code blocks) with this exact structure:

{
  "overallScore": number (0-100),
  "ATS": {
    "score": number (0-100),
    "tips": array of objects with "type" (string: "good" or "improve") and "tip" (string)
  },
  "toneAndStyle": {
    "score": number (0-100),
    "tips": array of objects with "type", "tip", and "explanation" (string)
  },
  "content": { same structure as toneAndStyle },
  "structure": { same structure as toneAndStyle },
  "skills": { same structure as toneAndStyle },
  "lineImprovements": optional array of objects with "section" (string: use "summary", "experience", "education", "skills", or "other" for any other section), "sectionTitle", "original", "suggested", "reason", "priority" (string: "high"/"medium"/"low"), "category" (string),
  "coldOutreachMessage": optional string
}

Be thorough and specific in your analysis.
""".strip()

RESUME_CRITIQUE_PROMPT = """
Current Date: {current_date}

ROLE: You are an expert resume coach who understands what makes hiring managers say yes.

TASK:
Analyze this resume against the job description. Be thorough, specific, and honest. Low scores are acceptable if the resume is weak.

Job Title: {job_title}
Job Description: {job_description}
{company_line}

WRITING STYLE:
- Professional but conversational
- Specific and actionable, never vague
- Each explanation should identify the gap, show the fix, then explain the impact
- Avoid corporate jargon and AI phrases like "I am writing to express"
- Base all feedback strictly on what exists in the resume

TIPS STRUCTURE (3-4 per category):
- "tip": 3-6 words, concrete and punchy
- "explanation": 1-3 sentences (25-60 words) with specific examples or rewrites when helpful

ATS SECTION (3-4 tips):
- Focus on parser-safe formatting (clear headings, standard date formats, plain text skills)
- Be specific about what to change and why it matters for automated parsing

LINE-BY-LINE IMPROVEMENTS (provide 8-12):
- Provide complete, ready-to-use replacements
- Add metrics ONLY if they exist in the resume, never invent data
- "original": must be exact enough to locate in the resume
- "section": use "summary", "experience", "education", "skills", or "other"
- "priority": "high" for ATS/relevance impact, "medium" for moderate improvements, "low" for polish
- "category": "quantify", "action-verb", "keyword", "clarity", or "ats"

COLD OUTREACH MESSAGE (optional):
- First person, LinkedIn DM style, under 100 words, 2-3 short paragraphs
- MUST start with a natural greeting ("Hi," or "Hey," or "Hello,")
- Use ONLY information from the resume
- {company_mention}
- CTA: suggest a brief chat this week (10-15 minutes)

CRITICAL RULES:
- Never invent metrics, skills, or experience not in the resume
- If uncertain about something, omit it rather than fabricate

Return analysis as JSON matching this structure: {feedback_format}
Return ONLY valid JSON, no markdown formatting or code blocks.

Resume:
{resume_markdown}
""".strip()


def build_resume_critique_prompt(
    *,
    job_title: str,
    job_description: str,
    resume_markdown: str,
    company_name: str | None = None,
    today: date | None = None,
) -> str:
    return RESUME_CRITIQUE_PROMPT.format(
        current_date=format_long_date(today or date.today()),
        job_title=job_title,
        job_description=job_description,
        company_line=f"Company: {company_name}" if company_name else "",
        company_mention=(
            f'Mention "{company_name}" naturally once' if company_name else "Omit company references"
        ),
        feedback_format=FEEDBACK_FORMAT,
        resume_markdown=resume_markdown,
    )


# Job posting extraction

JOB_EXTRACTION_SYSTEM_PROMPT = """
You are an expert job posting analyzer. Your task is to accurately extract structured information from job postings.

Your approach should follow this step-by-step process:
1. First, identify and locate the job title/position name
2. Then, identify the company name (may appear in headers, footers, or body text)
3. Finally, extract the complete job description (including responsibilities, requirements, qualifications, and benefits)

Extraction guidelines:
- companyName: Extract the exact company name. If multiple names appear, use the primary employer name.
- jobTitle: Extract the exact job title/position name.
- jobDescription: Extract the FULL job description including all sections. Preserve formatting where meaningful.

Return ONLY valid JSON matching this exact structure:
{
  "companyName": "string",
  "jobTitle": "string",
  "jobDescription": "string"
}

Critical: Return only valid JSON, no markdown formatting, no code blocks, no explanatory text.
""".strip()

JOB_EXTRACTION_PROMPT = """
Let's think step by step to extract the job posting details accurately.

First, analyze the text structure:
- Where is the job title located?
- Where is the company name mentioned?
- What sections make up the job description?

Then extract the information following this plan:
1. Identify the job title from headers or prominent text
2. Identify the company name from context clues
3. Extract the complete job description including all relevant sections

Job posting text:
{content}

Now extract and return the structured JSON data.
""".strip()


def build_job_extraction_prompt(content: str) -> str:
    return JOB_EXTRACTION_PROMPT.format(content=content)


# Cover letters

COVER_LETTER_SYSTEM_PROMPT = """
You are an expert cover letter writer. You write letters that sound like a capable human wrote them for one specific role.

Return ONLY valid JSON (no markdown, no code blocks) with this exact structure:
{
  "recipientName": "string (e.g. Hiring Manager, or a named person if provided)",
  "opening": "string (one paragraph)",
  "bodyParagraphs": ["string", "string"],
  "closing": "string (one paragraph)",
  "signature": "string (sign-off line such as Sincerely)"
}

Never output header fields (name, email, phone, address) or a date.
""".strip()

COVER_LETTER_PROMPT = """
TASK: Write a cover letter for the role below.

Job Title: {job_title}
{company_line}
{description_block}

TONE: {template_tone}

{resume_block}

GUIDELINES:
- 2-3 body paragraphs, 250-400 words in total
- Open with a specific hook tied to the role, not a generic statement of interest
- Connect concrete experience to the job's requirements
- Close with a clear, confident call to action
- Avoid "I am writing to express", "I would love the opportunity", and other AI cliches
- Never invent achievements, metrics, or employers

Return ONLY valid JSON, no markdown formatting or code blocks.
""".strip()


def build_cover_letter_prompt(
    *,
    job_title: str,
    template_tone: str,
    company_name: str | None = None,
    job_description: str | None = None,
    resume_markdown: str | None = None,
) -> str:
    if resume_markdown and resume_markdown.strip():
        resume_block = (
            f"CANDIDATE RESUME:\n{resume_markdown}\n\n"
            "Ground every claim in this resume. Do not invent experience."
        )
    else:
        resume_block = "No resume provided. Keep claims general and plausible for the role."

    return COVER_LETTER_PROMPT.format(
        job_title=job_title,
        company_line=f"Company: {company_name}" if company_name else "",
        description_block=f"Job Description:\n{job_description}" if job_description else "",
        template_tone=template_tone,
        resume_block=resume_block,
    )


COVER_LETTER_SECTION_SYSTEM_PROMPT = (
    "You rewrite cover letter sections. Return ONLY the rewritten text. "
    "No JSON. No markdown. No explanations."
)

SECTION_LABELS = {"opening": "opening", "body": "body paragraphs", "closing": "closing"}


def build_section_rewrite_prompt(
    *,
    section: str,
    current_text: str,
    job_title: str,
    tone: str,
    company_name: str | None = None,
    feedback: str | None = None,
) -> str:
    label = SECTION_LABELS[section]
    return _lines(
        f"Rewrite the {label} of this cover letter.",
        "",
        "Current version:",
        current_text,
        "",
        "Context:",
        f"- Job Title: {job_title}",
        f"- Company: {company_name}" if company_name else None,
        f"- Tone: {tone}",
        f"\nUser feedback: {feedback}" if feedback else None,
        "",
        "Rules:",
        "- Return ONLY the rewritten text, no JSON, no markdown formatting",
        "- Keep the same approximate length unless the user asked for shorter/longer",
        "- Maintain the established tone",
        "- Separate paragraphs with a double newline" if section == "body" else None,
        f"- Do not include greetings or signatures, just the {label} content",
    )


# Outreach

OUTREACH_SYSTEM_PROMPT = """
You are an expert outreach strategist who writes messages that get replies. You write like a skilled human networker, not a template engine.

Your approach:
1. Read the job context and candidate background carefully
2. Craft a message that feels personal and specific, never mass-produced
3. Match the requested tone while keeping it authentic
4. Every sentence must earn its place

Hard constraints to avoid AI giveaways:
- Never output em-dashes; use a period or a comma instead
- Avoid repetitive sentence scaffolding and repeated openers
- Avoid corporate cliches, motivational fluff, and abstract claims without evidence
- Prefer concrete nouns, verbs, and role-specific details over generic adjectives
""".strip()

EMAIL_FORMAT_INSTRUCTIONS = (
    "Return ONLY valid JSON matching this exact structure (no markdown, no code blocks):\n"
    '{ "subject": "short subject line, 6 words max", "body": "the email body text" }'
)
TEXT_FORMAT_INSTRUCTIONS = (
    "Return ONLY the plain text message. No JSON, no markdown formatting, no code blocks, "
    "no explanatory text."
)


def _format_instructions(channel: OutreachChannelConfig) -> str:
    return EMAIL_FORMAT_INSTRUCTIONS if channel.is_email else TEXT_FORMAT_INSTRUCTIONS


def build_outreach_prompt(
    *,
    channel: OutreachChannelConfig,
    tone: OutreachToneConfig,
    job_title: str,
    company_name: str | None = None,
    recipient_name: str | None = None,
    job_description: str | None = None,
    resume_markdown: str | None = None,
    additional_context: str | None = None,
) -> str:
    if resume_markdown and resume_markdown.strip():
        resume_block = (
            f"CANDIDATE RESUME:\n{resume_markdown}\n\n"
            "Use specific details, skills, and experience from this resume. "
            "Never invent achievements or metrics not present in the resume."
        )
    else:
        resume_block = "No resume provided. Write plausible but clearly generic content."

    return _lines(
        f"TASK: Write a {channel.name} for a job seeker reaching out about a role.",
        "",
        f"CHANNEL: {channel.name} ({channel.word_range})",
        f"TONE: {tone.name} -- {tone.directive}",
        "",
        f"Job Title: {job_title}",
        f"Company: {company_name}" if company_name else None,
        f"Recipient: {recipient_name}" if recipient_name else None,
        f"Job Description:\n{job_description}"
        if job_description
        else "No job description provided. Write a general-purpose message for this role.",
        "",
        resume_block,
        "",
        f"ADDITIONAL CONTEXT FROM CANDIDATE:\n{additional_context}\n" if additional_context else None,
        "MESSAGE GUIDELINES:",
        "- Write from the job seeker's perspective (first person) to the hiring team",
        f"- {channel.word_range}, 2-3 short paragraphs",
        '- MUST start with a natural greeting ("Hi," or "Hey," or "Hello,")',
        "- Use ONLY information from the resume. Do not invent skills or experience",
        f'- Mention "{company_name}" naturally once' if company_name else "- Omit company references",
        f'- Address "{recipient_name}" by name'
        if recipient_name
        else "- Role-agnostic addressing (works for HR, founder, or CEO)",
        "- CTA: suggest a brief chat this week (10-15 minutes)",
        '- Avoid: "I am confident that", "I look forward to", placeholder names',
        "",
        _format_instructions(channel),
    )


def build_outreach_regeneration_prompt(
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
) -> str:
    if channel.is_email and current_subject:
        current_message = f"Current Subject: {current_subject}\nCurrent Body:\n{current_content}"
    else:
        current_message = f"Current Message:\n{current_content}"

    return _lines(
        f"TASK: Regenerate a {channel.name} based on user feedback.",
        "",
        f"CHANNEL: {channel.name} ({channel.word_range})",
        f"TONE: {tone.name} -- {tone.directive}",
        "",
        f"Job Title: {job_title}",
        f"Company: {company_name}" if company_name else None,
        f"Recipient: {recipient_name}" if recipient_name else None,
        f"Job Description:\n{job_description}" if job_description else None,
        f"\nCANDIDATE RESUME:\n{resume_markdown}" if resume_markdown else None,
        "",
        current_message,
        "",
        "USER FEEDBACK:",
        user_feedback,
        "",
        "Apply the user's feedback to improve the message. Keep all original guidelines "
        "(tone, word range, resume-grounding, no AI cliches).",
        "",
        _format_instructions(channel),
    )


COLD_DM_SYSTEM_PROMPT = (
    "You are an expert resume coach specializing in crafting personalized cold outreach "
    "messages. Your task is to regenerate a LinkedIn cold DM based on user feedback."
)


def build_cold_dm_prompt(
    *,
    resume_markdown: str,
    job_title: str,
    job_description: str,
    current_message: str,
    user_feedback: str,
    company_name: str | None = None,
) -> str:
    return _lines(
        "I need you to regenerate a cold outreach message based on specific user feedback.",
        "",
        f"Job Title: {job_title}",
        f"Job Description: {job_description}",
        f"Company: {company_name}" if company_name else None,
        "",
        "Resume (markdown format):",
        resume_markdown,
        "",
        "Current Cold DM:",
        current_message,
        "",
        "User Feedback:",
        user_feedback,
        "",
        "COLD OUTREACH GUIDELINES:",
        "- First person, professional LinkedIn DM style, under 100 words, 2-3 short paragraphs",
        '- MUST start with a natural greeting ("Hi," or "Hey," or "Hello,")',
        "- Use ONLY information from the resume",
        f'- Mention "{company_name}" naturally once' if company_name else "- Omit company references",
        "- CTA: suggest a brief chat this week (10-15 minutes)",
        "",
        "Apply the user's feedback to improve the message. Return ONLY the regenerated cold DM "
        "text, no JSON formatting, no markdown code blocks, no explanatory text.",
    )


# LaTeX

LATEX_IMPROVE_SYSTEM_PROMPT = r"""
You are an expert LaTeX resume editor specializing in ATS-optimized resumes. Your task is to transform resume LaTeX code by applying specific text improvements while preserving the LaTeX structure, macros, and document integrity.

## Core Rules:
1. PRESERVE ALL LATEX COMMANDS. Never modify \section{}, \cventry{}, \begin{}, \end{}, etc.
2. ONLY MODIFY CONTENT TEXT. Change the text inside braces, not the structure.
3. MAINTAIN DOCUMENT FLOW. Keep sections in the same order.
4. PRESERVE MACROS. Keep custom commands (\cvitem, \cvtag, etc.) intact.
5. NO INVENTED CONTENT. Only use information present in the original.
6. ESCAPE SPECIAL CHARACTERS. Ensure \&, \%, \$ are preserved correctly.

## Output Format:
Return ONLY a JSON object with this structure:
{
  "improvedLatex": "\\documentclass...",
  "changesApplied": 8,
  "sectionsModified": ["Summary", "Experience", "Skills"]
}

NO markdown, NO explanations, ONLY valid JSON.
""".strip()

LATEX_IMPROVE_PROMPT = r"""
Transform the following LaTeX resume code by applying the suggested improvements.

## Job Context:
- Position: {job_title}
{company_line}

## IMPROVEMENTS TO APPLY:
{improvements}

## ORIGINAL LATEX CODE:
```latex
{latex_code}
```

## TRANSFORMATION INSTRUCTIONS:
1. Apply each suggested improvement to the corresponding section
2. Preserve ALL LaTeX commands, environments, and macros exactly
3. Only change the CONTENT text, not the structure
4. Ensure the LaTeX remains compilable
5. Keep escaped characters properly escaped (\&, \%, \$)

## OUTPUT:
Return ONLY valid JSON with keys improvedLatex (string), changesApplied (number), sectionsModified (string[]).
Return ONLY valid JSON, no markdown formatting or code blocks.
""".strip()


def group_improvements(improvements: list[LineImprovement]) -> OrderedDict[str, list[LineImprovement]]:
    grouped: OrderedDict[str, list[LineImprovement]] = OrderedDict()
    for item in improvements:
        grouped.setdefault(item.section, []).append(item)
    return grouped


def render_improvements(improvements: list[LineImprovement]) -> str:
    blocks = []
    for section, items in group_improvements(improvements).items():
        lines = [f"[{section.upper()}]"]
        for index, item in enumerate(items, start=1):
            lines.append(
                f"  {index}. [{item.priority.upper()}] ({item.category}) {item.section_title}\n"
                f'     Original: "{item.original}"\n'
                f'     Suggested: "{item.suggested}"\n'
                f"     Reason: {item.reason}"
            )
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def build_latex_improve_prompt(
    *,
    latex_code: str,
    improvements: list[LineImprovement],
    job_title: str,
    company_name: str | None = None,
) -> str:
    return LATEX_IMPROVE_PROMPT.format(
        job_title=job_title,
        company_line=f"- Target Company: {company_name}" if company_name else "",
        improvements=render_improvements(improvements),
        latex_code=latex_code,
    )


EDITOR_SYSTEM_PROMPT = """
You are an expert resume writer and LaTeX specialist. You help users create and edit professional resumes.

When the user asks you to create or modify their resume, you MUST:
1. Respond conversationally explaining what you did
2. Use the update_resume tool to apply changes

IMPORTANT RULES:
- Always output the FULL LaTeX document, not just snippets
- Keep the LaTeX simple and compatible with pdflatex
- Escape special LaTeX characters properly (%, $, &, #, _)
- NEVER invent information - only use what the user provides
""".strip()

UPDATE_RESUME_TOOL = {
    "type": "function",
    "function": {
        "name": "update_resume",
        "description": (
            "Update the user's resume with new LaTeX content. Always provide the COMPLETE "
            "LaTeX document."
        ),
        "parameters": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "latex": {
                    "type": "string",
                    "description": "The complete LaTeX document, from \\documentclass to \\end{document}.",
                },
                "explanation": {
                    "type": "string",
                    "description": "A brief explanation of what changes were made to the resume.",
                },
            },
            "required": ["latex", "explanation"],
        },
    },
}


def build_editor_system_message(current_latex: str) -> str:
    return (
        f"{EDITOR_SYSTEM_PROMPT}\n\nCurrent resume LaTeX:\n```latex\n{current_latex}\n```\n\n"
        "IMPORTANT: When the user asks you to modify their resume, you MUST use the "
        "update_resume tool to make changes."
    )
