"""
Prompt builder for ticket generation.

Produces the single user message sent to the LLM proxy: one image block per
screenshot, a note per video, then the formatting instructions for the
enabled ticket sections.
"""

from bugticket.models.domain import EnvironmentConfig, TicketConfig, TicketSection
from bugticket.models.ticket import Attachment

SEPARATOR = "━" * 50

# Section-specific placeholder text; custom sections fall back to the default
_SECTION_HINTS: dict[str, str] = {
    "title": "**{name}:** [Create a clear, concise title - max 15 words]",
    "description": (
        "**{name}:** \n[Write 2-3 SHORT sentences maximum. Be direct and "
        "to-the-point. Include key visual details if media is provided.]"
    ),
    "steps": (
        "**{name}:**\n1. [SHORT, clear first step]\n2. [SHORT second step]\n"
        "3. [SHORT third step - keep steps brief, 1 line each max]"
    ),
    "expected": "**{name}:** \n[ONE sentence describing normal behavior]",
    "actual": "**{name}:** \n[ONE sentence describing the bug]",
    "impact": (
        "**{name}:** \n[ONE sentence - state impact level "
        "(Critical/High/Medium/Low) and brief reason]"
    ),
    "priority": "**{name}:** [Just state: P1, P2, P3, or P4 - nothing else]",
}
_DEFAULT_HINT = "**{name}:** \n[Provide relevant information for this field]"

SYSTEM_RULES = """\
CRITICAL - LANGUAGE REQUIREMENT:
- The user's description may be in ANY language
- You MUST create the entire bug ticket in ENGLISH language ONLY
- Translate the user's input to English if needed

IMPORTANT:
- If images or video frames are provided, analyze them carefully and use what \
you see to write detailed Description, Steps to Reproduce, Expected Behaviour, \
and Actual Behaviour sections.
- The Attachment field should ONLY contain the filename, nothing else.
"""


_TO_BE_PROVIDED = '[Leave blank or write "To be provided"]'
_BRANCH_HINT = '[Suggest likely branch or write "To be determined"]'


def _environment_block(name: str, env: EnvironmentConfig) -> str:
    lines = [
        f"**{name}:**",
        f"Instance: {env.instance or _TO_BE_PROVIDED}",
        f"Branch: {env.branch or _BRANCH_HINT}",
        f"Username: {env.username or _TO_BE_PROVIDED}",
        f"Password: {env.password or _TO_BE_PROVIDED}",
    ]
    lines.extend(f"{key}: {value}" for key, value in env.extra.items() if key and value)
    return "\n".join(lines)


def build_format(config: TicketConfig, filenames: list[str]) -> str:
    """Render the section template the model must follow."""
    sections = config.enabled_sections
    blocks = []
    for index, section in enumerate(sections):
        is_last = index == len(sections) - 1
        if section.id == "environment":
            block = _environment_block(section.name, config.environment)
        elif section.id == "attachment":
            listed = ", ".join(filenames) if filenames else "No attachments provided"
            block = f"**{section.name}:** {listed}"
        else:
            block = _SECTION_HINTS.get(section.id, _DEFAULT_HINT).format(name=section.name)
        blocks.append(block if is_last else f"{block}\n\n{SEPARATOR}")
    return "\n\n".join(blocks)


def _formatting_rules(sections: list[TicketSection]) -> str:
    order = ", ".join(s.name for s in sections)
    return f"""\
CRITICAL FORMATTING RULES:
1. Use **bold** for all field labels
2. Add the horizontal line separator ({SEPARATOR}) after EACH section - use EXACTLY 50 unicode box characters
3. The Attachment field must ONLY contain the filename - DO NOT add any description or analysis text there
4. Incorporate all visual observations into Description, Steps to Reproduce, Expected Behaviour, and Actual Behaviour sections
5. Follow this EXACT format and field order - ONLY include these fields in this exact order: {order}
6. Do not add any additional sections or fields not listed above
7. Keep everything SHORT and CONCISE - use 1-2 sentences per section, brief steps, no long paragraphs
"""


def build_enhance_messages(description: str) -> list[dict]:
    """Ask the model to expand a short description into 2-3 sentences."""
    text = (
        "Expand this short bug description into a more detailed technical "
        "description (2-3 sentences). Keep it professional and bug-focused. "
        "IMPORTANT: Your response MUST be in English language only, regardless "
        f'of the input language. Original description: "{description}"'
    )
    return [{"role": "user", "content": [{"type": "text", "text": text}]}]


def build_ticket_messages(
    description: str,
    media: list[Attachment],
    config: TicketConfig,
) -> list[dict]:
    """Build the messages array for the generate-ticket proxy call."""
    content: list[dict] = []
    images = [m for m in media if m.content_type.startswith("image/")]
    videos = [m for m in media if m.content_type.startswith("video/")]

    for image in images:
        data = image.data.split(",", 1)[1] if "," in image.data else image.data
        content.append({
            "type": "image",
            "source": {"type": "base64", "media_type": image.content_type, "data": data},
        })

    for video in videos:
        content.append({
            "type": "text",
            "text": (
                f'[Video "{video.filename}" attached; frame extraction skipped. '
                "Please use the video attachment for context.]"
            ),
        })

    if media:
        media_note = (
            f"{len(images)} image(s) and {len(videos)} video(s) have been provided "
            "showing the bug. Please carefully analyze all media to understand the issue."
        )
    else:
        media_note = "No media files were provided."

    instructions = (
        "Please analyze this bug report and create a detailed bug ticket.\n\n"
        f"User's Brief Description: {description}\n\n"
        f"{media_note}\n\n"
        f"{SYSTEM_RULES}\n"
        "Please create a CONCISE and TO-THE-POINT bug ticket following this EXACT "
        "format with BOLD headings:\n\n"
        f"{build_format(config, [m.filename for m in media])}\n\n"
        f"{_formatting_rules(config.enabled_sections)}"
    )
    content.append({"type": "text", "text": instructions})

    return [{"role": "user", "content": content}]
