"""
Ticket field parser — turns the LLM's bold-labelled text into a TicketDraft.

The expected layout is ``**Label:**`` headings with each section closed by a
line of ``━`` characters. Parsing never fails: missing sections come back
empty and a missing priority falls back to P3.
"""

import re

from structlog import get_logger

from bugticket.models.ticket import DEFAULT_PRIORITY, DEFAULT_TITLE, Priority, TicketDraft

logger = get_logger()

SECTION_SEPARATOR = "━" * 50

# Draft field -> label the prompt asks the model to use
SECTION_LABELS: dict[str, str] = {
    "description": "Description",
    "steps": "Steps to Reproduce",
    "expected": "Expected Behaviour",
    "actual": "Actual Behaviour",
    "impact": "Impact",
    "environment": "Environment",
}

_TITLE_RE = re.compile(r"\*\*Title:\*\*[ \t]*(.+?)[ \t]*(?:\n|\Z)")
_ATTACHMENT_RE = re.compile(r"\*\*Attachments?:\*\*[ \t]*(.*?)(?:\n|\Z)")
_NO_ATTACHMENTS = "no attachments provided"

# Tried in order; the first capture wins.
_PRIORITY_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("bold", re.compile(r"\*\*Priority:\*\*\s*([Pp][1-4])\b")),
    ("colon", re.compile(r"Priority:\s*([Pp][1-4])\b", re.IGNORECASE)),
    ("space", re.compile(r"Priority\s+([Pp][1-4])\b", re.IGNORECASE)),
    ("flexible", re.compile(r"Priority[:\s*]*([Pp][1-4])\b", re.IGNORECASE)),
]
_PRIORITY_SECTION_RE = re.compile(r"\*\*Priority:\*\*[\s\S]{0,30}", re.IGNORECASE)
_PRIORITY_CODE_RE = re.compile(r"([Pp][1-4])\b")


# A body ends at the separator, at the next ticket label or at end of text.
# Other bold labels (``**Note:**``, ``**Instance:**``) stay in the body.
_TICKET_LABELS = [re.escape(label) for label in ("Title", *SECTION_LABELS.values(), "Priority")]
_SECTION_END = (
    r"(?:\n[ \t]*━|\n[ \t]*\*\*(?:"
    + "|".join([*_TICKET_LABELS, "Attachments?"])
    + r"):\*\*|\Z)"
)


def _section_pattern(label: str) -> re.Pattern:
    return re.compile(
        r"\*\*" + re.escape(label) + r":\*\*[ \t]*(.*?)" + _SECTION_END,
        re.DOTALL,
    )


_SECTION_PATTERNS = {
    field: _section_pattern(label) for field, label in SECTION_LABELS.items()
}


def extract_section(text: str, label: str) -> str:
    """Return the trimmed body under ``**label:**`` or an empty string."""
    match = _section_pattern(label).search(text)
    return match.group(1).strip() if match else ""


def extract_priority(text: str) -> Priority:
    """Find a P1–P4 code near the Priority label, defaulting to P3."""
    for name, pattern in _PRIORITY_PATTERNS:
        match = pattern.search(text)
        if match:
            logger.debug("priority_matched", pattern=name, code=match.group(1))
            return Priority(match.group(1).upper())

    section = _PRIORITY_SECTION_RE.search(text)
    if section:
        match = _PRIORITY_CODE_RE.search(section.group(0))
        if match:
            logger.debug("priority_matched", pattern="section", code=match.group(1))
            return Priority(match.group(1).upper())

    logger.warning(
        "priority_not_found",
        default=DEFAULT_PRIORITY.value,
        excerpt=text[:200],
    )
    return DEFAULT_PRIORITY


def extract_attachments(text: str) -> list[str]:
    match = _ATTACHMENT_RE.search(text)
    if not match:
        return []
    raw = match.group(1).strip()
    if not raw or raw.lower().rstrip(".") == _NO_ATTACHMENTS:
        return []
    return [name.strip() for name in raw.split(",") if name.strip()]


def parse_ticket(text: str) -> TicketDraft:
    """Parse generated ticket text into a fully populated TicketDraft."""
    text = text or ""

    title_match = _TITLE_RE.search(text)
    title = title_match.group(1).strip() if title_match else ""

    sections = {}
    for field, pattern in _SECTION_PATTERNS.items():
        match = pattern.search(text)
        sections[field] = match.group(1).strip() if match else ""

    return TicketDraft(
        title=title or DEFAULT_TITLE,
        priority=extract_priority(text),
        attachments=extract_attachments(text),
        **sections,
    )
