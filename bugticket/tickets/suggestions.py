"""
Keyword-driven priority, impact and tag suggestions for a raw bug description.

Shown to the reporter before generation; the LLM still decides the final priority.
"""

import re

from pydantic import BaseModel, Field

from bugticket.models.ticket import Priority

# (pattern, priority, impact, tag), first match wins
_SEVERITY_RULES: list[tuple[re.Pattern, Priority, str, str | None]] = [
    (
        re.compile(r"crash|critical|production|down|outage|data loss|security"),
        Priority.P1,
        "Critical",
        "urgent",
    ),
    (
        re.compile(r"login|payment|checkout|error|broken|cannot|unable|fails"),
        Priority.P2,
        "High",
        "important",
    ),
    (re.compile(r"slow|display|ui|layout|mobile"), Priority.P3, "Medium", None),
]

_CATEGORY_TAGS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"login|auth|password|signin"), "authentication"),
    (re.compile(r"button|menu|display|ui|layout"), "ui"),
    (re.compile(r"api|server|network|request"), "backend"),
    (re.compile(r"mobile|tablet|responsive"), "mobile"),
    (re.compile(r"slow|performance|loading"), "performance"),
]


class Suggestion(BaseModel):
    priority: Priority
    impact: str
    tags: list[str] = Field(default_factory=list)


def suggest(description: str) -> Suggestion | None:
    """Suggest a priority for ``description``; None when it is blank."""
    text = description.strip().lower()
    if not text:
        return None

    priority, impact, tags = Priority.P4, "Low", []
    for pattern, rule_priority, rule_impact, tag in _SEVERITY_RULES:
        if pattern.search(text):
            priority, impact = rule_priority, rule_impact
            if tag:
                tags.append(tag)
            break

    tags.extend(tag for pattern, tag in _CATEGORY_TAGS if pattern.search(text))
    return Suggestion(priority=priority, impact=impact, tags=tags)
