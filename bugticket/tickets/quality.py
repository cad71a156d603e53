"""
Heuristic completeness score for a generated ticket.
"""

import re

from pydantic import BaseModel, Field

_ESSENTIAL_LABELS = (
    "**Title:**",
    "**Description:**",
    "**Steps to Reproduce:**",
    "**Expected Behaviour:**",
    "**Actual Behaviour:**",
)
_NUMBERED_STEP_RE = re.compile(r"\d+\.")
_DESCRIPTION_RE = re.compile(r"\*\*Description:\*\*(.*?)\*\*", re.DOTALL)

# (minimum score, rating, colour), highest first
RATING_BANDS: list[tuple[int, str, str]] = [
    (90, "Excellent", "green"),
    (75, "Very Good", "blue"),
    (60, "Good", "teal"),
    (40, "Fair", "yellow"),
    (0, "Needs Improvement", "red"),
]


class QualityScore(BaseModel):
    score: int
    rating: str
    color: str
    feedback: list[str] = Field(default_factory=list)


def score_ticket(text: str) -> QualityScore:
    """Score a ticket out of 100 on structure, steps and description depth."""
    score = 0
    feedback: list[str] = []

    score += sum(8 for label in _ESSENTIAL_LABELS if label in text)

    steps = _NUMBERED_STEP_RE.findall(text)
    if len(steps) >= 3:
        score += 20
    elif steps:
        score += len(steps) * 5
        feedback.append("Add more detailed steps")
    else:
        feedback.append("Missing reproduction steps")

    if "**Priority:**" in text:
        score += 10
    if "**Environment:**" in text:
        score += 10

    description = _DESCRIPTION_RE.search(text)
    body_len = len(description.group(1)) if description else 0
    if body_len > 100:
        score += 20
    elif body_len > 50:
        score += 10
        feedback.append("Description could be more detailed")
    else:
        feedback.append("Description is too brief")

    for minimum, rating, color in RATING_BANDS:
        if score >= minimum:
            break

    return QualityScore(score=score, rating=rating, color=color, feedback=feedback)
