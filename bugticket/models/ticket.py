"""
Ticket draft and attachment models shared by the parser, the proxy and the client.
"""

import base64
import binascii
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class Priority(str, Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @property
    def tracker_id(self) -> str:
        return PRIORITY_TRACKER_IDS[self]

    @classmethod
    def from_tracker_id(cls, tracker_id: str) -> "Priority":
        for priority, pid in PRIORITY_TRACKER_IDS.items():
            if pid == str(tracker_id).strip():
                return priority
        raise ValueError(f"Unknown priority id {tracker_id!r}")


# Standard Jira ids: 1=Highest, 2=High, 3=Medium, 4=Low
PRIORITY_TRACKER_IDS: dict[Priority, str] = {
    Priority.P1: "1",
    Priority.P2: "2",
    Priority.P3: "3",
    Priority.P4: "4",
}

DEFAULT_PRIORITY = Priority.P3
DEFAULT_TITLE = "Bug Report"


class TicketDraft(BaseModel):
    """Structured bug report parsed from the LLM's text output.

    Accepts ``priority``, or the ``priorityName`` / ``priorityId`` pair the
    browser form sends, and serialises the pair back out for the tracker proxy.
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = DEFAULT_TITLE
    description: str = ""
    steps: str = ""
    expected: str = ""
    actual: str = ""
    impact: str = ""
    environment: str = ""
    priority: Priority = DEFAULT_PRIORITY
    attachments: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _coerce_priority(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        priority = data.get("priority") or data.pop("priorityName", None)
        priority_id = data.pop("priorityId", None)
        if not priority and priority_id:
            priority = Priority.from_tracker_id(priority_id)
        if isinstance(priority, str):
            priority = priority.strip().upper()
        if priority:
            data["priority"] = priority
        else:
            data.pop("priority", None)
        if not data.get("title"):
            data.pop("title", None)
        return data

    @computed_field(alias="priorityId")
    @property
    def priority_id(self) -> str:
        return self.priority.tracker_id

    @computed_field(alias="priorityName")
    @property
    def priority_name(self) -> str:
        return self.priority.value


MAX_FILENAME_LENGTH = 255
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]")
_DOT_RUN_RE = re.compile(r"\.{2,}")


def sanitize_filename(filename: str) -> str:
    """Reduce a client-supplied name to ``[A-Za-z0-9._-]`` with no ``..``."""
    if not filename:
        return "file"
    cleaned = _UNSAFE_FILENAME_RE.sub("_", filename)
    cleaned = _DOT_RUN_RE.sub(".", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH]


class Attachment(BaseModel):
    """A file to attach to one tracker issue; data is base64 or a data URL."""

    model_config = ConfigDict(populate_by_name=True)

    filename: str
    content_type: str = Field(
        default="application/octet-stream", alias="contentType"
    )
    data: str = Field(..., repr=False)

    @field_validator("filename", mode="before")
    @classmethod
    def _sanitize_filename(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return sanitize_filename(value or "")
        return value

    def content(self) -> bytes:
        """Decode the payload.

        Raises:
            ValueError: payload is not valid base64.
        """
        payload = self.data.split(",", 1)[1] if "," in self.data else self.data
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Attachment {self.filename!r} is not valid base64") from e
