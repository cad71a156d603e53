"""
Pydantic models for the proxy's request and response bodies.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bugticket.models.ticket import Attachment, TicketDraft

# ── LLM proxy ───────────────────────────────────────────


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageSource(BaseModel):
    type: Literal["base64"] = "base64"
    media_type: str = Field(..., description="e.g. image/png")
    data: str = Field(..., repr=False)


class ImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: ImageSource


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock],
    Field(discriminator="type"),
]


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str | list[ContentBlock]


class GenerateRequest(BaseModel):
    """Body of POST /api/generate-ticket."""

    messages: list[ChatMessage] = Field(..., min_length=1)


class GenerateResponse(BaseModel):
    id: str = ""
    model: str
    role: Literal["assistant"] = "assistant"
    content: list[TextBlock]
    stop_reason: str | None = None
    usage: dict[str, int | None] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content)


# ── Tracker proxy ──────────────────────────────────────


class TrackerCredentials(BaseModel):
    """Request-scoped tracker credentials; never stored or logged."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("url", "jiraUrl"),
    )
    email: str = Field(..., min_length=1)
    api_token: str = Field(
        ...,
        min_length=1,
        alias="apiToken",
        repr=False,
    )


class ConnectionTestRequest(TrackerCredentials):
    """Body of POST /api/test-jira."""


class ConnectionTestResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    display_name: str | None = Field(None, alias="displayName")
    email_address: str | None = Field(None, alias="emailAddress")
    account_id: str | None = Field(None, alias="accountId")


class PushRequest(TrackerCredentials):
    """Body of POST /api/push-to-jira."""

    project_key: str = Field(..., min_length=1, alias="projectKey")
    fields: TicketDraft
    custom_fields: dict[str, Any] = Field(
        default_factory=dict, alias="customFields"
    )
    attachments: list[Attachment] = Field(default_factory=list)


class AttachmentReport(BaseModel):
    uploaded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class PushResponse(BaseModel):
    key: str
    id: str
    self_url: str | None = Field(None, alias="self")
    url: str
    attachments: AttachmentReport = Field(default_factory=AttachmentReport)

    model_config = ConfigDict(populate_by_name=True)
