"""
Ticket configuration model — loaded from YAML, controls which sections the
LLM is asked to write, the environment block it fills in, and how custom
fields map onto the tracker's schema.
"""

from pydantic import BaseModel, Field

from bugticket.models.custom_fields import DEFAULT_CUSTOM_FIELDS, CustomFieldSpec


class TicketSection(BaseModel):
    id: str
    name: str
    enabled: bool = True


def _default_sections() -> list[TicketSection]:
    return [
        TicketSection(id="title", name="Title"),
        TicketSection(id="description", name="Description"),
        TicketSection(id="steps", name="Steps to Reproduce"),
        TicketSection(id="expected", name="Expected Behaviour"),
        TicketSection(id="actual", name="Actual Behaviour"),
        TicketSection(id="impact", name="Impact"),
        TicketSection(id="priority", name="Priority"),
        TicketSection(id="environment", name="Environment"),
        TicketSection(id="attachment", name="Attachment"),
    ]


class EnvironmentConfig(BaseModel):
    """Values written into the ticket's Environment section."""

    instance: str = ""
    branch: str = ""
    username: str = ""
    password: str = ""
    extra: dict[str, str] = Field(
        default_factory=dict,
        description="Additional 'Key: value' lines",
    )


class TicketConfig(BaseModel):
    """Project-specific configuration for generating and pushing tickets."""

    ticket_format: list[TicketSection] = Field(default_factory=_default_sections)

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    custom_fields: list[CustomFieldSpec] = Field(
        default_factory=lambda: list(DEFAULT_CUSTOM_FIELDS)
    )

    @property
    def enabled_sections(self) -> list[TicketSection]:
        return [s for s in self.ticket_format if s.enabled]
