"""
Tracker custom field shapes.

The tracker's schema dictates one JSON shape per field. Each shape is a
variant tagged by ``kind`` and knows how to render itself into the issue
payload; ``CustomFieldSpec`` maps a request key onto a tracker field and shape.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class FieldShape(str, Enum):
    NAME = "name"
    VALUE = "value"
    NAME_ARRAY = "name_array"


class NameObject(BaseModel):
    """Rendered as ``{"name": ...}`` (versions, for example)."""

    kind: Literal["name"] = "name"
    name: str

    def render(self) -> dict[str, str]:
        return {"name": self.name}


class ValueObject(BaseModel):
    """Rendered as ``{"value": ...}``, with ``id`` when the option id is known."""

    kind: Literal["value"] = "value"
    value: str
    option_id: str | None = None

    def render(self) -> dict[str, str]:
        if self.option_id:
            return {"id": self.option_id, "value": self.value}
        return {"value": self.value}


class NameArray(BaseModel):
    """Rendered as ``[{"name": ...}, ...]`` (components)."""

    kind: Literal["name_array"] = "name_array"
    names: list[str]

    def render(self) -> list[dict[str, str]]:
        return [{"name": n} for n in self.names]


CustomFieldValue = Annotated[
    Union[NameObject, ValueObject, NameArray],
    Field(discriminator="kind"),
]


class CustomFieldSpec(BaseModel):
    """How one request key lands in the tracker payload."""

    key: str = Field(..., description="Key in the request's customFields, e.g. 'productLine'")
    field_id: str = Field(..., description="Tracker field id, e.g. 'customfield_11924'")
    shape: FieldShape
    resolve_option_id: bool = Field(
        default=False,
        description="Look up the option id in the tracker's create metadata",
    )

    def build(self, raw: Any) -> CustomFieldValue | None:
        """Turn a raw request value into the tagged variant, or None if blank."""
        if raw is None:
            return None
        if self.shape is FieldShape.NAME_ARRAY:
            items = raw if isinstance(raw, (list, tuple)) else [raw]
            names = [str(i).strip() for i in items if str(i).strip()]
            return NameArray(names=names) if names else None

        text = str(raw).strip()
        if not text:
            return None
        if self.shape is FieldShape.NAME:
            return NameObject(name=text)
        return ValueObject(value=text)


DEFAULT_CUSTOM_FIELDS: list[CustomFieldSpec] = [
    CustomFieldSpec(key="instance", field_id="customfield_11888", shape=FieldShape.VALUE),
    CustomFieldSpec(key="productLine", field_id="customfield_11924", shape=FieldShape.VALUE),
    CustomFieldSpec(key="component", field_id="components", shape=FieldShape.NAME_ARRAY),
    CustomFieldSpec(key="foundVersion", field_id="customfield_11744", shape=FieldShape.NAME),
    CustomFieldSpec(
        key="engineeringTeam",
        field_id="customfield_11737",
        shape=FieldShape.VALUE,
        resolve_option_id=True,
    ),
]
