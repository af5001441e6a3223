# bmsync Payload Models
# Pydantic models for the metadata stored with each customization item

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Payload(BaseModel):
    """
    Base for remote payloads.

    Only the identifying fields are declared. Every other key the remote
    sends is kept as an extra and written back unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_json_data(self) -> dict[str, Any]:
        """Dump to plain JSON data, keeping only keys that were actually set."""
        return self.model_dump(mode="json", exclude_unset=True, by_alias=True)


class ObjectDefinition(Payload):
    """Table/object definition (definition.json)."""

    internal_name: Optional[str] = None
    display_name: Optional[str] = None


class FieldDefinition(Payload):
    """Custom field of an object."""

    internal_name: Optional[str] = None
    display_name: Optional[str] = None
    type: Optional[str] = None


class ActionMetadata(Payload):
    """Object action metadata (<name>.meta.json)."""

    title: Optional[str] = None
    action_name: Optional[str] = None
    type: Optional[str] = None


class BackendScriptMetadata(Payload):
    """Backend script metadata."""

    name: Optional[str] = None


class ReportMetadata(Payload):
    """Custom report metadata."""

    internal_name: Optional[str] = None
    display_name: Optional[str] = None


class PageMetadata(Payload):
    """Custom page metadata."""

    name: Optional[str] = None
    url: Optional[str] = None
