"""Base models for all domain entities."""

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Base class for immutable domain models.

    Provides common configuration for immutability and custom types.
    """

    model_config = ConfigDict(
        frozen=True,  # Changes go through model_copy(update=...)
        arbitrary_types_allowed=True,
    )


class DocumentModel(BaseModel):
    """Base class for nested store documents edited in place.

    Schedules and friend access records are large nested maps that the
    grant reconciler patches key by key, so they stay mutable. Field
    aliases carry the camelCase names used in the stored documents and
    unknown keys are preserved so opaque payloads round-trip untouched.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        extra="allow",
    )
