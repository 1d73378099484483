"""Schedule documents owned by a sender.

Two schema generations coexist in storage. Generation 2 has no sharing
metadata. Generation 3 adds a ``friends`` map on every schedule version,
keyed by friend user id. The two are modelled as a tagged variant on the
``version`` field; see ``sharing.domain.service.schema`` for the only code
that inspects the tag.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import Field

from sharing.domain.model.common import DocumentModel
from sharing.domain.value import FriendShareStatus, Term, UserId, VersionId


class FriendShare(DocumentModel):
    """Sharing state of one schedule version for one friend."""

    email: str
    status: FriendShareStatus


class V2ScheduleVersion(DocumentModel):
    """A named schedule version (generation 2)."""

    name: str
    created_at: str = Field(alias="createdAt")
    schedule: dict[str, Any] = Field(default_factory=dict)  # Opaque payload


class V3ScheduleVersion(V2ScheduleVersion):
    """A named schedule version with friend sharing metadata (generation 3)."""

    friends: dict[UserId, FriendShare] = Field(default_factory=dict)


class V2TermSchedule(DocumentModel):
    versions: dict[VersionId, V2ScheduleVersion] = Field(default_factory=dict)


class V3TermSchedule(DocumentModel):
    versions: dict[VersionId, V3ScheduleVersion] = Field(default_factory=dict)


class V2Schedule(DocumentModel):
    """Generation 2 schedule document."""

    version: Literal[2] = 2
    terms: dict[Term, V2TermSchedule] = Field(default_factory=dict)


class V3Schedule(DocumentModel):
    """Generation 3 schedule document."""

    version: Literal[3] = 3
    terms: dict[Term, V3TermSchedule] = Field(default_factory=dict)


Schedule = Annotated[Union[V2Schedule, V3Schedule], Field(discriminator="version")]
