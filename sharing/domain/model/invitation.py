"""Invitation entity.

An invitation offers a friend read access to one or more versions of the
sender's schedule for one term. It is either bound to a friend (email
invitation) or anonymous and reusable (link invitation).
"""

from datetime import datetime, timedelta

from pydantic import Field, field_validator, model_validator

from sharing.domain.model.common import DomainModel
from sharing.domain.value import InvitationId, Term, UserId, VersionId

DEFAULT_VALID_FOR_SECONDS = 7 * 24 * 60 * 60


class Invitation(DomainModel):
    """Invitation entity.

    Business rules:
    - Exactly one of ``friend`` / ``is_link`` is set
    - Versions are non-empty, unique and stored sorted so duplicate
      invitations compare equal
    - Expiry is evaluated lazily: expired once
      ``now - created_at >= valid_for_seconds``
    - Email invitations are deleted on acceptance, link invitations stay
      reusable until revoked or expired
    """

    id: InvitationId
    sender: UserId
    term: Term
    versions: tuple[VersionId, ...] = Field(min_length=1)
    created_at: datetime
    is_link: bool = False
    valid_for_seconds: int | None = Field(default=None, gt=0)
    friend: UserId | None = None

    @field_validator("versions")
    @classmethod
    def sort_versions(cls, v: tuple[VersionId, ...]) -> tuple[VersionId, ...]:
        """Store versions sorted and without repeats."""
        return tuple(sorted(set(v)))

    @model_validator(mode="after")
    def check_target(self) -> "Invitation":
        """Link invitations never carry a friend, email invitations always do."""
        if self.is_link and self.friend is not None:
            raise ValueError("Link invitations cannot target a friend")
        if not self.is_link and self.friend is None:
            raise ValueError("Email invitations must target a friend")
        return self

    @property
    def valid_for(self) -> timedelta:
        """Validity window, falling back to the 7 day default."""
        return timedelta(seconds=self.valid_for_seconds or DEFAULT_VALID_FOR_SECONDS)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + self.valid_for

    def is_expired(self, now: datetime) -> bool:
        """Check whether the invitation has expired at ``now``."""
        return now - self.created_at >= self.valid_for
