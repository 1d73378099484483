"""Domain value objects for schedule sharing."""

from sharing.domain.value.identifiers import InvitationId, Term, UserId, VersionId
from sharing.domain.value.types import (
    EmailAddress,
    FriendShareStatus,
    GrantStatus,
)

__all__ = [
    # Identifiers
    "UserId",
    "InvitationId",
    "Term",
    "VersionId",
    # Types
    "EmailAddress",
    "FriendShareStatus",
    "GrantStatus",
]
