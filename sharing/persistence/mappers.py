"""Mappers between stored JSON documents and domain models.

Stored documents keep the camelCase field names used by the web client
so existing data loads unchanged.
"""

from datetime import datetime
from typing import Any

from sharing.domain.model import FriendAccess, Invitation, Schedule
from sharing.domain.service.schema import dump_schedule, parse_schedule
from sharing.domain.value import InvitationId, Term, UserId, VersionId


def document_to_invitation(invite_id: str, document: dict[str, Any]) -> Invitation:
    """Convert a stored invitation document to an Invitation.

    Args:
        invite_id: Document id
        document: Stored document

    Returns:
        Invitation domain model
    """
    created = document["created"]
    if isinstance(created, str):
        created = datetime.fromisoformat(created)
    return Invitation(
        id=InvitationId(invite_id),
        sender=UserId(document["sender"]),
        term=Term(document["term"]),
        versions=tuple(VersionId(v) for v in document["versions"]),
        created_at=created,
        is_link=document.get("link", False),
        valid_for_seconds=document.get("validFor"),
        friend=document.get("friend"),
    )


def invitation_to_document(invitation: Invitation) -> dict[str, Any]:
    """Convert an Invitation to its stored document.

    Optional fields are omitted rather than stored as null so equality
    queries on them only match documents that carry them.
    """
    document: dict[str, Any] = {
        "sender": invitation.sender,
        "term": invitation.term,
        "versions": list(invitation.versions),
        "created": invitation.created_at.isoformat(),
        "link": invitation.is_link,
    }
    if invitation.valid_for_seconds is not None:
        document["validFor"] = invitation.valid_for_seconds
    if invitation.friend is not None:
        document["friend"] = invitation.friend
    return document


def document_to_schedule(document: dict[str, Any]) -> Schedule:
    return parse_schedule(document)


def schedule_to_document(schedule: Schedule) -> dict[str, Any]:
    return dump_schedule(schedule)


def document_to_friend_access(document: dict[str, Any]) -> FriendAccess:
    return FriendAccess.model_validate(document)


def friend_access_to_document(friend_access: FriendAccess) -> dict[str, Any]:
    return friend_access.model_dump(by_alias=True, mode="json")
