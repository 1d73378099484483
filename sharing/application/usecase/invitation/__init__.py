"""Invitation use cases."""

from sharing.application.usecase.invitation.create_invitation import (
    CreateInvitationRequest,
    CreateInvitationResponse,
    CreateInvitationUseCase,
)
from sharing.application.usecase.invitation.create_invitation_link import (
    CreateInvitationLinkRequest,
    CreateInvitationLinkResponse,
    CreateInvitationLinkUseCase,
)
from sharing.application.usecase.invitation.fetch_friend_schedules import (
    FetchFriendSchedulesRequest,
    FetchFriendSchedulesResponse,
    FetchFriendSchedulesUseCase,
    FriendScheduleItem,
    SharedVersionItem,
)
from sharing.application.usecase.invitation.handle_invitation import (
    HandleInvitationRequest,
    HandleInvitationResponse,
    HandleInvitationUseCase,
)
from sharing.application.usecase.invitation.revoke_invitation import (
    RevokeInvitationRequest,
    RevokeInvitationUseCase,
)
from sharing.application.usecase.invitation.sweep_invitations import (
    SweepInvitationsResponse,
    SweepInvitationsUseCase,
)

__all__ = [
    "CreateInvitationLinkRequest",
    "CreateInvitationLinkResponse",
    "CreateInvitationLinkUseCase",
    "CreateInvitationRequest",
    "CreateInvitationResponse",
    "CreateInvitationUseCase",
    "FetchFriendSchedulesRequest",
    "FetchFriendSchedulesResponse",
    "FetchFriendSchedulesUseCase",
    "FriendScheduleItem",
    "HandleInvitationRequest",
    "HandleInvitationResponse",
    "HandleInvitationUseCase",
    "RevokeInvitationRequest",
    "RevokeInvitationUseCase",
    "SharedVersionItem",
    "SweepInvitationsResponse",
    "SweepInvitationsUseCase",
]
