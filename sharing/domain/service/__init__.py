"""Domain services."""

from .base import Service
from .clock import Clock, FrozenClock, SystemClock
from .friend_schedule_service import (
    FriendSchedules,
    FriendScheduleService,
    SharedScheduleVersion,
)
from .grant_reconciler import GrantReconciler, check_consistency
from .identity_service import (
    IdentityClient,
    IdentityRecord,
    IdentityService,
    VerifiedIdentity,
)
from .invitation_service import (
    AcceptedInvitation,
    CreatedInvitation,
    InvitationService,
)
from .notification_service import EmailDispatcher, NotificationService, term_to_string

__all__ = [
    "AcceptedInvitation",
    "Clock",
    "CreatedInvitation",
    "EmailDispatcher",
    "FriendSchedules",
    "FriendScheduleService",
    "FrozenClock",
    "GrantReconciler",
    "IdentityClient",
    "IdentityRecord",
    "IdentityService",
    "InvitationService",
    "NotificationService",
    "Service",
    "SharedScheduleVersion",
    "SystemClock",
    "check_consistency",
    "term_to_string",
]
