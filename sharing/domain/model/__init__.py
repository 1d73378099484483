"""Domain model entities for schedule sharing."""

from sharing.domain.model.friend_access import FriendAccess, FriendTermAccess, SenderInfo
from sharing.domain.model.invitation import DEFAULT_VALID_FOR_SECONDS, Invitation
from sharing.domain.model.schedule import (
    FriendShare,
    Schedule,
    V2Schedule,
    V2ScheduleVersion,
    V2TermSchedule,
    V3Schedule,
    V3ScheduleVersion,
    V3TermSchedule,
)

__all__ = [
    "DEFAULT_VALID_FOR_SECONDS",
    "FriendAccess",
    "FriendShare",
    "FriendTermAccess",
    "Invitation",
    "Schedule",
    "SenderInfo",
    "V2Schedule",
    "V2ScheduleVersion",
    "V2TermSchedule",
    "V3Schedule",
    "V3ScheduleVersion",
    "V3TermSchedule",
]
