"""Fetch friend schedules use case."""

from typing import Any

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.error import InvalidArgumentsError, MissingTokenError
from sharing.domain.service import FriendScheduleService, IdentityService
from sharing.domain.value import Term, UserId, VersionId


class FetchFriendSchedulesRequest(BaseModel):
    """Request for schedule versions shared with the caller.

    ``friends`` maps each sender id to the version ids wanted from them.
    """

    identity_token: str | None = None
    term: str = ""
    friends: dict[str, list[str]] = {}


class SharedVersionItem(BaseModel):
    """One readable schedule version."""

    name: str
    schedule: dict[str, Any]


class FriendScheduleItem(BaseModel):
    """Readable versions of one sender's schedule."""

    versions: dict[str, SharedVersionItem]


class FetchFriendSchedulesResponse(BaseModel):
    """Readable versions keyed by sender id."""

    schedules: dict[str, FriendScheduleItem]


class FetchFriendSchedulesUseCase(
    BaseUseCase[FetchFriendSchedulesRequest, FetchFriendSchedulesResponse]
):
    """Use case for reading schedules other users have shared."""

    def __init__(
        self,
        identity_service: IdentityService,
        friend_schedule_service: FriendScheduleService,
    ) -> None:
        """Initialize use case.

        Args:
            identity_service: Identity domain service
            friend_schedule_service: Friend schedule domain service
        """
        self.identity_service = identity_service
        self.friend_schedule_service = friend_schedule_service

    async def execute(
        self, request: FetchFriendSchedulesRequest
    ) -> FetchFriendSchedulesResponse:
        with logfire.span("fetch_friend_schedules.execute", term=request.term):
            if not request.identity_token:
                raise MissingTokenError()
            if not request.term or not request.friends:
                raise InvalidArgumentsError()

            reader = await self.identity_service.authenticate(request.identity_token)
            schedules = await self.friend_schedule_service.fetch_friend_schedules(
                reader.uid,
                Term(request.term),
                {
                    UserId(sender): [VersionId(v) for v in versions]
                    for sender, versions in request.friends.items()
                },
            )
            return FetchFriendSchedulesResponse(
                schedules={
                    sender: FriendScheduleItem(
                        versions={
                            version_id: SharedVersionItem(
                                name=version.name, schedule=version.schedule
                            )
                            for version_id, version in versions.items()
                        }
                    )
                    for sender, versions in schedules.items()
                }
            )
