"""Friend schedule domain service.

Reads the schedules a friend has been granted and prunes access entries
that point at versions the sender has since deleted.
"""

from collections.abc import Mapping, Sequence
from functools import partial
from typing import Any

import logfire

from sharing.domain.error import InvalidArgumentsError, NotAuthorizedError
from sharing.domain.repository import EntityStore, EntityTransaction
from sharing.domain.value import Term, UserId, VersionId
from sharing.domain.value.common import ValueObject

from .base import Service


class SharedScheduleVersion(ValueObject):
    """A schedule version as seen by a friend."""

    name: str
    schedule: dict[str, Any]


FriendSchedules = dict[UserId, dict[VersionId, SharedScheduleVersion]]


class FriendScheduleService(Service):
    """Domain service for reading shared schedules."""

    def __init__(self, entity_store: EntityStore) -> None:
        """Initialize friend schedule service.

        Args:
            entity_store: Transactional store for schedules and access records
        """
        self.entity_store = entity_store

    async def fetch_friend_schedules(
        self,
        friend: UserId,
        term: Term,
        requested: Mapping[UserId, Sequence[VersionId]],
    ) -> FriendSchedules:
        """Return the requested versions of each sender's schedule.

        Only versions both requested and granted are returned. Access entries
        for versions missing from the sender's schedule are pruned, and a
        sender whose schedule has no such term loses its entry entirely.

        Args:
            friend: Verified reading user
            term: Term to read
            requested: Version ids wanted per sender

        Returns:
            Name and payload of each readable version, keyed by sender

        Raises:
            InvalidArgumentsError: If nothing was requested
            NotAuthorizedError: If a sender has granted no access in ``term``
        """
        if not requested:
            raise InvalidArgumentsError()

        with logfire.span(
            "friend_schedule_service.fetch_friend_schedules",
            friend=friend,
            term=term,
            senders=list(requested),
        ):
            return await self.entity_store.run_transaction(
                partial(self._fetch, friend=friend, term=term, requested=requested),
                name="fetch_friend_schedules",
            )

    async def _fetch(
        self,
        tx: EntityTransaction,
        *,
        friend: UserId,
        term: Term,
        requested: Mapping[UserId, Sequence[VersionId]],
    ) -> FriendSchedules:
        friend_access = await tx.get_friend_access(friend)
        term_access = friend_access.terms.get(term) if friend_access else None
        if friend_access is None or term_access is None:
            logfire.warn("No friend access for term", friend=friend, term=term)
            raise NotAuthorizedError("Could not fetch friend data")

        accessible = term_access.accessible_schedules
        unknown = [sender for sender in requested if sender not in accessible]
        if unknown:
            logfire.warn("Unauthorized senders requested", friend=friend, senders=unknown)
            raise NotAuthorizedError("Invalid friend ID(s)")

        result: FriendSchedules = {}
        pruned = False
        for sender, wanted in requested.items():
            result[sender] = {}
            schedule = await tx.get_schedule(sender)
            term_schedule = schedule.terms.get(term) if schedule is not None else None
            if term_schedule is None:
                del accessible[sender]
                pruned = True
                continue

            granted = accessible[sender]
            wanted_ids = set(wanted)
            for version_id, version in term_schedule.versions.items():
                if version_id in wanted_ids and version_id in granted:
                    result[sender][version_id] = SharedScheduleVersion(
                        name=version.name, schedule=version.schedule
                    )

            existing = [v for v in granted if v in term_schedule.versions]
            if len(existing) != len(granted):
                pruned = True
                if existing:
                    accessible[sender] = existing
                else:
                    del accessible[sender]

        if pruned:
            await tx.save_friend_access(friend, friend_access)
            logfire.info("Stale friend access pruned", friend=friend, term=term)
        return result
