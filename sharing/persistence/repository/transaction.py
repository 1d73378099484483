"""Buffered document transaction shared by the store backends.

Backends supply raw document reads and a commit step. This base class
turns them into the typed ``EntityTransaction`` contract: it buffers
writes and lets reads see the transaction's own writes. For conflict
detection it records the revision of every document it read and the ids
every query returned, so the backend can reject the commit if a document
changed or a query would now match a different set of documents.
"""

import copy
from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, NamedTuple

from sharing.domain.model import FriendAccess, Invitation, Schedule
from sharing.domain.repository import Collection, EntityTransaction, Predicate
from sharing.domain.value import InvitationId, UserId
from sharing.persistence.mappers import (
    document_to_friend_access,
    document_to_invitation,
    document_to_schedule,
    friend_access_to_document,
    invitation_to_document,
    schedule_to_document,
)

DocumentKey = tuple[Collection, str]


class RecordedQuery(NamedTuple):
    """A query run by a transaction and the committed ids it matched."""

    collection: Collection
    predicates: tuple[Predicate, ...]
    matched: frozenset[str]


# Revision recorded for a document that did not exist when read
ABSENT_REVISION = 0


class DocumentTransaction(EntityTransaction):
    """Transaction over JSON documents with optimistic conflict tracking."""

    def __init__(self) -> None:
        self.read_revisions: dict[DocumentKey, int] = {}
        self.pending_writes: dict[DocumentKey, dict[str, Any] | None] = {}
        self.queries: list[RecordedQuery] = []

    @abstractmethod
    async def _fetch(self, key: DocumentKey) -> tuple[dict[str, Any] | None, int]:
        """Read one document and its revision from the backend.

        Returns:
            A private copy of the document (None if absent) and its revision
        """
        pass

    @abstractmethod
    async def _query(
        self, collection: Collection, predicates: Sequence[Predicate]
    ) -> list[tuple[str, dict[str, Any], int]]:
        """Read every committed document matching all predicates.

        Returns:
            (document id, private copy, revision) triples
        """
        pass

    async def _get(self, collection: Collection, doc_id: str) -> dict[str, Any] | None:
        key = (collection, doc_id)
        if key in self.pending_writes:
            return copy.deepcopy(self.pending_writes[key])
        document, revision = await self._fetch(key)
        self.read_revisions.setdefault(key, revision)
        return document

    async def _find(
        self, collection: Collection, predicates: Sequence[Predicate]
    ) -> list[tuple[str, dict[str, Any]]]:
        found: dict[str, dict[str, Any]] = {}
        for doc_id, document, revision in await self._query(collection, predicates):
            self.read_revisions.setdefault((collection, doc_id), revision)
            found[doc_id] = document
        self.queries.append(
            RecordedQuery(collection, tuple(predicates), frozenset(found))
        )

        # Overlay this transaction's own writes
        for (written_collection, doc_id), document in self.pending_writes.items():
            if written_collection != collection:
                continue
            if document is not None and all(p.matches(document) for p in predicates):
                found[doc_id] = copy.deepcopy(document)
            else:
                found.pop(doc_id, None)
        return sorted(found.items())

    def _put(self, collection: Collection, doc_id: str, document: dict[str, Any]) -> None:
        self.pending_writes[(collection, doc_id)] = copy.deepcopy(document)

    def _delete(self, collection: Collection, doc_id: str) -> None:
        self.pending_writes[(collection, doc_id)] = None

    async def get_invitation(self, invite_id: InvitationId) -> Invitation | None:
        document = await self._get(Collection.INVITATIONS, invite_id)
        if document is None:
            return None
        return document_to_invitation(invite_id, document)

    async def find_invitations(
        self, predicates: Sequence[Predicate]
    ) -> list[Invitation]:
        return [
            document_to_invitation(doc_id, document)
            for doc_id, document in await self._find(Collection.INVITATIONS, predicates)
        ]

    async def save_invitation(self, invitation: Invitation) -> None:
        self._put(
            Collection.INVITATIONS, invitation.id, invitation_to_document(invitation)
        )

    async def delete_invitation(self, invite_id: InvitationId) -> None:
        self._delete(Collection.INVITATIONS, invite_id)

    async def get_schedule(self, user_id: UserId) -> Schedule | None:
        document = await self._get(Collection.SCHEDULES, user_id)
        return document_to_schedule(document) if document is not None else None

    async def save_schedule(self, user_id: UserId, schedule: Schedule) -> None:
        self._put(Collection.SCHEDULES, user_id, schedule_to_document(schedule))

    async def get_friend_access(self, user_id: UserId) -> FriendAccess | None:
        document = await self._get(Collection.FRIENDS, user_id)
        if document is None:
            return None
        return document_to_friend_access(document)

    async def save_friend_access(
        self, user_id: UserId, friend_access: FriendAccess
    ) -> None:
        self._put(
            Collection.FRIENDS, user_id, friend_access_to_document(friend_access)
        )

    async def changed_queries(self) -> list[RecordedQuery]:
        """Queries whose committed matches differ from what this transaction saw.

        Backends call this while holding their commit lock.
        """
        changed = []
        for query in self.queries:
            rows = await self._query(query.collection, query.predicates)
            now_matched = {doc_id for doc_id, _, _ in rows}
            if now_matched != query.matched:
                changed.append(query)
        return changed
