"""Entity store interface.

The engine manages exactly three document collections: invitations, sender
schedules and friend access records. Every operation that touches more than
one document runs inside a single store transaction, which is the only
concurrency control the engine relies on.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, TypeVar

import logfire

from sharing.domain.error import StoreConflictError, StoreWriteError
from sharing.domain.model import FriendAccess, Invitation, Schedule
from sharing.domain.value import InvitationId, UserId
from sharing.domain.value.common import ValueObject

T = TypeVar("T")

# One initial attempt plus a single retry with fresh reads
MAX_TRANSACTION_ATTEMPTS = 2


class Collection(str, Enum):
    """Logical document collections."""

    INVITATIONS = "friend-invites"
    SCHEDULES = "schedules"
    FRIENDS = "friends"


class PredicateOp(str, Enum):
    """Query operators supported by the store."""

    EQ = "=="
    ARRAY_CONTAINS_ANY = "array-contains-any"


class Predicate(ValueObject):
    """A single query condition on a top-level document field."""

    field: str
    op: PredicateOp = PredicateOp.EQ
    value: Any

    @classmethod
    def eq(cls, field: str, value: Any) -> "Predicate":
        return cls(field=field, op=PredicateOp.EQ, value=value)

    @classmethod
    def contains_any(cls, field: str, values: Sequence[Any]) -> "Predicate":
        return cls(field=field, op=PredicateOp.ARRAY_CONTAINS_ANY, value=list(values))

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate the predicate against a raw document.

        Documents missing the field never match.
        """
        if self.field not in document:
            return False
        actual = document[self.field]
        if self.op == PredicateOp.EQ:
            return actual == self.value
        if not isinstance(actual, list):
            return False
        return any(candidate in actual for candidate in self.value)


class EntityTransaction(ABC):
    """Typed read/write access to the three collections within one snapshot.

    Reads observe a consistent snapshot plus this transaction's own buffered
    writes. Writes are buffered and committed atomically when the
    transaction ends without error; an exception discards them all.
    Entities returned by reads are private copies and may be edited freely
    before being saved back.
    """

    @abstractmethod
    async def get_invitation(self, invite_id: InvitationId) -> Invitation | None:
        """Find an invitation by id.

        Args:
            invite_id: The invitation's document id

        Returns:
            The invitation if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_invitations(
        self, predicates: Sequence[Predicate]
    ) -> list[Invitation]:
        """Find invitations matching every predicate.

        An empty predicate list returns the whole collection.

        Args:
            predicates: Conditions on stored invitation fields
                (``sender``, ``friend``, ``term``, ``versions``, ``link``,
                ``validFor``)

        Returns:
            Matching invitations
        """
        pass

    @abstractmethod
    async def save_invitation(self, invitation: Invitation) -> None:
        """Create or fully replace an invitation."""
        pass

    @abstractmethod
    async def delete_invitation(self, invite_id: InvitationId) -> None:
        """Delete an invitation. Deleting a missing invitation is a no-op."""
        pass

    @abstractmethod
    async def get_schedule(self, user_id: UserId) -> Schedule | None:
        """Find a sender's schedule document (any schema generation)."""
        pass

    @abstractmethod
    async def save_schedule(self, user_id: UserId, schedule: Schedule) -> None:
        """Fully replace a sender's schedule document."""
        pass

    @abstractmethod
    async def get_friend_access(self, user_id: UserId) -> FriendAccess | None:
        """Find a friend's access record."""
        pass

    @abstractmethod
    async def save_friend_access(
        self, user_id: UserId, friend_access: FriendAccess
    ) -> None:
        """Fully replace a friend's access record."""
        pass


class EntityStore(ABC):
    """Transaction factory over the entity collections.

    Implementations live in the persistence layer.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[EntityTransaction]:
        """Open a transaction.

        The transaction commits when the context exits normally and raises
        ``StoreConflictError`` if a document it read changed in the meantime.
        """
        pass

    async def run_transaction(
        self,
        fn: Callable[[EntityTransaction], Awaitable[T]],
        *,
        name: str = "transaction",
    ) -> T:
        """Run ``fn`` inside a transaction, retrying once on conflict.

        ``fn`` must be safe to re-run: all state it depends on has to be read
        through the transaction it is given.

        Args:
            fn: Transaction body
            name: Span name for observability

        Returns:
            Whatever ``fn`` returns

        Raises:
            StoreWriteError: If the transaction conflicts twice
        """
        with logfire.span("entity_store.run_transaction", transaction=name):
            attempt = 1
            while True:
                try:
                    async with self.transaction() as tx:
                        result = await fn(tx)
                    return result
                except StoreConflictError as e:
                    if attempt >= MAX_TRANSACTION_ATTEMPTS:
                        logfire.error(
                            "Transaction conflict, giving up",
                            transaction=name,
                            attempts=attempt,
                        )
                        raise StoreWriteError(
                            f"Transaction {name} failed after {attempt} attempts"
                        ) from e
                    logfire.warn(
                        "Transaction conflict, retrying",
                        transaction=name,
                        attempt=attempt,
                    )
                    attempt += 1
