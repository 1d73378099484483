"""PostgreSQL implementation of the entity store.

Commits validate under transaction-scoped advisory locks, one per
collection the transaction touched, so two commits over the same
collection never validate at the same time. Writes are additionally
conditional on the revision that was read: a document read as absent is
inserted only if it still does not exist, and an existing one is updated
only if its revision is unchanged.
"""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

import logfire
from sqlalchemy import and_, func, select, type_coerce, update
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.types import String

from sharing.domain.error import StoreConflictError, StoreWriteError
from sharing.domain.repository import (
    Collection,
    EntityStore,
    EntityTransaction,
    Predicate,
    PredicateOp,
)
from sharing.persistence.repository.transaction import (
    ABSENT_REVISION,
    DocumentKey,
    DocumentTransaction,
)
from sharing.persistence.tables import documents_table


def _predicate_clause(predicate: Predicate):
    field = documents_table.c.data[predicate.field]
    if predicate.op == PredicateOp.EQ:
        return field == type_coerce(predicate.value, JSONB)
    # JSONB ?| matches arrays holding any of the given strings
    return field.has_any(type_coerce(predicate.value, ARRAY(String)))


def _key_clause(key: DocumentKey):
    collection, doc_id = key
    return and_(
        documents_table.c.collection == collection.value,
        documents_table.c.id == doc_id,
    )


def _conflict(key: DocumentKey) -> StoreConflictError:
    collection, doc_id = key
    return StoreConflictError(f"{collection.value}/{doc_id} changed during transaction")


class PostgresTransaction(DocumentTransaction):
    """Transaction backed by one database session."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction with database session.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__()
        self.session = session

    async def _fetch(self, key: DocumentKey) -> tuple[dict[str, Any] | None, int]:
        stmt = select(documents_table.c.data, documents_table.c.revision).where(
            _key_clause(key)
        )
        row = (await self.session.execute(stmt)).first()
        if row is None:
            return None, ABSENT_REVISION
        # Tombstones read as absent but keep their revision
        return row.data, row.revision

    async def _query(
        self, collection: Collection, predicates: Sequence[Predicate]
    ) -> list[tuple[str, dict[str, Any], int]]:
        stmt = select(
            documents_table.c.id, documents_table.c.data, documents_table.c.revision
        ).where(
            documents_table.c.collection == collection.value,
            documents_table.c.data.is_not(None),
            *(_predicate_clause(p) for p in predicates),
        )
        result = await self.session.execute(stmt)
        return [(row.id, row.data, row.revision) for row in result]

    async def commit(self) -> None:
        """Validate reads and queries, then apply buffered writes.

        Raises:
            StoreConflictError: If a document read earlier has changed, or a
                query would now match different documents
        """
        await self._lock_collections()

        for key, expected in sorted(self.read_revisions.items()):
            stmt = select(documents_table.c.revision).where(_key_clause(key))
            current = (await self.session.execute(stmt)).scalar_one_or_none()
            if (current or ABSENT_REVISION) != expected:
                raise _conflict(key)

        changed = await self.changed_queries()
        if changed:
            raise StoreConflictError(
                f"{changed[0].collection.value} query results changed during transaction"
            )

        for key, document in self.pending_writes.items():
            await self._write(key, document, self.read_revisions.get(key))

        await self.session.commit()

    async def _lock_collections(self) -> None:
        collections = {collection for collection, _ in self.read_revisions}
        collections |= {collection for collection, _ in self.pending_writes}
        collections |= {query.collection for query in self.queries}
        # Fixed order so concurrent commits cannot deadlock
        for collection in sorted(c.value for c in collections):
            await self.session.execute(
                select(func.pg_advisory_xact_lock(func.hashtext(f"documents:{collection}")))
            )

    async def _write(
        self, key: DocumentKey, document: dict[str, Any] | None, expected: int | None
    ) -> None:
        """Apply one buffered write.

        ``expected`` is the revision read by this transaction, None for a
        blind write of a document it never read.
        """
        collection, doc_id = key

        if document is None:
            if expected == ABSENT_REVISION:
                return
            stmt = update(documents_table).where(_key_clause(key))
            if expected is not None:
                stmt = stmt.where(documents_table.c.revision == expected)
            stmt = stmt.values(
                data=None,
                revision=documents_table.c.revision + 1,
                updated_at=func.now(),
            ).returning(documents_table.c.revision)
            written = (await self.session.execute(stmt)).first()
            if written is None and expected is not None:
                raise _conflict(key)
            return

        if expected == ABSENT_REVISION:
            stmt = (
                insert(documents_table)
                .values(collection=collection.value, id=doc_id, data=document, revision=1)
                .on_conflict_do_nothing(
                    index_elements=[documents_table.c.collection, documents_table.c.id]
                )
                .returning(documents_table.c.revision)
            )
        elif expected is not None:
            stmt = (
                update(documents_table)
                .where(_key_clause(key), documents_table.c.revision == expected)
                .values(
                    data=document,
                    revision=documents_table.c.revision + 1,
                    updated_at=func.now(),
                )
                .returning(documents_table.c.revision)
            )
        else:
            stmt = insert(documents_table).values(
                collection=collection.value, id=doc_id, data=document, revision=1
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[documents_table.c.collection, documents_table.c.id],
                set_={
                    "data": stmt.excluded.data,
                    "revision": documents_table.c.revision + 1,
                    "updated_at": func.now(),
                },
            ).returning(documents_table.c.revision)

        if (await self.session.execute(stmt)).first() is None:
            raise _conflict(key)


class PostgresEntityStore(EntityStore):
    """PostgreSQL implementation of EntityStore."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory.

        Args:
            session_factory: Factory for per-transaction sessions
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[EntityTransaction]:
        """Open a transaction on a fresh session.

        Raises:
            StoreConflictError: If a read document changed before commit
            StoreWriteError: If the database rejects the transaction
        """
        async with self.session_factory() as session:
            tx = PostgresTransaction(session)
            try:
                yield tx
                await tx.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logfire.error("Store transaction failed", error=str(e))
                raise StoreWriteError() from e
