"""In-memory entity store for testing."""

import asyncio
import copy
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sharing.domain.error import StoreConflictError
from sharing.domain.repository import Collection, EntityStore, EntityTransaction, Predicate
from sharing.persistence.repository.transaction import (
    ABSENT_REVISION,
    DocumentKey,
    DocumentTransaction,
)


class InMemoryTransaction(DocumentTransaction):
    """Transaction reading from an InMemoryEntityStore."""

    def __init__(self, store: "InMemoryEntityStore") -> None:
        super().__init__()
        self._store = store

    async def _fetch(self, key: DocumentKey) -> tuple[dict[str, Any] | None, int]:
        return self._store._read(key)

    async def _query(
        self, collection: Collection, predicates: Sequence[Predicate]
    ) -> list[tuple[str, dict[str, Any], int]]:
        results = []
        for (doc_collection, doc_id), document in self._store._documents.items():
            if doc_collection != collection:
                continue
            if all(p.matches(document) for p in predicates):
                _, revision = self._store._read((doc_collection, doc_id))
                results.append((doc_id, copy.deepcopy(document), revision))
        return results


class InMemoryEntityStore(EntityStore):
    """In-memory implementation of EntityStore for testing.

    Commits are validated one at a time: every document the transaction
    read must be unchanged and every query it ran must still match the
    same documents. Revisions survive deletion so a document deleted and
    recreated during another transaction still counts as changed.
    """

    def __init__(self) -> None:
        self._documents: dict[DocumentKey, dict[str, Any]] = {}
        self._revisions: dict[DocumentKey, int] = {}
        self._commit_lock = asyncio.Lock()
        self.commits = 0

    def _read(self, key: DocumentKey) -> tuple[dict[str, Any] | None, int]:
        revision = self._revisions.get(key, ABSENT_REVISION)
        document = self._documents.get(key)
        return (copy.deepcopy(document) if document is not None else None), revision

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[EntityTransaction]:
        """Open a transaction, committing it when the block exits cleanly."""
        tx = InMemoryTransaction(self)
        yield tx
        await self._commit(tx)

    async def _commit(self, tx: InMemoryTransaction) -> None:
        async with self._commit_lock:
            for key, revision in tx.read_revisions.items():
                if self._revisions.get(key, ABSENT_REVISION) != revision:
                    collection, doc_id = key
                    raise StoreConflictError(
                        f"{collection.value}/{doc_id} changed during transaction"
                    )
            changed = await tx.changed_queries()
            if changed:
                raise StoreConflictError(
                    f"{changed[0].collection.value} query results changed during transaction"
                )

            for key, document in tx.pending_writes.items():
                self._revisions[key] = self._revisions.get(key, ABSENT_REVISION) + 1
                if document is None:
                    self._documents.pop(key, None)
                else:
                    self._documents[key] = copy.deepcopy(document)
            if tx.pending_writes:
                self.commits += 1

    def document(self, collection: Collection, doc_id: str) -> dict[str, Any] | None:
        """Peek at a committed document."""
        document, _ = self._read((collection, doc_id))
        return document

    def snapshot(self) -> dict[DocumentKey, dict[str, Any]]:
        """Copy of every committed document, for before/after comparisons."""
        return copy.deepcopy(self._documents)

    def clear(self) -> None:
        """Clear all documents."""
        self._documents.clear()
        self._revisions.clear()
        self.commits = 0
