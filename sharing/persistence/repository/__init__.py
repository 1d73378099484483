"""PostgreSQL store implementation."""

from sharing.persistence.repository.store import PostgresEntityStore, PostgresTransaction

__all__ = [
    "PostgresEntityStore",
    "PostgresTransaction",
]
