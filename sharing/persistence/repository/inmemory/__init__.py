"""In-memory store implementation for testing."""

from .store import InMemoryEntityStore, InMemoryTransaction

__all__ = [
    "InMemoryEntityStore",
    "InMemoryTransaction",
]
