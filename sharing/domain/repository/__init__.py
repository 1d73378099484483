"""Repository interfaces for the schedule sharing domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from sharing.domain.repository.store import (
    Collection,
    EntityStore,
    EntityTransaction,
    Predicate,
    PredicateOp,
)

__all__ = [
    "Collection",
    "EntityStore",
    "EntityTransaction",
    "Predicate",
    "PredicateOp",
]
