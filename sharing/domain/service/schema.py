"""Schedule schema normalizer.

This is the only module allowed to branch on a schedule's schema
generation. Sharing operations call ``as_v3`` first and fail fast on older
documents; nothing here migrates a document in place.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter

from sharing.domain.error import UnsupportedSchemaVersionError
from sharing.domain.model import FriendShare, Schedule, V3Schedule
from sharing.domain.value import Term, UserId, VersionId

_schedule_adapter: TypeAdapter[Schedule] = TypeAdapter(Schedule)


def parse_schedule(document: dict[str, Any]) -> Schedule:
    """Parse a stored schedule document into its generation's model.

    Raises:
        pydantic.ValidationError: If the document matches no known generation
    """
    return _schedule_adapter.validate_python(document)


def dump_schedule(schedule: Schedule) -> dict[str, Any]:
    """Serialise a schedule back to its stored document shape."""
    return _schedule_adapter.dump_python(schedule, by_alias=True, mode="json")


def as_v3(schedule: Schedule) -> V3Schedule:
    """Return the schedule as a generation 3 document.

    Raises:
        UnsupportedSchemaVersionError: If the schedule predates sharing
    """
    if isinstance(schedule, V3Schedule):
        return schedule
    raise UnsupportedSchemaVersionError(found=schedule.version)


def missing_versions(
    schedule: V3Schedule, term: Term, versions: Iterable[VersionId]
) -> list[VersionId]:
    """List the requested versions that do not exist in ``term``."""
    term_schedule = schedule.terms.get(term)
    if term_schedule is None:
        return list(versions)
    return [v for v in versions if v not in term_schedule.versions]


def friends_of(
    schedule: V3Schedule, term: Term, version: VersionId
) -> dict[UserId, FriendShare] | None:
    """Per-version friend sharing map, or None if the version is gone.

    The returned map is the live one; edits apply to ``schedule``.
    """
    term_schedule = schedule.terms.get(term)
    if term_schedule is None:
        return None
    schedule_version = term_schedule.versions.get(version)
    if schedule_version is None:
        return None
    return schedule_version.friends


def sharing_view(schedule: Schedule | None) -> V3Schedule | None:
    """Return the v3 view of a schedule, or None if it carries no sharing data.

    Used by cleanup paths that have nothing to undo on older documents.
    """
    if isinstance(schedule, V3Schedule):
        return schedule
    return None
