"""Friend access record owned by the recipient of grants."""

from pydantic import Field

from sharing.domain.model.common import DocumentModel
from sharing.domain.value import Term, UserId, VersionId


class SenderInfo(DocumentModel):
    """Identity of a sender as first seen by the friend."""

    name: str = ""
    email: str = ""


class FriendTermAccess(DocumentModel):
    """Schedules a friend can read in one term, keyed by sender."""

    accessible_schedules: dict[UserId, list[VersionId]] = Field(
        default_factory=dict, alias="accessibleSchedules"
    )


class FriendAccess(DocumentModel):
    """Friend access record.

    Invariants (kept by the grant reconciler):
    - ``terms[t].accessible_schedules[sender]`` lists ``v`` iff the sender's
      schedule shows this friend as Accepted on version ``v`` of term ``t``
    - Empty version lists are never stored
    - ``info[sender]`` is written on the first grant and never overwritten
    """

    terms: dict[Term, FriendTermAccess] = Field(default_factory=dict)
    info: dict[UserId, SenderInfo] = Field(default_factory=dict)

    def accessible_versions(self, term: Term, sender: UserId) -> list[VersionId]:
        """Versions of ``sender``'s schedule this friend can read in ``term``."""
        term_access = self.terms.get(term)
        if term_access is None:
            return []
        return list(term_access.accessible_schedules.get(sender, []))
