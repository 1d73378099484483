"""Grant reconciler domain service.

A grant is recorded twice: as ``friends[friend]`` on the sender's schedule
version and as a version id in the friend's ``accessibleSchedules``. This
service is the only writer of both sides and always patches them inside the
caller's transaction, so the pair is never observed out of step.
"""

from collections.abc import Iterable, Sequence

import logfire

from sharing.domain.error import InvalidVersionError
from sharing.domain.model import (
    FriendAccess,
    FriendShare,
    FriendTermAccess,
    SenderInfo,
    V3Schedule,
)
from sharing.domain.repository import EntityTransaction
from sharing.domain.value import (
    FriendShareStatus,
    GrantStatus,
    Term,
    UserId,
    VersionId,
)

from .base import Service
from .schema import as_v3, friends_of, missing_versions, sharing_view


class GrantReconciler(Service):
    """Domain service keeping schedule friends maps and friend access in step.

    Reconciliation is idempotent: applying the same target twice leaves the
    documents exactly as applying it once.
    """

    async def reconcile(
        self,
        tx: EntityTransaction,
        sender: UserId,
        friend: UserId,
        term: Term,
        versions: Sequence[VersionId],
        target: GrantStatus,
        *,
        email: str = "",
        sender_info: SenderInfo | None = None,
    ) -> None:
        """Move the grants for ``versions`` to ``target``.

        - ABSENT removes the schedule entry and the friend's access, pruning
          empty access lists
        - PENDING upserts a Pending schedule entry only; an existing Accepted
          entry is left alone since a pending grant confers no access
        - ACCEPTED marks the schedule entry Accepted and adds the versions to
          the friend's access record (set semantics), recording the sender's
          info on the first grant

        Args:
            tx: Transaction shared with the triggering invitation mutation
            sender: Schedule owner
            friend: Grant recipient
            term: Term of the versions
            versions: Schedule versions to reconcile
            target: Desired grant state
            email: Friend's email, stored on the schedule entry
            sender_info: Sender identity cached on the friend's record

        Raises:
            UnsupportedSchemaVersionError: If the sender schedule is not v3
            InvalidVersionError: If a version to grant does not exist
        """
        with logfire.span(
            "grant_reconciler.reconcile",
            sender=sender,
            friend=friend,
            term=term,
            versions=list(versions),
            target=target.value,
        ):
            stored = await tx.get_schedule(sender)
            schedule = as_v3(stored) if stored is not None else None

            friend_access: FriendAccess | None = None
            schedule_changed = False
            access_changed = False

            if target == GrantStatus.ABSENT:
                if schedule is not None:
                    schedule_changed = _drop_entries(schedule, friend, term, versions)
                friend_access = await tx.get_friend_access(friend)
                if friend_access is not None:
                    access_changed = _revoke_access(
                        friend_access, sender, term, versions
                    )
            else:
                if schedule is None:
                    raise InvalidVersionError(f"Sender {sender} has no schedule")
                missing = missing_versions(schedule, term, versions)
                if missing:
                    raise InvalidVersionError(
                        f"Unknown schedule versions in {term}: {', '.join(missing)}"
                    )

                if target == GrantStatus.PENDING:
                    schedule_changed = _mark_pending(
                        schedule, friend, term, versions, email
                    )
                else:
                    schedule_changed = _mark_accepted(
                        schedule, friend, term, versions, email
                    )
                    friend_access = await tx.get_friend_access(friend) or FriendAccess()
                    access_changed = _grant_access(
                        friend_access, sender, term, versions, sender_info
                    )

            if schedule is not None and schedule_changed:
                await tx.save_schedule(sender, schedule)
            if friend_access is not None and access_changed:
                await tx.save_friend_access(friend, friend_access)

            logfire.info(
                "Grant reconciled",
                sender=sender,
                friend=friend,
                target=target.value,
                schedule_changed=schedule_changed,
                access_changed=access_changed,
            )

    async def reconcile_grant(
        self,
        tx: EntityTransaction,
        sender: UserId,
        friend: UserId,
        term: Term,
        version: VersionId,
        target: GrantStatus,
        *,
        email: str = "",
        sender_info: SenderInfo | None = None,
    ) -> None:
        """Reconcile a single (sender, friend, term, version) grant."""
        await self.reconcile(
            tx,
            sender,
            friend,
            term,
            [version],
            target,
            email=email,
            sender_info=sender_info,
        )

    async def withdraw_pending(
        self,
        tx: EntityTransaction,
        sender: UserId,
        friend: UserId,
        term: Term,
        versions: Sequence[VersionId],
    ) -> None:
        """Remove Pending schedule entries left by an unaccepted invitation.

        Accepted entries are kept, so an expiring invitation never takes
        away access granted by an earlier acceptance. Schedules without
        sharing data have nothing to withdraw.
        """
        with logfire.span(
            "grant_reconciler.withdraw_pending",
            sender=sender,
            friend=friend,
            term=term,
        ):
            schedule = sharing_view(await tx.get_schedule(sender))
            if schedule is None:
                return

            changed = False
            for version in versions:
                friends = friends_of(schedule, term, version)
                if friends is None:
                    continue
                share = friends.get(friend)
                if share is not None and share.status == FriendShareStatus.PENDING:
                    del friends[friend]
                    changed = True

            if changed:
                await tx.save_schedule(sender, schedule)
                logfire.info(
                    "Pending grants withdrawn", sender=sender, friend=friend, term=term
                )


def _drop_entries(
    schedule: V3Schedule, friend: UserId, term: Term, versions: Iterable[VersionId]
) -> bool:
    changed = False
    for version in versions:
        friends = friends_of(schedule, term, version)
        if friends is not None and friends.pop(friend, None) is not None:
            changed = True
    return changed


def _mark_pending(
    schedule: V3Schedule,
    friend: UserId,
    term: Term,
    versions: Iterable[VersionId],
    email: str,
) -> bool:
    changed = False
    for version in versions:
        friends = schedule.terms[term].versions[version].friends
        existing = friends.get(friend)
        if existing is not None and existing.status == FriendShareStatus.ACCEPTED:
            continue
        if existing is None or existing.email != email:
            friends[friend] = FriendShare(email=email, status=FriendShareStatus.PENDING)
            changed = True
    return changed


def _mark_accepted(
    schedule: V3Schedule,
    friend: UserId,
    term: Term,
    versions: Iterable[VersionId],
    email: str,
) -> bool:
    changed = False
    for version in versions:
        friends = schedule.terms[term].versions[version].friends
        accepted = FriendShare(email=email, status=FriendShareStatus.ACCEPTED)
        if friends.get(friend) != accepted:
            friends[friend] = accepted
            changed = True
    return changed


def _grant_access(
    friend_access: FriendAccess,
    sender: UserId,
    term: Term,
    versions: Iterable[VersionId],
    sender_info: SenderInfo | None,
) -> bool:
    changed = False
    term_access = friend_access.terms.get(term)
    if term_access is None:
        term_access = FriendTermAccess()
        friend_access.terms[term] = term_access
        changed = True

    accessible = term_access.accessible_schedules.setdefault(sender, [])
    for version in versions:
        if version not in accessible:
            accessible.append(version)
            changed = True

    if sender_info is not None and sender not in friend_access.info:
        friend_access.info[sender] = sender_info
        changed = True
    return changed


def _revoke_access(
    friend_access: FriendAccess,
    sender: UserId,
    term: Term,
    versions: Iterable[VersionId],
) -> bool:
    term_access = friend_access.terms.get(term)
    if term_access is None or sender not in term_access.accessible_schedules:
        return False

    removed = set(versions)
    current = term_access.accessible_schedules[sender]
    remaining = [v for v in current if v not in removed]
    if len(remaining) == len(current):
        return False
    if remaining:
        term_access.accessible_schedules[sender] = remaining
    else:
        del term_access.accessible_schedules[sender]
    return True


def check_consistency(
    schedule: V3Schedule | None,
    friend_access: FriendAccess | None,
    sender: UserId,
    friend: UserId,
) -> list[str]:
    """Describe every way the grant pair for (sender, friend) is inconsistent.

    Returns:
        Human readable violations, empty when both sides agree
    """
    accepted: set[tuple[Term, VersionId]] = set()
    if schedule is not None:
        for term, term_schedule in schedule.terms.items():
            for version, schedule_version in term_schedule.versions.items():
                share = schedule_version.friends.get(friend)
                if share is not None and share.status == FriendShareStatus.ACCEPTED:
                    accepted.add((term, version))

    accessible: set[tuple[Term, VersionId]] = set()
    violations: list[str] = []
    if friend_access is not None:
        for term, term_access in friend_access.terms.items():
            versions = term_access.accessible_schedules.get(sender)
            if versions is None:
                continue
            if not versions:
                violations.append(f"{term}: empty access list stored for {sender}")
            accessible.update((term, version) for version in versions)

    for term, version in sorted(accepted - accessible):
        violations.append(f"{term}/{version}: accepted on schedule but not accessible")
    for term, version in sorted(accessible - accepted):
        violations.append(f"{term}/{version}: accessible but not accepted on schedule")
    return violations
