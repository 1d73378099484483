"""Invitation lifecycle domain service."""

from collections.abc import Sequence
from datetime import datetime
from functools import partial
from uuid import uuid4

import logfire
from pydantic import ValidationError as PydanticValidationError

from sharing.domain.error import (
    AlreadyAcceptedError,
    DomainError,
    FriendMismatchError,
    InvalidArgumentsError,
    InvalidInviteError,
    InvalidVersionError,
    InviteExpiredError,
    SelfInviteError,
)
from sharing.domain.model import DEFAULT_VALID_FOR_SECONDS, Invitation, SenderInfo
from sharing.domain.repository import EntityStore, EntityTransaction, Predicate
from sharing.domain.value import (
    EmailAddress,
    FriendShareStatus,
    GrantStatus,
    InvitationId,
    Term,
    UserId,
    VersionId,
)
from sharing.domain.value.common import ValueObject

from .base import Service
from .clock import Clock
from .grant_reconciler import GrantReconciler
from .identity_service import IdentityService, VerifiedIdentity
from .schema import as_v3, friends_of, missing_versions


class CreatedInvitation(ValueObject):
    """A stored invitation plus the display names of its versions."""

    invitation: Invitation
    version_names: list[str]


class AcceptedInvitation(ValueObject):
    """Outcome of a successful acceptance."""

    sender_email: str
    term: Term


class InvitationService(Service):
    """Domain service for the invitation state machine.

    Every mutation runs as one store transaction together with the grant
    reconciliation it triggers. Identity lookups happen before the
    transaction opens.
    """

    def __init__(
        self,
        entity_store: EntityStore,
        grant_reconciler: GrantReconciler,
        identity_service: IdentityService,
        clock: Clock,
        default_valid_for_seconds: int = DEFAULT_VALID_FOR_SECONDS,
    ) -> None:
        """Initialize invitation service.

        Args:
            entity_store: Transactional store for invitations and grants
            grant_reconciler: Writer of both sides of a grant
            identity_service: Identity lookups for invitation targets
            clock: Time source for creation and expiry
            default_valid_for_seconds: Validity of email invitations
        """
        self.entity_store = entity_store
        self.grant_reconciler = grant_reconciler
        self.identity_service = identity_service
        self.clock = clock
        self.default_valid_for_seconds = default_valid_for_seconds

    async def create_invitation(
        self,
        sender: VerifiedIdentity,
        term: Term,
        versions: Sequence[VersionId],
        friend_email: str | None = None,
        valid_for_seconds: int | None = None,
    ) -> CreatedInvitation:
        """Create an email invitation, or a link invitation if no email is given.

        Any existing duplicate is replaced. Email invitations also mark the
        friend Pending on every version.

        Args:
            sender: Verified inviting user
            term: Term of the shared versions
            versions: Schedule versions to share
            friend_email: Address of the invited user, None for a link
            valid_for_seconds: Validity window, defaults to 7 days

        Returns:
            The stored invitation and its version names

        Raises:
            InvalidArgumentsError: If ``friend_email`` is malformed or the
                sender has no email of their own
            EmailNotFoundError: If no user has ``friend_email``
            SelfInviteError: If the friend is the sender
            InvalidVersionError: If a version does not exist
            UnsupportedSchemaVersionError: If the sender schedule is not v3
        """
        if not versions:
            raise InvalidArgumentsError()

        is_link = friend_email is None
        with logfire.span(
            "invitation_service.create_invitation",
            sender=sender.uid,
            term=term,
            versions=list(versions),
            is_link=is_link,
        ):
            friend: UserId | None = None
            if friend_email is not None:
                if not sender.email:
                    raise InvalidArgumentsError("Cannot invite friend without an email")
                try:
                    normalized = EmailAddress(friend_email).root
                except PydanticValidationError as e:
                    raise InvalidArgumentsError(
                        f"Invalid friend email: {friend_email}"
                    ) from e
                if normalized == sender.email.lower():
                    logfire.warn("Self invitation rejected", sender=sender.uid)
                    raise SelfInviteError()
                friend = await self.identity_service.find_user_id_by_email(normalized)
                if friend == sender.uid:
                    logfire.warn("Self invitation rejected", sender=sender.uid)
                    raise SelfInviteError()
                friend_email = normalized

            invitation = Invitation(
                id=InvitationId(uuid4().hex),
                sender=sender.uid,
                term=term,
                versions=tuple(versions),
                created_at=self.clock.now(),
                is_link=is_link,
                valid_for_seconds=valid_for_seconds or self.default_valid_for_seconds,
                friend=friend,
            )

            created = await self.entity_store.run_transaction(
                partial(
                    self._create,
                    invitation=invitation,
                    requested_versions=list(dict.fromkeys(versions)),
                    friend_email=friend_email,
                ),
                name="create_invitation",
            )
            logfire.info(
                "Invitation created",
                invite_id=invitation.id,
                sender=sender.uid,
                friend=friend,
                is_link=is_link,
            )
            return created

    async def _create(
        self,
        tx: EntityTransaction,
        *,
        invitation: Invitation,
        requested_versions: list[VersionId],
        friend_email: str | None,
    ) -> CreatedInvitation:
        stored = await tx.get_schedule(invitation.sender)
        if stored is None:
            raise InvalidVersionError(f"Sender {invitation.sender} has no schedule")
        schedule = as_v3(stored)
        missing = missing_versions(schedule, invitation.term, invitation.versions)
        if missing:
            raise InvalidVersionError(
                f"Unknown schedule versions in {invitation.term}: {', '.join(missing)}"
            )
        term_versions = schedule.terms[invitation.term].versions
        # Names follow the order the sender picked the versions in
        version_names = [term_versions[v].name for v in requested_versions]

        for duplicate in await tx.find_invitations(_duplicate_predicates(invitation)):
            logfire.info(
                "Replacing duplicate invitation",
                old_invite_id=duplicate.id,
                invite_id=invitation.id,
            )
            await tx.delete_invitation(duplicate.id)

        await tx.save_invitation(invitation)

        if invitation.friend is not None:
            await self.grant_reconciler.reconcile(
                tx,
                invitation.sender,
                invitation.friend,
                invitation.term,
                invitation.versions,
                GrantStatus.PENDING,
                email=friend_email or "",
            )
        return CreatedInvitation(invitation=invitation, version_names=version_names)

    def is_expired(self, invitation: Invitation, now: datetime | None = None) -> bool:
        """Check an invitation against the clock."""
        return invitation.is_expired(now or self.clock.now())

    async def accept_invitation(
        self, invite_id: InvitationId, acting_user: VerifiedIdentity
    ) -> AcceptedInvitation:
        """Accept an invitation on behalf of ``acting_user``.

        Checks run in order: existence, bound friend, expiry, self
        acceptance, already accepted. Expired invitations are cleaned up
        before ``InviteExpiredError`` is raised.

        Args:
            invite_id: Invitation to accept
            acting_user: Verified accepting user

        Returns:
            The sender's email and the invitation term

        Raises:
            InvalidInviteError: If the invitation does not exist
            FriendMismatchError: If an email invitation targets someone else
            InviteExpiredError: If the invitation is past its validity
            SelfInviteError: If the sender accepts their own invitation
            AlreadyAcceptedError: If every version is already accepted
        """
        with logfire.span(
            "invitation_service.accept_invitation",
            invite_id=invite_id,
            uid=acting_user.uid,
        ):
            invitation = await self.entity_store.run_transaction(
                lambda tx: tx.get_invitation(invite_id),
                name="load_invitation",
            )
            if invitation is None:
                logfire.warn("Invitation not found", invite_id=invite_id)
                raise InvalidInviteError()

            if not invitation.is_link and invitation.friend != acting_user.uid:
                logfire.warn(
                    "Invitation accepted by another user",
                    invite_id=invite_id,
                    uid=acting_user.uid,
                )
                raise FriendMismatchError()

            if self.is_expired(invitation):
                await self.entity_store.run_transaction(
                    partial(self._expire_by_id, invite_id=invite_id),
                    name="expire_invitation",
                )
                logfire.info("Expired invitation removed", invite_id=invite_id)
                raise InviteExpiredError()

            if invitation.sender == acting_user.uid:
                raise SelfInviteError()

            sender_record = await self.identity_service.get_user(invitation.sender)
            sender_info = SenderInfo(
                name=sender_record.display_name or "",
                email=sender_record.email or "",
            )

            accepted = await self.entity_store.run_transaction(
                partial(
                    self._accept,
                    invite_id=invite_id,
                    acting_user=acting_user,
                    sender_info=sender_info,
                ),
                name="accept_invitation",
            )
            if accepted is None:
                logfire.info("Expired invitation removed", invite_id=invite_id)
                raise InviteExpiredError()
            logfire.info(
                "Invitation accepted",
                invite_id=invite_id,
                sender=accepted.sender,
                friend=acting_user.uid,
                versions=list(accepted.versions),
            )
            return AcceptedInvitation(
                sender_email=sender_info.email, term=accepted.term
            )

    async def _accept(
        self,
        tx: EntityTransaction,
        *,
        invite_id: InvitationId,
        acting_user: VerifiedIdentity,
        sender_info: SenderInfo,
    ) -> Invitation | None:
        # Re-read: a concurrent accept may have consumed the invitation
        invitation = await tx.get_invitation(invite_id)
        if invitation is None:
            raise InvalidInviteError()
        # The invitation may have expired since it was first loaded
        if self.is_expired(invitation):
            await self._expire(tx, invitation)
            return None

        stored = await tx.get_schedule(invitation.sender)
        if stored is None:
            raise InvalidVersionError(f"Sender {invitation.sender} has no schedule")
        schedule = as_v3(stored)

        already_accepted = True
        for version in invitation.versions:
            friends = friends_of(schedule, invitation.term, version)
            share = friends.get(acting_user.uid) if friends is not None else None
            if share is None or share.status != FriendShareStatus.ACCEPTED:
                already_accepted = False
                break
        if already_accepted:
            logfire.warn(
                "Invitation already accepted",
                invite_id=invite_id,
                uid=acting_user.uid,
            )
            raise AlreadyAcceptedError()

        await self.grant_reconciler.reconcile(
            tx,
            invitation.sender,
            acting_user.uid,
            invitation.term,
            invitation.versions,
            GrantStatus.ACCEPTED,
            email=acting_user.email or "",
            sender_info=sender_info,
        )
        if not invitation.is_link:
            await tx.delete_invitation(invite_id)
        return invitation

    async def revoke(
        self,
        requester: UserId,
        counterparty: UserId,
        term: Term,
        versions: Sequence[VersionId],
        *,
        owner: bool,
    ) -> None:
        """Revoke grants and outstanding email invitations for some versions.

        Either side may revoke. ``owner`` tells whether the requester is the
        schedule's sender. Matching email invitations are shrunk to their
        remaining versions or deleted. Link invitations are left alone.

        Args:
            requester: Verified requesting user
            counterparty: The other side of the grant
            term: Term of the versions
            versions: Versions to revoke
            owner: True if the requester owns the schedule

        Raises:
            UnsupportedSchemaVersionError: If the sender schedule is not v3
        """
        if not versions:
            raise InvalidArgumentsError()

        sender, friend = (requester, counterparty) if owner else (counterparty, requester)
        with logfire.span(
            "invitation_service.revoke",
            sender=sender,
            friend=friend,
            term=term,
            versions=list(versions),
            owner=owner,
        ):
            await self.entity_store.run_transaction(
                partial(
                    self._revoke,
                    sender=sender,
                    friend=friend,
                    term=term,
                    versions=list(versions),
                ),
                name="revoke_invitation",
            )
            logfire.info("Grants revoked", sender=sender, friend=friend, term=term)

    async def _revoke(
        self,
        tx: EntityTransaction,
        *,
        sender: UserId,
        friend: UserId,
        term: Term,
        versions: list[VersionId],
    ) -> None:
        removed = set(versions)
        invitations = await tx.find_invitations(
            [
                Predicate.eq("sender", sender),
                Predicate.eq("friend", friend),
                Predicate.eq("term", term),
                Predicate.contains_any("versions", versions),
            ]
        )
        for invitation in invitations:
            if invitation.is_link:
                continue
            remaining = tuple(v for v in invitation.versions if v not in removed)
            if not remaining:
                await tx.delete_invitation(invitation.id)
            elif len(remaining) != len(invitation.versions):
                await tx.save_invitation(
                    invitation.model_copy(update={"versions": remaining})
                )

        await self.grant_reconciler.reconcile(
            tx, sender, friend, term, versions, GrantStatus.ABSENT
        )

    async def sweep_expired(self) -> int:
        """Delete every expired invitation.

        Each invitation is expired in its own transaction so one failure
        does not block the rest.

        Returns:
            Number of invitations removed
        """
        with logfire.span("invitation_service.sweep_expired"):
            invitations = await self.entity_store.run_transaction(
                lambda tx: tx.find_invitations([]),
                name="list_invitations",
            )
            now = self.clock.now()
            removed = 0
            failed = 0
            for invitation in invitations:
                if not invitation.is_expired(now):
                    continue
                try:
                    expired = await self.entity_store.run_transaction(
                        partial(self._expire_by_id, invite_id=invitation.id, now=now),
                        name="expire_invitation",
                    )
                except DomainError as e:
                    failed += 1
                    logfire.error(
                        "Failed to expire invitation",
                        invite_id=invitation.id,
                        error=str(e),
                    )
                    continue
                if expired:
                    removed += 1

            logfire.info(
                "Invitation sweep finished",
                scanned=len(invitations),
                removed=removed,
                failed=failed,
            )
            return removed

    async def _expire_by_id(
        self,
        tx: EntityTransaction,
        *,
        invite_id: InvitationId,
        now: datetime | None = None,
    ) -> bool:
        invitation = await tx.get_invitation(invite_id)
        if invitation is None or not invitation.is_expired(now or self.clock.now()):
            return False
        await self._expire(tx, invitation)
        return True

    async def _expire(self, tx: EntityTransaction, invitation: Invitation) -> None:
        """Delete an invitation, withdrawing the Pending shares it created."""
        if invitation.friend is not None:
            await self.grant_reconciler.withdraw_pending(
                tx,
                invitation.sender,
                invitation.friend,
                invitation.term,
                invitation.versions,
            )
        await tx.delete_invitation(invitation.id)


def _duplicate_predicates(invitation: Invitation) -> list[Predicate]:
    predicates = [
        Predicate.eq("sender", invitation.sender),
        Predicate.eq("term", invitation.term),
        Predicate.eq("versions", list(invitation.versions)),
        Predicate.eq("link", invitation.is_link),
    ]
    if invitation.is_link:
        predicates.append(Predicate.eq("validFor", invitation.valid_for_seconds))
    else:
        predicates.append(Predicate.eq("friend", invitation.friend))
    return predicates
