"""Unit tests for InvitationService."""

import pytest

from sharing.adapter.firebase import MockIdentityClient
from sharing.domain.error import (
    AlreadyAcceptedError,
    EmailNotFoundError,
    FriendMismatchError,
    InvalidArgumentsError,
    InvalidInviteError,
    InvalidVersionError,
    InviteExpiredError,
    SelfInviteError,
    UnsupportedSchemaVersionError,
)
from sharing.domain.service import FrozenClock, InvitationService
from sharing.domain.service.identity_service import VerifiedIdentity
from sharing.domain.value import VersionId
from sharing.persistence.repository.inmemory import InMemoryEntityStore
from tests.factories import (
    ALICE,
    BOB,
    CAROL,
    TERM,
    assert_consistent,
    friend_status,
    identity,
    load_friend_access,
    load_invitations,
    load_schedule,
    register_users,
    seed_schedule,
    v2_schedule,
    v3_schedule,
)
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()

WEEK = 7 * 24 * 60 * 60


class InvitationTestBase:
    """Shared setup: three registered users and a v3 schedule for Alice."""

    async def _setup(self, unit_env, schedule=None):
        register_users(await unit_env.get(MockIdentityClient))
        store = await unit_env.get(InMemoryEntityStore)
        await seed_schedule(store, ALICE, schedule or v3_schedule())
        service = await unit_env.get(InvitationService)
        clock = await unit_env.get(FrozenClock)
        return service, store, clock

    async def _invite(self, service, versions=("v1",), friend_email="bob@example.com"):
        created = await service.create_invitation(
            identity(ALICE),
            TERM,
            [VersionId(v) for v in versions],
            friend_email=friend_email,
        )
        return created.invitation

    async def _link(self, service, versions=("v1",), valid_for=3600):
        created = await service.create_invitation(
            identity(ALICE),
            TERM,
            [VersionId(v) for v in versions],
            valid_for_seconds=valid_for,
        )
        return created.invitation


class TestCreateInvitation(InvitationTestBase):
    """Tests for creating invitations."""

    @pytest.mark.asyncio
    async def test_email_invitation_marks_friend_pending(self, unit_env):
        service, store, clock = await self._setup(unit_env)

        created = await service.create_invitation(
            identity(ALICE), TERM, [VersionId("v2"), VersionId("v1")], "bob@example.com"
        )

        invitation = created.invitation
        assert invitation.friend == BOB
        assert invitation.versions == ("v1", "v2")
        assert invitation.created_at == clock.now()
        assert invitation.valid_for_seconds == WEEK
        assert created.version_names == ["Primary v2", "Primary v1"]
        assert await friend_status(store, ALICE, BOB, "v1") == "Pending"
        assert await friend_status(store, ALICE, BOB, "v2") == "Pending"
        assert await load_friend_access(store, BOB) is None
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_friend_email_is_case_insensitive(self, unit_env):
        service, store, _ = await self._setup(unit_env)

        invitation = await self._invite(service, friend_email="  Bob@Example.COM ")

        assert invitation.friend == BOB
        schedule = await load_schedule(store, ALICE)
        share = schedule.terms[TERM].versions[VersionId("v1")].friends[BOB]
        assert share.email == "bob@example.com"

    @pytest.mark.asyncio
    async def test_duplicate_invitation_replaces_previous(self, unit_env):
        service, store, _ = await self._setup(unit_env)

        first = await self._invite(service, versions=("v1", "v2"))
        second = await self._invite(service, versions=("v2", "v1"))

        invitations = await load_invitations(store)
        assert [i.id for i in invitations] == [second.id]
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_different_versions_are_not_duplicates(self, unit_env):
        service, store, _ = await self._setup(unit_env)

        await self._invite(service, versions=("v1",))
        await self._invite(service, versions=("v1", "v2"))

        assert len(await load_invitations(store)) == 2

    @pytest.mark.asyncio
    async def test_link_duplicates_depend_on_validity(self, unit_env):
        service, store, _ = await self._setup(unit_env)

        await self._link(service, valid_for=3600)
        await self._link(service, valid_for=3600)
        await self._link(service, valid_for=7200)

        invitations = await load_invitations(store)
        assert sorted(i.valid_for_seconds for i in invitations) == [3600, 7200]
        assert all(i.is_link and i.friend is None for i in invitations)

    @pytest.mark.asyncio
    async def test_link_invitation_marks_nobody(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = await load_schedule(store, ALICE)

        await self._link(service)

        assert await load_schedule(store, ALICE) == before

    @pytest.mark.asyncio
    async def test_self_invite_by_email_writes_nothing(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()
        commits = store.commits

        with pytest.raises(SelfInviteError):
            await self._invite(service, friend_email="ALICE@example.com")

        assert store.snapshot() == before
        assert store.commits == commits

    @pytest.mark.asyncio
    async def test_self_invite_by_user_id(self, unit_env):
        """A token email that differs from the account email is matched by user id."""
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        with pytest.raises(SelfInviteError):
            await service.create_invitation(
                VerifiedIdentity(uid=ALICE, email="alice@old.example.com"),
                TERM,
                [VersionId("v1")],
                friend_email="alice@example.com",
            )

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_sender_without_email_cannot_invite(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        with pytest.raises(InvalidArgumentsError) as exc_info:
            await service.create_invitation(
                VerifiedIdentity(uid=ALICE),
                TERM,
                [VersionId("v1")],
                friend_email="bob@example.com",
            )

        assert "without an email" in exc_info.value.message
        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_sender_without_email_can_share_link(self, unit_env):
        service, store, _ = await self._setup(unit_env)

        created = await service.create_invitation(
            VerifiedIdentity(uid=ALICE), TERM, [VersionId("v1")]
        )

        assert [i.id for i in await load_invitations(store)] == [created.invitation.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("friend_email", ["not-an-email", "bob@", ""])
    async def test_malformed_friend_email(self, unit_env, friend_email):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        with pytest.raises(InvalidArgumentsError):
            await self._invite(service, friend_email=friend_email)

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_version_names_follow_request_order(self, unit_env):
        service, _, _ = await self._setup(unit_env, schedule=v3_schedule(("v1", "v2", "v3")))

        created = await service.create_invitation(
            identity(ALICE),
            TERM,
            [VersionId("v3"), VersionId("v1"), VersionId("v3")],
            valid_for_seconds=3600,
        )

        assert created.version_names == ["Primary v3", "Primary v1"]

    @pytest.mark.asyncio
    async def test_concurrent_identical_links_leave_one(self, unit_env):
        """Two identical links created at once collapse into one invitation."""
        service, store, _ = await self._setup(unit_env)
        create = service._create
        attempts = []

        async def racing_create(tx, **kwargs):
            attempts.append(1)
            if len(attempts) == 1:
                # Runs after this transaction has looked for duplicates
                result = await create(tx, **kwargs)
                await service.create_invitation(
                    identity(ALICE), TERM, [VersionId("v1")], valid_for_seconds=3600
                )
                return result
            return await create(tx, **kwargs)

        service._create = racing_create
        created = await service.create_invitation(
            identity(ALICE), TERM, [VersionId("v1")], valid_for_seconds=3600
        )

        invitations = await load_invitations(store)
        assert [i.id for i in invitations] == [created.invitation.id]
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_unknown_email(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        with pytest.raises(EmailNotFoundError):
            await self._invite(service, friend_email="nobody@example.com")

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_unknown_version(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        with pytest.raises(InvalidVersionError):
            await self._invite(service, versions=("v1", "v9"))

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_requires_versions(self, unit_env):
        service, _, _ = await self._setup(unit_env)

        with pytest.raises(InvalidArgumentsError):
            await service.create_invitation(identity(ALICE), TERM, [], "bob@example.com")

    @pytest.mark.asyncio
    async def test_v2_schedule_is_rejected(self, unit_env):
        service, store, _ = await self._setup(unit_env, schedule=v2_schedule())
        before = store.snapshot()

        with pytest.raises(UnsupportedSchemaVersionError):
            await self._invite(service)

        assert store.snapshot() == before
        assert await load_invitations(store) == []


class TestAcceptInvitation(InvitationTestBase):
    """Tests for accepting invitations."""

    @pytest.mark.asyncio
    async def test_accept_email_invitation(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))

        accepted = await service.accept_invitation(invitation.id, identity(BOB))

        assert accepted.sender_email == "alice@example.com"
        assert accepted.term == TERM
        assert await friend_status(store, ALICE, BOB, "v1") == "Accepted"
        assert await friend_status(store, ALICE, BOB, "v2") == "Accepted"
        access = await load_friend_access(store, BOB)
        assert access.accessible_versions(TERM, ALICE) == ["v1", "v2"]
        assert access.info[ALICE].name == "Alice"
        assert access.info[ALICE].email == "alice@example.com"
        assert await load_invitations(store) == []
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_email_invitation_cannot_be_accepted_twice(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service)
        await service.accept_invitation(invitation.id, identity(BOB))
        before = store.snapshot()

        with pytest.raises(InvalidInviteError):
            await service.accept_invitation(invitation.id, identity(BOB))

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_unknown_invitation(self, unit_env):
        service, _, _ = await self._setup(unit_env)

        with pytest.raises(InvalidInviteError):
            await service.accept_invitation("does-not-exist", identity(BOB))

    @pytest.mark.asyncio
    async def test_email_invitation_for_someone_else(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service)
        before = store.snapshot()

        with pytest.raises(FriendMismatchError):
            await service.accept_invitation(invitation.id, identity(CAROL))

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_link_accepted_by_several_friends(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        link = await self._link(service, versions=("v1", "v2"))

        await service.accept_invitation(link.id, identity(BOB))
        await service.accept_invitation(link.id, identity(CAROL))

        for friend in (BOB, CAROL):
            access = await load_friend_access(store, friend)
            assert access.accessible_versions(TERM, ALICE) == ["v1", "v2"]
            await assert_consistent(store, ALICE, friend)
        assert [i.id for i in await load_invitations(store)] == [link.id]

    @pytest.mark.asyncio
    async def test_link_accepted_twice_by_same_friend(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        link = await self._link(service)
        await service.accept_invitation(link.id, identity(BOB))
        before = store.snapshot()

        with pytest.raises(AlreadyAcceptedError):
            await service.accept_invitation(link.id, identity(BOB))

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_link_with_new_version_can_be_accepted_again(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        first = await self._link(service, versions=("v1",))
        await service.accept_invitation(first.id, identity(BOB))
        second = await self._link(service, versions=("v1", "v2"))

        await service.accept_invitation(second.id, identity(BOB))

        access = await load_friend_access(store, BOB)
        assert access.accessible_versions(TERM, ALICE) == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_sender_cannot_accept_own_link(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        link = await self._link(service)
        before = store.snapshot()

        with pytest.raises(SelfInviteError):
            await service.accept_invitation(link.id, identity(ALICE))

        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_accept_just_before_expiry(self, unit_env):
        service, store, clock = await self._setup(unit_env)
        invitation = await self._invite(service)

        clock.advance(WEEK - 1)
        await service.accept_invitation(invitation.id, identity(BOB))

        assert await friend_status(store, ALICE, BOB, "v1") == "Accepted"

    @pytest.mark.asyncio
    async def test_expired_invitation_is_cleaned_up(self, unit_env):
        service, store, clock = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))

        clock.advance(WEEK)
        with pytest.raises(InviteExpiredError):
            await service.accept_invitation(invitation.id, identity(BOB))

        assert await load_invitations(store) == []
        assert await friend_status(store, ALICE, BOB, "v1") is None
        assert await friend_status(store, ALICE, BOB, "v2") is None
        assert await load_friend_access(store, BOB) is None

    @pytest.mark.asyncio
    async def test_expiry_during_acceptance(self, unit_env):
        """An invitation that expires while the sender is looked up is not accepted."""
        service, store, clock = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))
        clock.advance(WEEK - 1)
        get_user = service.identity_service.get_user

        async def slow_get_user(uid):
            clock.advance(1)
            return await get_user(uid)

        service.identity_service.get_user = slow_get_user
        with pytest.raises(InviteExpiredError):
            await service.accept_invitation(invitation.id, identity(BOB))

        assert await load_invitations(store) == []
        assert await friend_status(store, ALICE, BOB, "v1") is None
        assert await friend_status(store, ALICE, BOB, "v2") is None
        assert await load_friend_access(store, BOB) is None
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_expiry_keeps_earlier_acceptance(self, unit_env):
        """An expiring invitation only withdraws its pending entries."""
        service, store, clock = await self._setup(unit_env)
        link = await self._link(service, versions=("v1",), valid_for=WEEK * 2)
        await service.accept_invitation(link.id, identity(BOB))
        invitation = await self._invite(service, versions=("v1", "v2"))

        clock.advance(WEEK)
        with pytest.raises(InviteExpiredError):
            await service.accept_invitation(invitation.id, identity(BOB))

        assert await friend_status(store, ALICE, BOB, "v1") == "Accepted"
        assert await friend_status(store, ALICE, BOB, "v2") is None
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_email_invitation_over_accepted_versions(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        link = await self._link(service)
        await service.accept_invitation(link.id, identity(BOB))
        invitation = await self._invite(service)

        assert await friend_status(store, ALICE, BOB, "v1") == "Accepted"
        with pytest.raises(AlreadyAcceptedError):
            await service.accept_invitation(invitation.id, identity(BOB))


class TestRevoke(InvitationTestBase):
    """Tests for revoking grants."""

    @pytest.mark.asyncio
    async def test_partial_revoke_by_owner(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))
        await service.accept_invitation(invitation.id, identity(BOB))

        await service.revoke(ALICE, BOB, TERM, [VersionId("v1")], owner=True)

        assert await friend_status(store, ALICE, BOB, "v1") is None
        assert await friend_status(store, ALICE, BOB, "v2") == "Accepted"
        access = await load_friend_access(store, BOB)
        assert access.accessible_versions(TERM, ALICE) == ["v2"]
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_revoke_by_friend(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))
        await service.accept_invitation(invitation.id, identity(BOB))

        await service.revoke(
            BOB, ALICE, TERM, [VersionId("v1"), VersionId("v2")], owner=False
        )

        access = await load_friend_access(store, BOB)
        assert ALICE not in access.terms[TERM].accessible_schedules
        assert await friend_status(store, ALICE, BOB, "v1") is None
        assert await friend_status(store, ALICE, BOB, "v2") is None
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_revoke_shrinks_pending_invitation(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        invitation = await self._invite(service, versions=("v1", "v2"))

        await service.revoke(ALICE, BOB, TERM, [VersionId("v1")], owner=True)

        invitations = await load_invitations(store)
        assert [(i.id, i.versions) for i in invitations] == [(invitation.id, ("v2",))]
        assert await friend_status(store, ALICE, BOB, "v1") is None
        assert await friend_status(store, ALICE, BOB, "v2") == "Pending"

    @pytest.mark.asyncio
    async def test_revoke_deletes_fully_covered_invitation(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        await self._invite(service, versions=("v1",))

        await service.revoke(ALICE, BOB, TERM, [VersionId("v1")], owner=True)

        assert await load_invitations(store) == []

    @pytest.mark.asyncio
    async def test_revoke_leaves_links_alone(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        link = await self._link(service)
        await service.accept_invitation(link.id, identity(BOB))

        await service.revoke(ALICE, BOB, TERM, [VersionId("v1")], owner=True)

        assert [i.id for i in await load_invitations(store)] == [link.id]
        await assert_consistent(store, ALICE, BOB)

    @pytest.mark.asyncio
    async def test_revoke_without_grant_is_noop(self, unit_env):
        service, store, _ = await self._setup(unit_env)
        before = store.snapshot()

        await service.revoke(ALICE, BOB, TERM, [VersionId("v1")], owner=True)

        assert store.snapshot() == before


class TestSweepExpired(InvitationTestBase):
    """Tests for the expired invitation sweep."""

    @pytest.mark.asyncio
    async def test_sweep_removes_only_expired(self, unit_env):
        service, store, clock = await self._setup(unit_env)
        link = await self._link(service, valid_for=3600)
        invitation = await self._invite(service)

        clock.advance(3600)
        assert await service.sweep_expired() == 1
        assert [i.id for i in await load_invitations(store)] == [invitation.id]
        assert await friend_status(store, ALICE, BOB, "v1") == "Pending"
        assert link.id not in {i.id for i in await load_invitations(store)}

        clock.advance(WEEK)
        assert await service.sweep_expired() == 1
        assert await load_invitations(store) == []
        assert await friend_status(store, ALICE, BOB, "v1") is None

    @pytest.mark.asyncio
    async def test_sweep_with_nothing_to_do(self, unit_env):
        service, _, _ = await self._setup(unit_env)

        assert await service.sweep_expired() == 0
