"""Unit tests for CreateInvitationUseCase."""

import pytest

from sharing.adapter.firebase import MockIdentityClient
from sharing.adapter.smtp import RecordingEmailDispatcher
from sharing.application.usecase.invitation import (
    CreateInvitationRequest,
    CreateInvitationUseCase,
)
from sharing.domain.error import (
    AuthenticationError,
    EmailSendError,
    InvalidArgumentsError,
    MissingTokenError,
)
from sharing.persistence.repository.inmemory import InMemoryEntityStore
from tests.factories import (
    ALICE,
    BOB,
    REDIRECT_URL,
    TERM,
    friend_status,
    load_invitations,
    register_users,
    seed_schedule,
    v3_schedule,
)
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestCreateInvitationUseCase:
    """Tests for CreateInvitationUseCase."""

    async def _setup(self, unit_env):
        tokens = register_users(await unit_env.get(MockIdentityClient))
        store = await unit_env.get(InMemoryEntityStore)
        await seed_schedule(store, ALICE, v3_schedule())
        use_case = await unit_env.get(CreateInvitationUseCase)
        dispatcher = await unit_env.get(RecordingEmailDispatcher)
        return use_case, store, dispatcher, tokens

    def _request(self, token, **overrides) -> CreateInvitationRequest:
        fields = {
            "identity_token": token,
            "term": TERM,
            "versions": ["v1", "v2"],
            "friend_email": "bob@example.com",
            "redirect_url": REDIRECT_URL,
        }
        fields.update(overrides)
        return CreateInvitationRequest(**fields)

    @pytest.mark.asyncio
    async def test_creates_invitation_and_sends_email(self, unit_env):
        use_case, store, dispatcher, tokens = await self._setup(unit_env)

        response = await use_case.execute(self._request(tokens[ALICE]))

        [invitation] = await load_invitations(store)
        assert response.invite_id == invitation.id
        assert await friend_status(store, ALICE, BOB, "v1") == "Pending"
        [email] = dispatcher.sent
        assert email.to == "bob@example.com"
        assert "Fall 2024" in email.text
        assert "Primary v1, Primary v2" in email.text
        assert f"{REDIRECT_URL}/#/invite/{invitation.id}" in email.text

    @pytest.mark.asyncio
    async def test_email_failure_keeps_invitation(self, unit_env):
        use_case, store, dispatcher, tokens = await self._setup(unit_env)
        dispatcher.fail = True

        with pytest.raises(EmailSendError):
            await use_case.execute(self._request(tokens[ALICE]))

        assert len(await load_invitations(store)) == 1
        assert await friend_status(store, ALICE, BOB, "v1") == "Pending"

    @pytest.mark.asyncio
    async def test_missing_token(self, unit_env):
        use_case, store, dispatcher, _ = await self._setup(unit_env)

        with pytest.raises(MissingTokenError):
            await use_case.execute(self._request(None))

        assert dispatcher.sent == []

    @pytest.mark.asyncio
    async def test_invalid_token(self, unit_env):
        use_case, _, _, _ = await self._setup(unit_env)

        with pytest.raises(AuthenticationError):
            await use_case.execute(self._request("forged"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "missing", ["term", "versions", "friend_email", "redirect_url"]
    )
    async def test_missing_arguments(self, unit_env, missing):
        use_case, store, _, tokens = await self._setup(unit_env)
        empty = [] if missing == "versions" else ""

        with pytest.raises(InvalidArgumentsError):
            await use_case.execute(self._request(tokens[ALICE], **{missing: empty}))

        assert await load_invitations(store) == []
