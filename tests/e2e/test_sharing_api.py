"""End-to-end tests for the schedule sharing HTTP API.

The app runs on the all-mock container: in-memory store, registered mock
identities, a recording email dispatcher and a frozen clock.
"""

import httpx
import pytest
import pytest_asyncio

from sharing.adapter.firebase import MockIdentityClient
from sharing.adapter.smtp import RecordingEmailDispatcher
from sharing.config import Settings
from sharing.domain.service import FrozenClock
from sharing.interface.api.app import create_app
from sharing.persistence.repository.inmemory import InMemoryEntityStore
from tests.di import build_test_container
from tests.factories import (
    ALICE,
    BOB,
    CAROL,
    REDIRECT_URL,
    TERM,
    assert_consistent,
    load_friend_access,
    register_users,
    seed_schedule,
    v3_schedule,
)


class Env:
    """Handles on the mock components behind the app."""

    def __init__(self, client, store, dispatcher, clock, tokens):
        self.client = client
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock
        self.tokens = tokens

    def auth(self, uid) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens[uid]}"}


@pytest_asyncio.fixture
async def env():
    container = build_test_container()
    app = create_app(container=container, settings=Settings(), instrument=False)
    tokens = register_users(await container.get(MockIdentityClient))
    store = await container.get(InMemoryEntityStore)
    await seed_schedule(store, ALICE, v3_schedule())

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield Env(
            client,
            store,
            await container.get(RecordingEmailDispatcher),
            await container.get(FrozenClock),
            tokens,
        )
    await container.close()


async def _invite(env: Env, versions=("v1",)) -> str:
    response = await env.client.post(
        "/invitations",
        headers=env.auth(ALICE),
        json={
            "term": TERM,
            "versions": list(versions),
            "friend_email": "bob@example.com",
            "redirect_url": REDIRECT_URL,
        },
    )
    assert response.status_code == 200
    return response.json()["invite_id"]


class TestSharingFlow:
    """Invite, accept, read and revoke through the API."""

    @pytest.mark.asyncio
    async def test_full_flow(self, env):
        invite_id = await _invite(env, versions=("v1", "v2"))
        assert len(env.dispatcher.sent) == 1

        accept = await env.client.post(
            f"/invitations/{invite_id}/accept", headers=env.auth(BOB)
        )
        assert accept.status_code == 202
        assert accept.json() == {"email": "alice@example.com", "term": TERM}
        await assert_consistent(env.store, ALICE, BOB)

        fetch = await env.client.post(
            "/friend-schedules",
            headers=env.auth(BOB),
            json={"term": TERM, "friends": {ALICE: ["v1", "v2"]}},
        )
        assert fetch.status_code == 200
        versions = fetch.json()["schedules"][ALICE]["versions"]
        assert sorted(versions) == ["v1", "v2"]
        assert versions["v1"]["name"] == "Primary v1"

        revoke = await env.client.post(
            "/shared-schedules/revoke",
            headers=env.auth(ALICE),
            json={"counterparty_id": BOB, "term": TERM, "versions": ["v1", "v2"]},
        )
        assert revoke.status_code == 204
        await assert_consistent(env.store, ALICE, BOB)

        denied = await env.client.post(
            "/friend-schedules",
            headers=env.auth(BOB),
            json={"term": TERM, "friends": {ALICE: ["v1"]}},
        )
        assert denied.status_code == 403
        assert denied.json()["error"]["code"] == "NotAuthorized"

    @pytest.mark.asyncio
    async def test_link_flow(self, env):
        response = await env.client.post(
            "/invitations/link",
            headers=env.auth(ALICE),
            json={
                "term": TERM,
                "versions": ["v1"],
                "redirect_url": REDIRECT_URL,
                "valid_for": 3600,
            },
        )
        assert response.status_code == 200
        link = response.json()["link"]
        assert link.startswith(f"{REDIRECT_URL}#/invite/")
        invite_id = link.rsplit("/", 1)[1]

        for friend in (BOB, CAROL):
            accept = await env.client.post(
                f"/invitations/{invite_id}/accept", headers=env.auth(friend)
            )
            assert accept.status_code == 202

        again = await env.client.post(
            f"/invitations/{invite_id}/accept", headers=env.auth(BOB)
        )
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "AlreadyAccepted"
        access = await load_friend_access(env.store, CAROL)
        assert access.accessible_versions(TERM, ALICE) == ["v1"]


class TestErrorResponses:
    """Error codes and statuses."""

    @pytest.mark.asyncio
    async def test_missing_token(self, env):
        response = await env.client.post(
            "/invitations",
            json={
                "term": TERM,
                "versions": ["v1"],
                "friend_email": "bob@example.com",
                "redirect_url": REDIRECT_URL,
            },
        )

        assert response.status_code == 401
        assert response.json() == {
            "error": {"code": "NoToken", "message": "IDToken not provided"}
        }

    @pytest.mark.asyncio
    async def test_non_bearer_authorization(self, env):
        response = await env.client.post(
            "/invitations/unknown/accept", headers={"Authorization": "Basic abc"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AuthFailed"

    @pytest.mark.asyncio
    async def test_forged_token(self, env):
        response = await env.client.post(
            "/invitations/unknown/accept", headers={"Authorization": "Bearer forged"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AuthFailed"

    @pytest.mark.asyncio
    async def test_unknown_invitation(self, env):
        response = await env.client.post(
            "/invitations/unknown/accept", headers=env.auth(BOB)
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "InvalidInvite"

    @pytest.mark.asyncio
    async def test_wrong_friend(self, env):
        invite_id = await _invite(env)

        response = await env.client.post(
            f"/invitations/{invite_id}/accept", headers=env.auth(CAROL)
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FriendMismatch"

    @pytest.mark.asyncio
    async def test_expired_invitation(self, env):
        invite_id = await _invite(env)
        env.clock.advance(7 * 24 * 60 * 60)

        response = await env.client.post(
            f"/invitations/{invite_id}/accept", headers=env.auth(BOB)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "Expired"

    @pytest.mark.asyncio
    async def test_self_invite(self, env):
        response = await env.client.post(
            "/invitations",
            headers=env.auth(ALICE),
            json={
                "term": TERM,
                "versions": ["v1"],
                "friend_email": "alice@example.com",
                "redirect_url": REDIRECT_URL,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SelfInvite"

    @pytest.mark.asyncio
    async def test_malformed_friend_email(self, env):
        response = await env.client.post(
            "/invitations",
            headers=env.auth(ALICE),
            json={
                "term": TERM,
                "versions": ["v1"],
                "friend_email": "not-an-email",
                "redirect_url": REDIRECT_URL,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "InvalidArgs"
        assert env.dispatcher.sent == []

    @pytest.mark.asyncio
    async def test_malformed_body(self, env):
        response = await env.client.post(
            "/invitations",
            headers=env.auth(ALICE),
            json={"term": TERM, "versions": 5},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "InvalidArgs"

    @pytest.mark.asyncio
    async def test_email_failure(self, env):
        env.dispatcher.fail = True

        response = await env.client.post(
            "/invitations",
            headers=env.auth(ALICE),
            json={
                "term": TERM,
                "versions": ["v1"],
                "friend_email": "bob@example.com",
                "redirect_url": REDIRECT_URL,
            },
        )

        assert response.status_code == 502
        assert response.json()["error"]["code"] == "EmailSendFailed"


@pytest.mark.asyncio
async def test_health(env):
    response = await env.client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
