"""Firebase identity client.

ID tokens are verified with google-auth against Google's published
securetoken certificates. User lookups use the Identity Toolkit
``accounts:lookup`` endpoint, authorised by service account credentials
that google-auth refreshes on demand.
"""

import asyncio
from typing import Any

import google.auth.exceptions
import google.auth.transport
import google.auth.transport.requests
import httpx
import logfire
from google.auth.credentials import Credentials
from google.oauth2 import id_token as google_id_token
from google.oauth2 import service_account

from sharing.adapter.error import ProviderError
from sharing.domain.error import AuthenticationError, EmailNotFoundError, NotFoundError
from sharing.domain.service.identity_service import (
    IdentityClient,
    IdentityRecord,
    VerifiedIdentity,
)
from sharing.domain.value import UserId

IDENTITY_TOOLKIT_SCOPE = "https://www.googleapis.com/auth/identitytoolkit"


def service_account_credentials(
    project_id: str, client_email: str, private_key: str, token_url: str
) -> Credentials:
    """Scoped credentials for Identity Toolkit calls.

    Keys read from environment variables often carry escaped newlines.
    """
    return service_account.Credentials.from_service_account_info(
        {
            "type": "service_account",
            "project_id": project_id,
            "client_email": client_email,
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": token_url,
        },
        scopes=[IDENTITY_TOOLKIT_SCOPE],
    )


class FirebaseIdentityClient(IdentityClient):
    """Identity client for Firebase Authentication projects."""

    def __init__(
        self,
        project_id: str,
        identity_toolkit_url: str,
        credentials: Credentials | None = None,
        leeway_seconds: int = 60,
        google_request: google.auth.transport.Request | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Firebase identity client.

        Args:
            project_id: Firebase project id (token audience)
            identity_toolkit_url: Identity Toolkit API base URL
            credentials: Service account credentials for user lookups
            leeway_seconds: Allowed clock skew for token times
            google_request: google-auth transport for certificate fetches
                and credential refreshes
            transport: Optional httpx transport for lookups (tests)
        """
        self.project_id = project_id
        self.issuer = f"https://securetoken.google.com/{project_id}"
        self.identity_toolkit_url = identity_toolkit_url.rstrip("/")
        self.credentials = credentials
        self.leeway_seconds = leeway_seconds
        self._google_request = google_request or google.auth.transport.requests.Request()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=10.0)

    async def verify_token(self, token: str) -> VerifiedIdentity:
        try:
            # Blocking: fetches the signing certificates
            claims = await asyncio.to_thread(
                google_id_token.verify_firebase_token,
                token,
                self._google_request,
                audience=self.project_id,
                clock_skew_in_seconds=self.leeway_seconds,
            )
        except google.auth.exceptions.TransportError as e:
            logfire.error("Failed to fetch signing certificates", error=str(e))
            raise ProviderError(
                "firebase", f"could not fetch signing certificates: {e}"
            ) from e
        except (ValueError, google.auth.exceptions.GoogleAuthError) as e:
            raise AuthenticationError(f"Invalid identity token: {e}") from e

        # verify_firebase_token checks the audience only
        if claims.get("iss") != self.issuer:
            raise AuthenticationError("Identity token has the wrong issuer")
        if not claims.get("sub"):
            raise AuthenticationError("Identity token has an empty subject")
        return VerifiedIdentity(uid=UserId(claims["sub"]), email=claims.get("email"))

    async def _service_token(self) -> str:
        if self.credentials is None:
            raise ProviderError(
                "firebase", "service account credentials are not configured"
            )
        if not self.credentials.valid:
            try:
                await asyncio.to_thread(self.credentials.refresh, self._google_request)
            except google.auth.exceptions.GoogleAuthError as e:
                logfire.error("Service account token refresh failed", error=str(e))
                raise ProviderError(
                    "firebase", f"could not obtain access token: {e}"
                ) from e
        return self.credentials.token

    async def _lookup(self, body: dict[str, Any]) -> list[dict[str, Any]]:
        access_token = await self._service_token()
        url = f"{self.identity_toolkit_url}/projects/{self.project_id}/accounts:lookup"
        try:
            async with self._client() as client:
                response = await client.post(
                    url,
                    json=body,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            logfire.error("Identity lookup failed", error=str(e))
            raise ProviderError("firebase", f"identity lookup failed: {e}") from e
        return response.json().get("users", [])

    async def get_user_by_email(self, email: str) -> UserId:
        users = await self._lookup({"email": [email]})
        if not users:
            raise EmailNotFoundError()
        return UserId(users[0]["localId"])

    async def get_user(self, uid: UserId) -> IdentityRecord:
        users = await self._lookup({"localId": [uid]})
        if not users:
            raise NotFoundError("User", uid)
        user = users[0]
        return IdentityRecord(
            uid=UserId(user["localId"]),
            email=user.get("email"),
            display_name=user.get("displayName"),
        )


class MockIdentityClient(IdentityClient):
    """In-memory identity client for development and testing.

    Users are registered up front; each gets a fixed opaque token.
    """

    def __init__(self) -> None:
        self._users: dict[UserId, IdentityRecord] = {}
        self._tokens: dict[str, UserId] = {}

    def register_user(
        self, uid: str, email: str | None, display_name: str | None = None
    ) -> str:
        """Register a user and return an identity token for them."""
        user_id = UserId(uid)
        self._users[user_id] = IdentityRecord(
            uid=user_id, email=email, display_name=display_name
        )
        token = f"mock-token-{uid}"
        self._tokens[token] = user_id
        return token

    async def verify_token(self, token: str) -> VerifiedIdentity:
        uid = self._tokens.get(token)
        if uid is None:
            raise AuthenticationError("Invalid identity token")
        return VerifiedIdentity(uid=uid, email=self._users[uid].email)

    async def get_user_by_email(self, email: str) -> UserId:
        for user in self._users.values():
            if user.email and user.email.lower() == email.lower():
                return user.uid
        raise EmailNotFoundError()

    async def get_user(self, uid: UserId) -> IdentityRecord:
        user = self._users.get(uid)
        if user is None:
            raise NotFoundError("User", uid)
        return user
