"""Identity domain service.

Wraps the external identity provider: token verification for callers and
user lookups for invitation targets.
"""

import logfire

from sharing.domain.error import AuthenticationError, MissingTokenError
from sharing.domain.value import UserId
from sharing.domain.value.common import ValueObject

from .base import Service


class VerifiedIdentity(ValueObject):
    """Subject of a verified identity token."""

    uid: UserId
    email: str | None = None


class IdentityRecord(ValueObject):
    """User record held by the identity provider."""

    uid: UserId
    email: str | None = None
    display_name: str | None = None


class IdentityClient:
    """Generic identity provider interface."""

    async def verify_token(self, token: str) -> VerifiedIdentity:
        """Verify an identity token.

        Args:
            token: Bearer token issued by the identity provider

        Returns:
            Verified subject

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        raise NotImplementedError

    async def get_user_by_email(self, email: str) -> UserId:
        """Resolve an email address to a user id.

        Raises:
            EmailNotFoundError: If no user has this email
        """
        raise NotImplementedError

    async def get_user(self, uid: UserId) -> IdentityRecord:
        """Fetch a user record.

        Raises:
            NotFoundError: If the user does not exist
        """
        raise NotImplementedError


class IdentityService(Service):
    """Domain service for identity operations."""

    def __init__(self, identity_client: IdentityClient) -> None:
        """Initialize identity service.

        Args:
            identity_client: External identity provider client
        """
        self.identity_client = identity_client

    async def authenticate(self, token: str | None) -> VerifiedIdentity:
        """Verify the caller's identity token.

        Args:
            token: Bearer token, possibly missing

        Returns:
            Verified identity of the caller

        Raises:
            MissingTokenError: If no token was supplied
            AuthenticationError: If the token does not verify
        """
        if not token:
            raise MissingTokenError()

        with logfire.span("identity_service.authenticate"):
            try:
                identity = await self.identity_client.verify_token(token)
            except AuthenticationError as e:
                logfire.warn("Identity token rejected", error=str(e))
                raise
            logfire.info("Identity token verified", uid=identity.uid)
            return identity

    async def find_user_id_by_email(self, email: str) -> UserId:
        """Resolve an invitation target's email to a user id.

        Raises:
            EmailNotFoundError: If no user has this email
        """
        with logfire.span("identity_service.find_user_id_by_email"):
            return await self.identity_client.get_user_by_email(email)

    async def get_user(self, uid: UserId) -> IdentityRecord:
        """Fetch a user's record from the identity provider."""
        with logfire.span("identity_service.get_user", uid=uid):
            return await self.identity_client.get_user(uid)
