"""Revoke invitation use case."""

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.error import InvalidArgumentsError, MissingTokenError
from sharing.domain.service import IdentityService, InvitationService
from sharing.domain.value import Term, UserId, VersionId


class RevokeInvitationRequest(BaseModel):
    """Request to stop sharing schedule versions.

    ``owner`` is True when the requester owns the schedule and is removing
    a friend, False when a friend removes a schedule shared with them.
    """

    identity_token: str | None = None
    counterparty_id: str = ""
    term: str = ""
    versions: list[str] = []
    owner: bool = True


class RevokeInvitationUseCase(BaseUseCase[RevokeInvitationRequest, None]):
    """Use case for revoking grants and pending invitations from either side."""

    def __init__(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
    ) -> None:
        """Initialize use case.

        Args:
            identity_service: Identity domain service
            invitation_service: Invitation domain service
        """
        self.identity_service = identity_service
        self.invitation_service = invitation_service

    async def execute(self, request: RevokeInvitationRequest) -> None:
        """Revoke the given versions between requester and counterparty.

        Args:
            request: Revocation details and the requester's identity token
        """
        with logfire.span(
            "revoke_invitation.execute", term=request.term, owner=request.owner
        ):
            if not request.identity_token:
                raise MissingTokenError()
            if not request.counterparty_id or not request.term or not request.versions:
                raise InvalidArgumentsError()

            requester = await self.identity_service.authenticate(request.identity_token)
            await self.invitation_service.revoke(
                requester.uid,
                UserId(request.counterparty_id),
                Term(request.term),
                [VersionId(v) for v in request.versions],
                owner=request.owner,
            )
