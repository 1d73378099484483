"""Handle (accept) invitation use case."""

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.error import AuthenticationError, InvalidInviteError
from sharing.domain.service import IdentityService, InvitationService
from sharing.domain.value import InvitationId


class HandleInvitationRequest(BaseModel):
    """Request to accept an invitation."""

    invite_id: str = ""
    identity_token: str | None = None


class HandleInvitationResponse(BaseModel):
    """Response after accepting an invitation."""

    email: str  # Sender's email
    term: str


class HandleInvitationUseCase(
    BaseUseCase[HandleInvitationRequest, HandleInvitationResponse]
):
    """Use case for accepting an email or link invitation."""

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

    async def execute(self, request: HandleInvitationRequest) -> HandleInvitationResponse:
        """Accept an invitation on behalf of the token's subject.

        Args:
            request: Invitation id and the accepting user's identity token

        Returns:
            The sender's email and the invitation term
        """
        with logfire.span("handle_invitation.execute", invite_id=request.invite_id):
            if not request.invite_id:
                raise InvalidInviteError()
            # Acceptance treats a missing token like any unverifiable one
            if not request.identity_token:
                raise AuthenticationError()

            friend = await self.identity_service.authenticate(request.identity_token)
            accepted = await self.invitation_service.accept_invitation(
                InvitationId(request.invite_id), friend
            )
            return HandleInvitationResponse(
                email=accepted.sender_email, term=accepted.term
            )
