"""Create invitation use case."""

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.error import InvalidArgumentsError, MissingTokenError
from sharing.domain.service import (
    IdentityService,
    InvitationService,
    NotificationService,
)
from sharing.domain.value import Term, VersionId


class CreateInvitationRequest(BaseModel):
    """Request to invite a friend by email."""

    identity_token: str | None = None
    term: str = ""
    versions: list[str] = []
    friend_email: str = ""
    redirect_url: str = ""


class CreateInvitationResponse(BaseModel):
    """Response after creating an invitation."""

    invite_id: str


class CreateInvitationUseCase(
    BaseUseCase[CreateInvitationRequest, CreateInvitationResponse]
):
    """Use case for inviting a friend to schedule versions by email.

    The invitation and the friend's Pending entries are committed before
    the email is sent. A failed send surfaces as EmailSendError but the
    invitation stays valid.
    """

    def __init__(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
        notification_service: NotificationService,
    ) -> None:
        """Initialize use case.

        Args:
            identity_service: Identity domain service
            invitation_service: Invitation domain service
            notification_service: Notification domain service
        """
        self.identity_service = identity_service
        self.invitation_service = invitation_service
        self.notification_service = notification_service

    async def execute(self, request: CreateInvitationRequest) -> CreateInvitationResponse:
        """Create an email invitation and notify the friend.

        Args:
            request: Invitation details and the sender's identity token

        Returns:
            Id of the stored invitation
        """
        with logfire.span("create_invitation.execute", term=request.term):
            if not request.identity_token:
                raise MissingTokenError()
            if (
                not request.term
                or not request.versions
                or not request.friend_email
                or not request.redirect_url
            ):
                raise InvalidArgumentsError()

            sender = await self.identity_service.authenticate(request.identity_token)
            created = await self.invitation_service.create_invitation(
                sender,
                Term(request.term),
                [VersionId(v) for v in request.versions],
                friend_email=request.friend_email,
            )

            await self.notification_service.send_invitation(
                invite_id=created.invitation.id,
                sender_email=sender.email or "",
                friend_email=request.friend_email,
                term=created.invitation.term,
                version_names=created.version_names,
                redirect_url=request.redirect_url,
            )
            return CreateInvitationResponse(invite_id=created.invitation.id)
