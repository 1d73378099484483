"""Create invitation link use case."""

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.error import InvalidArgumentsError, MissingTokenError
from sharing.domain.service import IdentityService, InvitationService
from sharing.domain.value import Term, VersionId


class CreateInvitationLinkRequest(BaseModel):
    """Request to create a reusable invitation link."""

    identity_token: str | None = None
    term: str = ""
    versions: list[str] = []
    redirect_url: str = ""
    valid_for: int | None = None  # Seconds


class CreateInvitationLinkResponse(BaseModel):
    """Response with the shareable link."""

    link: str


class CreateInvitationLinkUseCase(
    BaseUseCase[CreateInvitationLinkRequest, CreateInvitationLinkResponse]
):
    """Use case for creating a link any signed-in user can accept."""

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

    async def execute(
        self, request: CreateInvitationLinkRequest
    ) -> CreateInvitationLinkResponse:
        """Create a link invitation.

        Args:
            request: Link details and the sender's identity token

        Returns:
            Link of the form ``{redirect_url}#/invite/{invite_id}``
        """
        with logfire.span("create_invitation_link.execute", term=request.term):
            if not request.identity_token:
                raise MissingTokenError()
            if (
                not request.term
                or not request.versions
                or not request.redirect_url
                or not request.valid_for
                or request.valid_for <= 0
            ):
                raise InvalidArgumentsError()

            sender = await self.identity_service.authenticate(request.identity_token)
            if not sender.email:
                raise InvalidArgumentsError("Cannot share schedule link without an email")

            created = await self.invitation_service.create_invitation(
                sender,
                Term(request.term),
                [VersionId(v) for v in request.versions],
                valid_for_seconds=request.valid_for,
            )
            return CreateInvitationLinkResponse(
                link=f"{request.redirect_url}#/invite/{created.invitation.id}"
            )
