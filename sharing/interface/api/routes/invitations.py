"""Invitation routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from sharing.application.usecase.invitation import (
    CreateInvitationLinkRequest,
    CreateInvitationLinkResponse,
    CreateInvitationLinkUseCase,
    CreateInvitationRequest,
    CreateInvitationResponse,
    CreateInvitationUseCase,
    HandleInvitationRequest,
    HandleInvitationResponse,
    HandleInvitationUseCase,
)
from sharing.interface.api.auth import bearer_token

router = APIRouter(prefix="/invitations", tags=["invitations"], route_class=DishkaRoute)


class CreateInvitationAPIRequest(BaseModel):
    """API request for inviting a friend by email."""

    term: str = ""
    versions: list[str] = []
    friend_email: str = ""
    redirect_url: str = ""


class CreateInvitationLinkAPIRequest(BaseModel):
    """API request for creating an invitation link."""

    term: str = ""
    versions: list[str] = []
    redirect_url: str = ""
    valid_for: int | None = None


@router.post("", response_model=CreateInvitationResponse)
async def create_invitation(
    request: CreateInvitationAPIRequest,
    use_case: FromDishka[CreateInvitationUseCase],
    identity_token: str | None = Depends(bearer_token),
) -> CreateInvitationResponse:
    """Invite a friend by email.

    The friend's access is pending until they accept. The invitation email
    is sent after the invitation is stored.
    """
    return await use_case.execute(
        CreateInvitationRequest(
            identity_token=identity_token,
            term=request.term,
            versions=request.versions,
            friend_email=request.friend_email,
            redirect_url=request.redirect_url,
        )
    )


@router.post("/link", response_model=CreateInvitationLinkResponse)
async def create_invitation_link(
    request: CreateInvitationLinkAPIRequest,
    use_case: FromDishka[CreateInvitationLinkUseCase],
    identity_token: str | None = Depends(bearer_token),
) -> CreateInvitationLinkResponse:
    """Create a reusable invitation link."""
    return await use_case.execute(
        CreateInvitationLinkRequest(
            identity_token=identity_token,
            term=request.term,
            versions=request.versions,
            redirect_url=request.redirect_url,
            valid_for=request.valid_for,
        )
    )


@router.post(
    "/{invite_id}/accept",
    response_model=HandleInvitationResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def accept_invitation(
    invite_id: str,
    use_case: FromDishka[HandleInvitationUseCase],
    identity_token: str | None = Depends(bearer_token),
) -> HandleInvitationResponse:
    """Accept an invitation as the signed-in user.

    Returns:
        The sender's email and the shared term
    """
    return await use_case.execute(
        HandleInvitationRequest(invite_id=invite_id, identity_token=identity_token)
    )
