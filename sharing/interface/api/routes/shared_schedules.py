"""Shared schedule routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from sharing.application.usecase.invitation import (
    RevokeInvitationRequest,
    RevokeInvitationUseCase,
)
from sharing.interface.api.auth import bearer_token

router = APIRouter(
    prefix="/shared-schedules", tags=["shared-schedules"], route_class=DishkaRoute
)


class RevokeAPIRequest(BaseModel):
    """API request for removing a share in either direction.

    With ``owner`` set the caller owns the schedule and ``counterparty_id``
    is the friend; otherwise the caller is the friend and
    ``counterparty_id`` owns the schedule.
    """

    counterparty_id: str = ""
    term: str = ""
    versions: list[str] = []
    owner: bool = True


@router.post("/revoke", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_shared_schedule(
    request: RevokeAPIRequest,
    use_case: FromDishka[RevokeInvitationUseCase],
    identity_token: str | None = Depends(bearer_token),
) -> Response:
    """Stop sharing schedule versions."""
    await use_case.execute(
        RevokeInvitationRequest(
            identity_token=identity_token,
            counterparty_id=request.counterparty_id,
            term=request.term,
            versions=request.versions,
            owner=request.owner,
        )
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
