"""Friend schedule routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sharing.application.usecase.invitation import (
    FetchFriendSchedulesRequest,
    FetchFriendSchedulesResponse,
    FetchFriendSchedulesUseCase,
)
from sharing.interface.api.auth import bearer_token

router = APIRouter(
    prefix="/friend-schedules", tags=["friend-schedules"], route_class=DishkaRoute
)


class FetchFriendSchedulesAPIRequest(BaseModel):
    """API request naming the versions wanted from each sender."""

    term: str = ""
    friends: dict[str, list[str]] = {}


@router.post("", response_model=FetchFriendSchedulesResponse)
async def fetch_friend_schedules(
    request: FetchFriendSchedulesAPIRequest,
    use_case: FromDishka[FetchFriendSchedulesUseCase],
    identity_token: str | None = Depends(bearer_token),
) -> FetchFriendSchedulesResponse:
    """Read schedule versions other users have shared with the caller."""
    return await use_case.execute(
        FetchFriendSchedulesRequest(
            identity_token=identity_token,
            term=request.term,
            friends=request.friends,
        )
    )
