"""Sweep expired invitations use case."""

import logfire
from pydantic import BaseModel

from sharing.application.usecase.base import BaseUseCase
from sharing.domain.service import InvitationService


class SweepInvitationsResponse(BaseModel):
    """Result of a sweep."""

    removed: int


class SweepInvitationsUseCase(BaseUseCase[None, SweepInvitationsResponse]):
    """Use case for the periodic expired-invitation cleanup."""

    def __init__(self, invitation_service: InvitationService) -> None:
        """Initialize use case.

        Args:
            invitation_service: Invitation domain service
        """
        self.invitation_service = invitation_service

    async def execute(self, request: None = None) -> SweepInvitationsResponse:
        with logfire.span("sweep_invitations.execute"):
            removed = await self.invitation_service.sweep_expired()
            return SweepInvitationsResponse(removed=removed)
