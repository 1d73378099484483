"""Application layer DI providers."""

from dishka import Scope, provide

from sharing.application.usecase.invitation import (
    CreateInvitationLinkUseCase,
    CreateInvitationUseCase,
    FetchFriendSchedulesUseCase,
    HandleInvitationUseCase,
    RevokeInvitationUseCase,
    SweepInvitationsUseCase,
)
from sharing.domain.service import (
    FriendScheduleService,
    IdentityService,
    InvitationService,
    NotificationService,
)
from sharing.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_create_invitation_use_case(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
        notification_service: NotificationService,
    ) -> CreateInvitationUseCase:
        """Provide create invitation use case."""
        return CreateInvitationUseCase(
            identity_service=identity_service,
            invitation_service=invitation_service,
            notification_service=notification_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_create_invitation_link_use_case(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
    ) -> CreateInvitationLinkUseCase:
        """Provide create invitation link use case."""
        return CreateInvitationLinkUseCase(
            identity_service=identity_service,
            invitation_service=invitation_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_handle_invitation_use_case(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
    ) -> HandleInvitationUseCase:
        """Provide handle invitation use case."""
        return HandleInvitationUseCase(
            identity_service=identity_service,
            invitation_service=invitation_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_revoke_invitation_use_case(
        self,
        identity_service: IdentityService,
        invitation_service: InvitationService,
    ) -> RevokeInvitationUseCase:
        """Provide revoke invitation use case."""
        return RevokeInvitationUseCase(
            identity_service=identity_service,
            invitation_service=invitation_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_fetch_friend_schedules_use_case(
        self,
        identity_service: IdentityService,
        friend_schedule_service: FriendScheduleService,
    ) -> FetchFriendSchedulesUseCase:
        """Provide fetch friend schedules use case."""
        return FetchFriendSchedulesUseCase(
            identity_service=identity_service,
            friend_schedule_service=friend_schedule_service,
        )

    @provide(scope=Scope.REQUEST)
    def get_sweep_invitations_use_case(
        self, invitation_service: InvitationService
    ) -> SweepInvitationsUseCase:
        """Provide sweep invitations use case."""
        return SweepInvitationsUseCase(invitation_service=invitation_service)
