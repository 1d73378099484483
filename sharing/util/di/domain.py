"""Domain layer DI providers."""

from dishka import Scope, provide

from sharing.config import Settings
from sharing.domain.repository import EntityStore
from sharing.domain.service import (
    Clock,
    EmailDispatcher,
    FriendScheduleService,
    GrantReconciler,
    IdentityClient,
    IdentityService,
    InvitationService,
    NotificationService,
)
from sharing.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Services are REQUEST-scoped; the store they share is APP-scoped and
    opens its own transaction per operation.
    """

    scope = Scope.REQUEST

    @provide
    def get_grant_reconciler(self) -> GrantReconciler:
        """Provide grant reconciler domain service."""
        return GrantReconciler()

    @provide
    def get_identity_service(self, identity_client: IdentityClient) -> IdentityService:
        """Provide identity domain service."""
        return IdentityService(identity_client=identity_client)

    @provide
    def get_notification_service(
        self, email_dispatcher: EmailDispatcher
    ) -> NotificationService:
        """Provide notification domain service."""
        return NotificationService(email_dispatcher=email_dispatcher)

    @provide
    def get_invitation_service(
        self,
        entity_store: EntityStore,
        grant_reconciler: GrantReconciler,
        identity_service: IdentityService,
        clock: Clock,
        settings: Settings,
    ) -> InvitationService:
        """Provide invitation domain service."""
        return InvitationService(
            entity_store=entity_store,
            grant_reconciler=grant_reconciler,
            identity_service=identity_service,
            clock=clock,
            default_valid_for_seconds=settings.invitations.default_valid_for_seconds,
        )

    @provide
    def get_friend_schedule_service(
        self, entity_store: EntityStore
    ) -> FriendScheduleService:
        """Provide friend schedule domain service."""
        return FriendScheduleService(entity_store=entity_store)
