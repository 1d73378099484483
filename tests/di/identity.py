"""Mock identity providers for testing."""

from dishka import Scope, provide

from sharing.adapter.firebase import MockIdentityClient
from sharing.domain.service import IdentityClient
from sharing.util.di.infrastructure.identity import IdentityProvider


class MockIdentityProvider(IdentityProvider):
    """Mock identity provider with registered test users."""

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_mock_identity_client(self) -> MockIdentityClient:
        """Provide mock identity client."""
        return MockIdentityClient()

    @provide(scope=Scope.APP)
    def get_identity_client(self, client: MockIdentityClient) -> IdentityClient:
        """Expose the mock client as the identity client."""
        return client
