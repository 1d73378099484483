"""Identity infrastructure providers."""

from dishka import Scope, provide

from sharing.adapter.firebase import FirebaseIdentityClient, service_account_credentials
from sharing.config import Settings
from sharing.domain.service import IdentityClient
from sharing.util.di.base import ProviderBase
from sharing.util.error import ConfigurationError


class IdentityProvider(ProviderBase):
    """Identity component base."""

    __mock_component__ = "identity"


class ProdIdentityProvider(IdentityProvider):
    """Production identity provider backed by Firebase Authentication."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_identity_client(self, settings: Settings) -> IdentityClient:
        """Provide identity client.

        Token verification works without a service account; user lookups
        fail with a provider error until one is configured.

        Returns:
            Firebase identity client

        Raises:
            ConfigurationError: If the identity project is not configured
        """
        identity = settings.identity
        if not identity.project_id:
            raise ConfigurationError("Identity project ID must be configured")

        credentials = None
        if identity.client_email and identity.private_key:
            credentials = service_account_credentials(
                project_id=identity.project_id,
                client_email=identity.client_email,
                private_key=identity.private_key,
                token_url=identity.token_url,
            )

        return FirebaseIdentityClient(
            project_id=identity.project_id,
            identity_toolkit_url=identity.identity_toolkit_url,
            credentials=credentials,
            leeway_seconds=identity.leeway_seconds,
        )
