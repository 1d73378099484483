"""Email infrastructure providers."""

from dishka import Scope, provide

from sharing.adapter.smtp import SmtpEmailDispatcher
from sharing.config import Settings
from sharing.domain.service import EmailDispatcher
from sharing.util.di.base import ProviderBase
from sharing.util.error import ConfigurationError


class EmailProvider(ProviderBase):
    """Email component base."""

    __mock_component__ = "email"


class ProdEmailProvider(EmailProvider):
    """Production email provider using SMTP."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_email_dispatcher(self, settings: Settings) -> EmailDispatcher:
        """Provide SMTP email dispatcher.

        Raises:
            ConfigurationError: If no SMTP host is configured
        """
        email = settings.email
        if not email.smtp_host:
            raise ConfigurationError("SMTP host must be configured")

        return SmtpEmailDispatcher(
            host=email.smtp_host,
            port=email.smtp_port,
            from_address=email.from_address,
            username=email.username,
            password=email.password,
            use_tls=email.use_tls,
            timeout=email.timeout_seconds,
        )
