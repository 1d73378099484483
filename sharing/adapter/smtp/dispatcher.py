"""SMTP email dispatcher."""

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import logfire

from sharing.domain.error import EmailSendError
from sharing.domain.service.notification_service import EmailDispatcher


class SmtpEmailDispatcher(EmailDispatcher):
    """Sends multipart (text + HTML) email through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        """Initialize SMTP dispatcher.

        Args:
            host: SMTP relay host
            port: SMTP relay port
            from_address: Sender address for every message
            username: Login user, if the relay requires auth
            password: Login password
            use_tls: Upgrade the connection with STARTTLS
            timeout: Socket timeout in seconds
        """
        self.host = host
        self.port = port
        self.from_address = from_address
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self.from_address
        message["To"] = to
        message.attach(MIMEText(text, "plain"))
        message.attach(MIMEText(html, "html"))

        try:
            # smtplib blocks, keep it off the event loop
            await asyncio.to_thread(self._send_sync, to, message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailSendError(f"SMTP delivery to {to} failed: {e}") from e
        logfire.info("SMTP message handed off", host=self.host, subject=subject)

    def _send_sync(self, to: str, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.sendmail(self.from_address, [to], message.as_string())


class SentEmail:
    """An email captured by RecordingEmailDispatcher."""

    def __init__(self, to: str, subject: str, text: str, html: str) -> None:
        self.to = to
        self.subject = subject
        self.text = text
        self.html = html


class RecordingEmailDispatcher(EmailDispatcher):
    """Email dispatcher that records messages instead of sending them.

    Set ``fail`` to make every send raise EmailSendError.
    """

    def __init__(self) -> None:
        self.sent: list[SentEmail] = []
        self.fail = False

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        if self.fail:
            raise EmailSendError(f"Simulated delivery failure to {to}")
        self.sent.append(SentEmail(to=to, subject=subject, text=text, html=html))
