"""Notification domain service.

Composes invitation emails and hands them to the email dispatcher.
Delivery is best effort: the caller has already committed the grant.
"""

import logfire

from sharing.domain.error import EmailSendError
from sharing.domain.value import InvitationId, Term

from .base import Service

SEMESTERS = {
    "02": "Spring",
    "05": "Summer",
    "08": "Fall",
}


class EmailDispatcher:
    """Generic outbound email interface."""

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        """Send one email.

        Args:
            to: Recipient address
            subject: Subject line
            text: Plain text body
            html: HTML body

        Raises:
            EmailSendError: If the message could not be handed off
        """
        raise NotImplementedError


def term_to_string(term: Term) -> str:
    """Render a term key such as "202408" as "Fall 2024".

    Unknown semester codes fall back to the raw term key.
    """
    semester = SEMESTERS.get(term[4:])
    if semester is None:
        return term
    return f"{semester} {term[:4]}"


class NotificationService(Service):
    """Domain service for invitation emails."""

    def __init__(self, email_dispatcher: EmailDispatcher) -> None:
        """Initialize notification service.

        Args:
            email_dispatcher: Outbound email client
        """
        self.email_dispatcher = email_dispatcher

    async def send_invitation(
        self,
        invite_id: InvitationId,
        sender_email: str,
        friend_email: str,
        term: Term,
        version_names: list[str],
        redirect_url: str,
    ) -> None:
        """Email a friend a link to accept a schedule invitation.

        Args:
            invite_id: Invitation to accept
            sender_email: Address of the inviting user
            friend_email: Address of the invited user
            term: Term the shared versions belong to
            version_names: Display names of the shared versions
            redirect_url: Base URL of the frontend

        Raises:
            EmailSendError: If the dispatcher fails
        """
        invite_url = f"{redirect_url.rstrip('/')}/#/invite/{invite_id}"
        semester = term_to_string(term)
        versions = ", ".join(version_names)

        subject = "Friend Schedule Invite"
        text = (
            f"You have been invited to a GT schedule by {sender_email}\n"
            f"\tSemester: {semester}\n"
            f"\tVersion: {versions}\n"
            f"Accept the invite: {invite_url}\n"
        )
        html = (
            "<div>"
            f'<p>You have been invited to a GT schedule by <a href="mailto:{sender_email}">{sender_email}</a></p>'
            f"<p>&emsp;Semester: {semester}</p>"
            f"<p>&emsp;Version: {versions}</p>"
            f'<p>Accept the invite: <a href="{invite_url}">{invite_url}</a></p>'
            "</div>"
        )

        with logfire.span(
            "notification_service.send_invitation", invite_id=invite_id, term=term
        ):
            try:
                await self.email_dispatcher.send(friend_email, subject, text, html)
            except EmailSendError as e:
                logfire.error(
                    "Invitation email failed",
                    invite_id=invite_id,
                    error=str(e),
                )
                raise
            logfire.info("Invitation email sent", invite_id=invite_id)
