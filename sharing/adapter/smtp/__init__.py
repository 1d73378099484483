"""SMTP email adapter."""

from .dispatcher import RecordingEmailDispatcher, SentEmail, SmtpEmailDispatcher

__all__ = [
    "RecordingEmailDispatcher",
    "SentEmail",
    "SmtpEmailDispatcher",
]
