from .factory import EmailSenderFactory, create_email_sender
from .logging_email_sender import LoggingEmailSender
from .resend_email_sender import ResendEmailSender, render_reminder_email

__all__ = [
    "EmailSenderFactory",
    "create_email_sender",
    "LoggingEmailSender",
    "ResendEmailSender",
    "render_reminder_email",
]
