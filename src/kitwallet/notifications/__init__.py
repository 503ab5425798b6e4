"""Notification services."""

from kitwallet.notifications.mailer import (
    HttpMailer,
    LogMailer,
    Mailer,
    MailType,
    create_mailer,
)

__all__ = ["HttpMailer", "LogMailer", "MailType", "Mailer", "create_mailer"]
