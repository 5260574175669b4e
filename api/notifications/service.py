"""
Notification sender.

One email per accepted submission, always to the single configured
recipient (EMAIL_RECEIVER), never to an address taken from the payload.

The sender is process-wide state with the same lifecycle as the DB pool:
`init_sender()` on startup, `close_sender()` on shutdown. When EMAIL_USER or
EMAIL_RECEIVER is missing, `notify` logs a warning and returns, so the
validate-and-store path keeps working without email.
"""

from __future__ import annotations

import logging
from typing import Any

from core import mailer
from core.errors import DeliveryFailed

from . import rendering

logger = logging.getLogger(__name__)


class NotificationSender:
    def __init__(self, settings: mailer.SmtpSettings):
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    async def notify(self, form_id: str, payload: dict[str, Any]) -> None:
        if not self.is_configured:
            logger.warning("email_not_configured form_id=%s skipping notification", form_id)
            return

        rendered = rendering.render_submission(form_id, payload)
        msg = mailer.build_message(
            settings=self.settings,
            subject=rendered.subject,
            text_body=rendered.text,
            html_body=rendered.html,
        )
        try:
            message_id = await mailer.send_message(self.settings, msg)
        except mailer.MailerError as exc:
            logger.error("email_failed form_id=%s error=%s", form_id, exc)
            raise DeliveryFailed() from exc
        logger.info("email_sent form_id=%s message_id=%s", form_id, message_id)


_sender: NotificationSender | None = None


def init_sender(settings: mailer.SmtpSettings | None = None) -> NotificationSender:
    global _sender
    if _sender is not None:
        return _sender
    _sender = NotificationSender(settings or mailer.settings_from_env())
    if not _sender.is_configured:
        logger.warning("Email sender or receiver not configured. Email notifications are disabled.")
    else:
        logger.info(
            "email_sender_ready host=%s port=%s secure=%s",
            _sender.settings.host,
            _sender.settings.port,
            _sender.settings.secure,
        )
    return _sender


def close_sender() -> None:
    global _sender
    _sender = None


def sender() -> NotificationSender:
    if _sender is None:
        raise RuntimeError("Notification sender is not initialized. Call init_sender() on startup.")
    return _sender


async def notify(form_id: str, payload: dict[str, Any]) -> None:
    await sender().notify(form_id, payload)
