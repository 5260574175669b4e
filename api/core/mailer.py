"""
SMTP client helpers.

`smtplib` is blocking, so `send_message` hands the exchange to a worker
thread and keeps the event loop free.

Port 465 (or EMAIL_SECURE=true) uses implicit TLS; anything else upgrades
with STARTTLS when the server offers it.
"""

from __future__ import annotations

import asyncio
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid

from .env import env_bool, env_float, env_int, env_str


# SMTP failures are explicit and separable from other runtime errors.
class MailerError(RuntimeError):
    pass


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    secure: bool
    username: str
    password: str
    from_name: str
    receiver: str
    timeout_s: float

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.receiver)

    @property
    def sender_address(self) -> str:
        return formataddr((self.from_name, self.username)) if self.from_name else self.username


def settings_from_env() -> SmtpSettings:
    port = env_int("EMAIL_PORT", 587)
    return SmtpSettings(
        host=env_str("EMAIL_HOST", "localhost"),
        port=port,
        secure=env_bool("EMAIL_SECURE", default=port == 465),
        username=env_str("EMAIL_USER"),
        password=env_str("EMAIL_PASS"),
        from_name=env_str("EMAIL_FROM_NAME", "Handl Form Alert"),
        receiver=env_str("EMAIL_RECEIVER"),
        timeout_s=env_float("EMAIL_TIMEOUT_S", 15.0),
    )


def build_message(
    *,
    settings: SmtpSettings,
    subject: str,
    text_body: str,
    html_body: str,
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.sender_address
    msg["To"] = settings.receiver
    msg["Message-ID"] = make_msgid(domain="handl")
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    return msg


def _deliver(settings: SmtpSettings, msg: EmailMessage) -> None:
    context = ssl.create_default_context()
    if settings.secure:
        with smtplib.SMTP_SSL(settings.host, settings.port, context=context, timeout=settings.timeout_s) as server:
            if settings.password:
                server.login(settings.username, settings.password)
            server.send_message(msg)
        return

    with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout_s) as server:
        server.ehlo()
        if server.has_extn("starttls"):
            server.starttls(context=context)
            server.ehlo()
        if settings.password:
            server.login(settings.username, settings.password)
        server.send_message(msg)


async def send_message(settings: SmtpSettings, msg: EmailMessage) -> str:
    """
    Deliver `msg` and return its Message-ID (may be empty).
    """
    try:
        await asyncio.to_thread(_deliver, settings, msg)
    except (smtplib.SMTPException, OSError) as exc:
        raise MailerError(f"SMTP delivery to {settings.host}:{settings.port} failed: {exc}") from exc
    return str(msg.get("Message-ID") or "")
