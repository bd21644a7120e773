"""
OP-Blog API: Mail Service
=========================

What:  Sends the account-verification and password-reset emails.
How:   Builds an HTML EmailMessage and hands it to aiosmtplib. Each SMTP
       operation is bounded by `smtp_timeout` and the whole send by
       `mail_send_timeout` (asyncio.wait_for).
Who:   Called by AuthService and PasswordService after their records are
       committed.

Failure Mode:
    Any SMTP, network or timeout failure is logged and surfaced as
    MailDeliveryError (500 "Email send failed"). Nothing is retried; the
    client can request a new link, which reuses the stored token.
"""

import asyncio
import logging
from email.message import EmailMessage

import aiosmtplib

from app.config import settings
from app.exceptions import MailDeliveryError

logger = logging.getLogger(__name__)

_VERIFY_TEMPLATE = """\
<div>
  <p>Click on the link below to verify your email</p>
  <a href="{link}">Verify</a>
</div>
"""

_RESET_TEMPLATE = """\
<div>
  <p>Click on the link below to reset your password</p>
  <a href="{link}">Reset Password</a>
</div>
"""


class MailService:
    """Thin wrapper around aiosmtplib with a hard deadline per send."""

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = settings.mail_from or settings.smtp_username
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        return message

    async def send(self, to: str, subject: str, html: str) -> None:
        message = self._build_message(to, subject, html)
        try:
            await asyncio.wait_for(
                aiosmtplib.send(
                    message,
                    hostname=settings.smtp_host,
                    port=settings.smtp_port,
                    username=settings.smtp_username or None,
                    password=settings.smtp_password or None,
                    use_tls=settings.smtp_use_tls,
                    timeout=settings.smtp_timeout,
                ),
                timeout=settings.mail_send_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Mail to %s timed out after %.0fs", to, settings.mail_send_timeout)
            raise MailDeliveryError(context={"to": to, "reason": "timeout"})
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Mail to %s failed: %s", to, str(e))
            raise MailDeliveryError(context={"to": to, "error_type": type(e).__name__})

        logger.info("Mail sent to %s: %s", to, subject)

    async def send_verification(self, to: str, user_id, token: str) -> None:
        link = f"{settings.client_base_url}/users/{user_id}/verify/{token}"
        await self.send(to, "Verify Your Email", _VERIFY_TEMPLATE.format(link=link))

    async def send_password_reset(self, to: str, user_id, token: str) -> None:
        link = f"{settings.client_base_url}/reset-password/{user_id}/{token}"
        await self.send(to, "Reset Password", _RESET_TEMPLATE.format(link=link))


# ── Singleton Instance ────────────────────────────────────────────────────
mail_service = MailService()
