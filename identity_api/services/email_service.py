"""
Email service: transactional mail through the SendGrid v3 HTTP API (httpx).

Flows depend on the small `Mailer` interface (send to/subject/html, get back a
message id) so tests can swap in a recording fake.

Sending is awaited inside a bounded timeout: the HTTP response only confirms
success once SendGrid has accepted the message (202), not once the user has
received it. Timeouts, transport errors and non-2xx answers all surface as
DeliveryFailedException, never as a validation error.
"""
import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from html import escape
from typing import Optional, Protocol, Sequence, Union

import httpx

from identity_api.config import settings
from identity_api.core.exceptions import DeliveryFailedException

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, to: Union[str, Sequence[str]], subject: str, html: str, **options) -> str: ...
    async def close(self) -> None: ...

class SendGridMailer:
    BASE_URL = "https://api.sendgrid.com/v3"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout_seconds = timeout_seconds
        # Tests pass an httpx.MockTransport here
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.BASE_URL,
                timeout=self.timeout_seconds,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def close(self):
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def send(
        self,
        to: Union[str, Sequence[str]],
        subject: str,
        html: str,
        text: Optional[str] = None,
        cc: Optional[Sequence[str]] = None,
        bcc: Optional[Sequence[str]] = None,
        reply_to: Optional[str] = None,
        attachments: Optional[Sequence[dict]] = None,
    ) -> str:
        """
        Attachments are dicts with `filename` and base64 `content` (and an
        optional `type`). Returns the provider's message id.
        """
        if not self.api_key:
            logger.error("SendGrid API key not configured; cannot send mail")
            raise DeliveryFailedException()

        recipients = [to] if isinstance(to, str) else list(to)
        personalization = {"to": [{"email": r} for r in recipients]}
        if cc:
            personalization["cc"] = [{"email": r} for r in cc]
        if bcc:
            personalization["bcc"] = [{"email": r} for r in bcc]

        # SendGrid wants text/plain ahead of text/html
        content = [{"type": "text/plain", "value": text}] if text else []
        content.append({"type": "text/html", "value": html})

        payload = {
            "personalizations": [personalization],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": content,
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}
        if attachments:
            payload["attachments"] = [
                {k: v for k, v in attachment.items() if v is not None} for attachment in attachments
            ]
        to = ", ".join(recipients)

        http = self._get_http_client()
        try:
            resp = await asyncio.wait_for(
                http.post("/mail/send", json=payload), timeout=self.timeout_seconds
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(f"Mail to {to} timed out after {self.timeout_seconds}s")
            raise DeliveryFailedException()
        except httpx.HTTPError as e:
            logger.error(f"Mail to {to} failed: {e}")
            raise DeliveryFailedException()

        if resp.status_code not in (200, 202):
            logger.error(f"SendGrid rejected mail to {to}: {resp.status_code} - {resp.text}")
            raise DeliveryFailedException()

        message_id = resp.headers.get("X-Message-Id", "")
        logger.info(f"Mail {message_id} accepted for {to}")
        return message_id


@lru_cache()
def get_mailer() -> Mailer:
    """FastAPI dependency. Built once on first use, not at import time."""
    return SendGridMailer(
        api_key=settings.sendgrid_api_key,
        from_email=settings.mail_from,
        from_name=settings.mail_from_name,
        timeout_seconds=settings.mail_timeout_seconds,
    )


# ── Templates ─────────────────────────────────────────────────────────────────

def signup_otp_email(code: str) -> tuple[str, str]:
    subject = "Your Verification Code"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e0e0e0; border-radius: 10px;">
  <h2 style="color: #0c4a6e; text-align: center;">Verify Your Email</h2>
  <div style="background-color: #f0f9ff; padding: 20px; border-radius: 8px; text-align: center;">
    <p style="margin: 0; color: #334155;">Your verification code is:</p>
    <h1 style="color: #0284c7; letter-spacing: 5px;">{code}</h1>
    <p style="margin: 0; color: #64748b;">This code will expire in {settings.otp_ttl_minutes} minutes.</p>
  </div>
  <p style="color: #64748b; font-size: 14px; text-align: center;">If you didn't request this, please ignore this email.</p>
</div>
"""
    return subject, html


def reset_otp_email(name: str, code: str) -> tuple[str, str]:
    subject = "Reset Your Password - Verification Code"
    year = datetime.now(timezone.utc).year
    html = f"""
<div style="font-family: Helvetica, Arial, sans-serif; max-width: 600px; margin: 40px auto; text-align: center; color: #334155;">
  <h1 style="color: #059669;">{escape(settings.mail_from_name)}</h1>
  <p>Hello, {escape(name)}</p>
  <p>We received a request to reset your password. Use the verification code below to proceed.</p>
  <div style="background-color: #f0f9ff; border: 2px dashed #0ea5e9; border-radius: 12px; padding: 24px;">
    <h2 style="color: #0369a1; letter-spacing: 8px; font-family: monospace;">{code}</h2>
  </div>
  <p>This code is valid for <strong>{settings.otp_ttl_minutes} minutes</strong>. If you did not request this password reset, please ignore this email and your account will remain secure.</p>
  <p style="color: #94a3b8; font-size: 13px;">&copy; {year} {escape(settings.mail_from_name)}. All rights reserved.</p>
</div>
"""
    return subject, html
