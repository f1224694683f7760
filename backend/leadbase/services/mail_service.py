"""Outgoing account emails (verification and password reset).

Mails are posted to a Resend-compatible HTTP API. In development, or when no
API key is configured, the link is logged instead. Delivery failures are
logged and reported as ``False``; they never propagate to the caller.
"""

from typing import Literal

import httpx
import jinja2
from config.config import settings
from core.logging import logger
from core.template_helper import render_template

MailKind = Literal["verification", "password_reset"]

_SUBJECTS = {
    "verification": "Verify Your Email Address",
    "password_reset": "Reset Your Password",
}

_LINK_PATHS = {
    "verification": "/verify-email",
    "password_reset": "/reset-password",
}


class MailService:
    """Sends templated account emails.

    Args:
        api_url: Mail API endpoint.
        api_key: Mail API key; when empty mails are only logged.
        sender: From address.
        frontend_url: Base URL the links in the mails point to.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        sender: str,
        frontend_url: str,
        log_only: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.sender = sender
        self.frontend_url = frontend_url.rstrip("/")
        self.log_only = log_only or not api_key
        self.transport = transport

    @classmethod
    def from_settings(cls) -> "MailService":
        return cls(
            api_url=settings.MAIL_API_URL,
            api_key=settings.MAIL_API_KEY,
            sender=settings.MAIL_FROM,
            frontend_url=settings.FRONTEND_URL,
            log_only=settings.is_development,
        )

    def build_link(self, kind: MailKind, token: str) -> str:
        return f"{self.frontend_url}{_LINK_PATHS[kind]}?token={token}"

    async def send(self, address: str, kind: MailKind, token: str) -> bool:
        """Render and deliver the `kind` mail carrying `token` to `address`.

        Returns:
            bool: True if the mail was accepted (or logged), False on failure.
        """
        link = self.build_link(kind, token)
        try:
            body = render_template(
                f"email/{kind}.txt",
                link=link,
                expires_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
            )
        except jinja2.TemplateError:
            logger.error("Could not render {} email for {}", kind, address)
            return False

        if self.log_only:
            logger.bind(reveal=True).info(
                "Email ({}) for {} (not sent): {}", kind, address, link
            )
            return True

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=10) as client:
                response = await client.post(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.sender,
                        "to": [address],
                        "subject": _SUBJECTS[kind],
                        "text": body,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to send {} email to {}: {}", kind, address, exc)
            return False

        logger.info("Sent {} email to {}", kind, address)
        return True
