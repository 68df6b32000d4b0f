"""ZeptoMail implementation of EmailProvider.

Sends through the ZeptoMail HTTP API with an injected httpx.AsyncClient and
renders bodies from the jinja2 templates in templates/emails/. Delivery
failures are logged and reported as ``False``; they never raise.
"""

import os
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.in/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: httpx.AsyncClient,
        app_name: str = "Accounts",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", reason="token_not_configured")
            return False

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [
                {
                    "email_address": {
                        "address": to_email,
                        "name": to_name or to_email,
                    }
                }
            ],
            "subject": subject,
            "htmlbody": html_body,
        }
        if text_body:
            payload["textbody"] = text_body

        api_key = self._settings.zepto_api_token
        if not api_key.startswith("Zoho-enczapikey "):
            api_key = f"Zoho-enczapikey {api_key}"

        headers = {"Authorization": api_key, "Content-Type": "application/json"}

        try:
            response = await self._http.post(
                _ZEPTO_API_URL,
                json=payload,
                headers=headers,
                timeout=self._settings.email_timeout_seconds,
            )
        except httpx.HTTPError as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code in (200, 201, 202):
            log.info("email_sent_success", to_email=to_email, subject=subject)
            return True
        log.error(
            "email_send_failed",
            to_email=to_email,
            subject=subject,
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_verification_email(
        self, email: str, username: str, verification_url: str
    ) -> bool:
        subject = "Please verify your email"
        template = self._jinja.get_template("verification.html")
        html_body = template.render(
            username=username,
            action_url=verification_url,
            app_name=self._app_name,
        )
        text_body = (
            f"Hello {username},\n\n"
            f"Welcome to {self._app_name}! To verify your email, open the link below:\n\n"
            f"{verification_url}\n\n"
            f"Need help or have questions? Just reply to this email."
        )
        return await self._send(email, username, subject, html_body, text_body)

    async def send_password_reset_email(
        self, email: str, username: str, reset_url: str
    ) -> bool:
        subject = "Password reset request"
        template = self._jinja.get_template("password_reset.html")
        html_body = template.render(
            username=username,
            action_url=reset_url,
            app_name=self._app_name,
        )
        text_body = (
            f"Hello {username},\n\n"
            f"We received a request to reset your account password. "
            f"Open the link below to choose a new one:\n\n"
            f"{reset_url}\n\n"
            f"If you didn't request this, no action is needed. "
            f"Your account remains secure."
        )
        return await self._send(email, username, subject, html_body, text_body)
