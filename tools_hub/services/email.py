"""Outbound email via the Resend HTTP API."""
import logging
from typing import List, Optional, Union

import httpx

from tools_hub.errors import DependencyFailure
from tools_hub.settings import settings

logger = logging.getLogger(__name__)


class EmailNotConfigured(DependencyFailure):
    default_message = "Email delivery is not configured"


class EmailClient:
    """Thin wrapper around the Resend ``/emails`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.EMAIL_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(
        self,
        to: Union[str, List[str]],
        subject: str,
        html: str,
        text: Optional[str] = None,
    ) -> Optional[str]:
        """
        Send one email.

        Returns:
            The provider's message id, if it returned one

        Raises:
            EmailNotConfigured: If no API key is set
            DependencyFailure: If the provider rejects the request or is unreachable
        """
        if not self.configured:
            raise EmailNotConfigured()

        recipients = [to] if isinstance(to, str) else list(to)
        payload = {"from": self.sender, "to": recipients, "subject": subject, "html": html}
        if text:
            payload["text"] = text

        try:
            response = httpx.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Resend API error: {e.response.status_code} - {e.response.text}")
            raise DependencyFailure(f"Email provider returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Resend API unreachable: {e}")
            raise DependencyFailure("Email provider unreachable") from e

        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass

        logger.info(f"Email sent to {', '.join(recipients)}: {subject}")
        return message_id
