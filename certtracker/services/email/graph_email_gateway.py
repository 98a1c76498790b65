import time
from typing import Dict, List, Optional, Protocol, Sequence

import httpx

from certtracker.config.settings import Settings
from certtracker.utils.errors import EmailDeliveryError
from certtracker.utils.logging import get_logger

logger = get_logger()

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
LOGIN_BASE_URL = "https://login.microsoftonline.com"


class EmailGateway(Protocol):
    """Sends one HTML message to a list of addresses, raising on failure"""

    async def send(
        self,
        to_addresses: Sequence[str],
        subject: str,
        html_body: str,
        cc_addresses: Optional[Sequence[str]] = None,
    ) -> None: ...


class GraphEmailGateway:
    """Email gateway backed by the Microsoft Graph ``sendMail`` API."""

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        sender_email: str,
        timeout: float = 30.0,
        disabled: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.sender_email = sender_email
        self.timeout = timeout
        self.disabled = disabled
        self._transport = transport
        self._access_token: Optional[str] = None
        self._access_token_expires_at: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "GraphEmailGateway":
        return cls(
            tenant_id=settings.GRAPH_TENANT_ID,
            client_id=settings.GRAPH_CLIENT_ID,
            client_secret=settings.GRAPH_CLIENT_SECRET,
            sender_email=settings.GRAPH_SENDER_EMAIL,
            timeout=settings.GRAPH_TIMEOUT_SECONDS,
            disabled=settings.EMAILS_DISABLED,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        """Client-credentials token, reused until shortly before it expires."""
        if self._access_token and time.time() < self._access_token_expires_at:
            return self._access_token

        response = await client.post(
            f"{LOGIN_BASE_URL}/{self.tenant_id}/oauth2/v2.0/token",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
        )

        if response.status_code != 200:
            raise EmailDeliveryError(
                f"Failed to obtain Graph access token: {response.status_code} - {response.text}",
                error_code="GRAPH_TOKEN_FAILED",
                status_code=response.status_code,
            )

        token_data = response.json()
        self._access_token = token_data["access_token"]
        # Refresh a minute early
        self._access_token_expires_at = (
            time.time() + int(token_data.get("expires_in", 3600)) - 60
        )
        return self._access_token

    @staticmethod
    def build_message(
        to_addresses: Sequence[str],
        subject: str,
        html_body: str,
        cc_addresses: Sequence[str],
    ) -> Dict:
        return {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html_body},
                "toRecipients": [
                    {"emailAddress": {"address": address}} for address in to_addresses
                ],
                "ccRecipients": [
                    {"emailAddress": {"address": address}} for address in cc_addresses
                ],
            },
            "saveToSentItems": True,
        }

    async def send(
        self,
        to_addresses: Sequence[str],
        subject: str,
        html_body: str,
        cc_addresses: Optional[Sequence[str]] = None,
    ) -> None:
        to_list: List[str] = list(to_addresses)
        cc_list: List[str] = list(cc_addresses or [])

        if not to_list:
            raise EmailDeliveryError(
                "No recipients given", error_code="EMAIL_NO_RECIPIENTS"
            )

        if self.disabled:
            logger.info(
                f"[EMAIL DISABLED] Would send '{subject}' to {to_list} (cc {cc_list})"
            )
            return

        payload = self.build_message(to_list, subject, html_body, cc_list)

        try:
            async with self._client() as client:
                access_token = await self._get_access_token(client)
                response = await client.post(
                    f"{GRAPH_BASE_URL}/users/{self.sender_email}/sendMail",
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.TimeoutException as e:
            raise EmailDeliveryError(
                f"Graph sendMail timed out after {self.timeout}s",
                error_code="EMAIL_TIMEOUT",
            ) from e
        except httpx.RequestError as e:
            raise EmailDeliveryError(
                f"Graph sendMail request failed: {e}",
                error_code="EMAIL_REQUEST_FAILED",
            ) from e

        if response.status_code == 401:
            # Token revoked or rotated; force a fresh one next time
            self._access_token = None

        if response.status_code not in (200, 202):
            logger.error(
                f"Graph sendMail failed: {response.status_code} {response.text}"
            )
            raise EmailDeliveryError(
                f"Graph sendMail failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        logger.info(f"Sent '{subject}' to {len(to_list)} recipient(s)")
