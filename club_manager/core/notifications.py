import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

import httpx
from pydantic import BaseModel, Field

from club_manager.core.config import (
    NOTIFICATION_GATEWAY_TOKEN,
    NOTIFICATION_GATEWAY_URL,
    NOTIFICATION_SEND_DELAY,
    NOTIFICATION_TIMEOUT,
)
from club_manager.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Recipient(BaseModel):
    address: str
    name: Optional[str] = None


class DeliveryFailure(BaseModel):
    address: str
    reason: str


class BroadcastResult(BaseModel):
    total: int = 0
    sent: int = 0
    failed: int = 0
    message_ids: List[str] = Field(default_factory=list)
    failures: List[DeliveryFailure] = Field(default_factory=list)


class NotificationGateway:
    """
    Client of the outbound message gateway (email provider).

    One POST per recipient, sent sequentially with `delay` seconds between
    two sends. Provider failures are reported, never raised.
    """

    def __init__(
        self,
        base_url: str = NOTIFICATION_GATEWAY_URL,
        token: str = NOTIFICATION_GATEWAY_TOKEN,
        delay: float = NOTIFICATION_SEND_DELAY,
        timeout: float = NOTIFICATION_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.token = token
        self.delay = delay
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> dict:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def send(
        self, client: httpx.AsyncClient, recipient: Recipient, subject: str, body: str
    ) -> Tuple[bool, Optional[str]]:
        """
        Returns:
            (success, provider message id)
        """
        payload = {
            "to": recipient.address,
            "name": recipient.name,
            "subject": subject,
            "body": body,
        }

        try:
            response = await client.post(
                self.base_url, json=payload, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.error(f"Notification to {recipient.address} failed: {str(e)}")
            return False, None

        if response.status_code >= 400:
            logger.error(
                f"Notification gateway rejected {recipient.address}: "
                f"{response.status_code} {response.text}"
            )
            return False, None

        message_id = None
        if response.headers.get("content-type", "").startswith("application/json"):
            try:
                data = response.json()
            except ValueError:
                data = None
                logger.warning("Notification gateway returned invalid JSON")
            if isinstance(data, dict):
                message_id = data.get("message_id")
        return True, message_id

    async def broadcast(
        self, recipients: Sequence[Recipient], subject: str, body: str
    ) -> BroadcastResult:
        if not self.configured:
            raise ConfigurationError(
                "NOTIFICATION_GATEWAY_URL", "Notification gateway is not configured"
            )

        result = BroadcastResult(total=len(recipients))

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self.transport
        ) as client:
            for index, recipient in enumerate(recipients):
                if index and self.delay > 0:
                    await asyncio.sleep(self.delay)

                success, message_id = await self.send(client, recipient, subject, body)
                if success:
                    result.sent += 1
                    if message_id:
                        result.message_ids.append(message_id)
                else:
                    result.failed += 1
                    result.failures.append(
                        DeliveryFailure(
                            address=recipient.address, reason="delivery failed"
                        )
                    )

        logger.info(
            f"Broadcast finished: {result.sent}/{result.total} sent",
            extra={"sent": result.sent, "failed": result.failed},
        )
        return result


def get_notification_gateway() -> NotificationGateway:
    return NotificationGateway()
