import json

import httpx
import pytest

from club_manager.core.exceptions import ConfigurationError
from club_manager.core.notifications import NotificationGateway, Recipient


def make_gateway(handler, **kwargs):
    return NotificationGateway(
        base_url="https://gateway.test/messages",
        token="gateway-token",
        delay=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_broadcast_reports_each_delivery():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        received.append((payload, request.headers.get("Authorization")))
        if payload["to"] == "broken@example.com":
            return httpx.Response(500, text="mailbox unavailable")
        return httpx.Response(200, json={"message_id": f"msg-{len(received)}"})

    gateway = make_gateway(handler)
    result = await gateway.broadcast(
        [
            Recipient(address="a@example.com", name="A"),
            Recipient(address="broken@example.com"),
            Recipient(address="c@example.com"),
        ],
        "Compte rendu",
        "Body",
    )

    assert result.total == 3
    assert result.sent == 2
    assert result.failed == 1
    assert result.message_ids == ["msg-1", "msg-3"]
    assert [failure.address for failure in result.failures] == ["broken@example.com"]

    assert [payload["to"] for payload, _ in received] == [
        "a@example.com",
        "broken@example.com",
        "c@example.com",
    ]
    assert all(auth == "Bearer gateway-token" for _, auth in received)
    assert received[0][0]["subject"] == "Compte rendu"


@pytest.mark.asyncio
async def test_network_errors_are_reported_not_raised():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await make_gateway(handler).broadcast(
        [Recipient(address="a@example.com")], "Subject", "Body"
    )

    assert result.sent == 0
    assert result.failed == 1


@pytest.mark.asyncio
async def test_unconfigured_gateway():
    gateway = NotificationGateway(base_url="")
    with pytest.raises(ConfigurationError):
        await gateway.broadcast([Recipient(address="a@example.com")], "S", "B")
