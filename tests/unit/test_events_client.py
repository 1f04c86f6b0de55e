"""Unit tests for the events webhook client"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from tradehub.domain.exceptions import EventDeliveryError
from tradehub.infrastructure.clients.events import EventsClient

WEBHOOK_URL = "http://events.test/hook"
PAYLOAD = {"event": "TRANSFER_COMPLETED", "reference": "TH12345678ABCD"}


def _response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", WEBHOOK_URL))


async def test_disabled_client_sends_nothing():
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as mock_post:
        await EventsClient(webhook_url="").send_event(PAYLOAD)
        mock_post.assert_not_called()


@patch("tradehub.infrastructure.clients.events.asyncio.sleep", new_callable=AsyncMock)
async def test_retries_with_exponential_backoff(mock_sleep: AsyncMock):
    """Test 5xx responses are retried, doubling the wait each time"""
    responses = [_response(503), _response(502), _response(200)]
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, side_effect=responses) as mock_post:
        await EventsClient(webhook_url=WEBHOOK_URL).send_event(PAYLOAD)

    assert mock_post.await_count == 3
    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]


@patch("tradehub.infrastructure.clients.events.asyncio.sleep", new_callable=AsyncMock)
async def test_gives_up_after_max_retries(mock_sleep: AsyncMock):
    client = EventsClient(webhook_url=WEBHOOK_URL)
    client.max_retries = 3

    with patch(
        "httpx.AsyncClient.post",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("connection refused"),
    ) as mock_post:
        with pytest.raises(EventDeliveryError):
            await client.send_event(PAYLOAD)

    assert mock_post.await_count == 3
    assert mock_sleep.await_count == 2


@patch("tradehub.infrastructure.clients.events.asyncio.sleep", new_callable=AsyncMock)
async def test_client_error_is_not_retried(mock_sleep: AsyncMock):
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=_response(400)) as mock_post:
        with pytest.raises(EventDeliveryError):
            await EventsClient(webhook_url=WEBHOOK_URL).send_event(PAYLOAD)

    assert mock_post.await_count == 1
    mock_sleep.assert_not_awaited()
