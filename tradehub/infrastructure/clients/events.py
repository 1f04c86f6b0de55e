"""Events webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx

from tradehub.config import settings
from tradehub.domain.exceptions import EventDeliveryError
from tradehub.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class EventsClient:
    """Client for publishing money-movement events to a downstream webhook"""

    def __init__(self, webhook_url: str | None = None):
        self.webhook_url = settings.events_webhook_url if webhook_url is None else webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def send_event(self, payload: Dict[str, Any]) -> None:
        """
        Send an event (e.g. TRANSFER_COMPLETED) with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx errors and network failures; 4xx fails immediately
        - Tracks latency histogram and failure counter

        Raises:
            EventDeliveryError: After max_retries failed attempts
        """
        if not self.enabled:
            logging.debug("Events webhook disabled, dropping event", extra={"event": payload.get("event")})
            return

        attempt = 0
        async with httpx.AsyncClient() as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=self.timeout,
                        )
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    # No retry on 4xx
                    if isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500:
                        logging.error(
                            f"Event rejected by webhook: {e}",
                            extra={"event": payload.get("event"), "reference": payload.get("reference")},
                        )
                        raise EventDeliveryError(str(e)) from e

                    if attempt >= self.max_retries:
                        logging.error(
                            f"Event delivery failed after {attempt} attempts: {e}",
                            extra={"event": payload.get("event"), "reference": payload.get("reference")},
                        )
                        raise EventDeliveryError(str(e)) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
