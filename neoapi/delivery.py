from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from neoapi.callbacks import DeliveryCallbacks, NullDeliveryCallbacks, notify
from neoapi.config import ClientConfig
from neoapi.constants import BACKOFF_MULTIPLIER, MAX_BACKOFF_SECONDS
from neoapi.errors import DeliveryError, RetryableHTTPError
from neoapi.meta import get_meta_http_headers
from neoapi.models import LLMOutput


logger = logging.getLogger(__name__)

RETRYABLE_EXCEPTIONS = (
    RetryableHTTPError,
    httpx.TransportError,
)

# After failed attempt n: min(2 ** n, 30) seconds, i.e. 2s, 4s, 8s, ... 30s.
BACKOFF = wait_exponential(multiplier=BACKOFF_MULTIPLIER, max=MAX_BACKOFF_SECONDS)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class DeliveryResult:
    event: LLMOutput
    endpoint: str
    attempts: int
    delivered: bool
    analysis: Any = None
    error: Optional[DeliveryError] = None


class DeliveryWorker:
    """
    Sends single events to the collection API, retrying with exponential
    backoff.

    Network errors and non-2xx responses are both retried. After
    `max_retries` failed attempts the event is given up on: the failure is
    reported to the callbacks and returned, never raised.
    """

    def __init__(
        self,
        config: ClientConfig,
        callbacks: Optional[DeliveryCallbacks] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config
        self.callbacks = callbacks or NullDeliveryCallbacks()
        self.sleep = sleep

        self.http_client = http_client
        # Injected clients belong to the caller
        self._owns_http_client = http_client is None
        self._headers: Optional[Dict[str, str]] = None

    def url_for(self, event: LLMOutput) -> str:
        return f"{self.config.api_url}{event.endpoint}"

    async def deliver(self, event: LLMOutput) -> DeliveryResult:
        url = self.url_for(event)
        attempts = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.config.max_retries),
            wait=BACKOFF,
            retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self.sleep,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    response = await self._post(url, event)
        except RETRYABLE_EXCEPTIONS as exc:
            error = DeliveryError(event, url, attempts, reason=str(exc) or repr(exc))
            error.__cause__ = exc
            notify(self.callbacks, "delivery_failed", event, error)
            return DeliveryResult(
                event=event,
                endpoint=url,
                attempts=attempts,
                delivered=False,
                error=error,
            )

        analysis = None
        if event.need_analysis_response:
            analysis = self._read_analysis(event, response)
            notify(self.callbacks, "analysis_received", event, analysis)

        result = DeliveryResult(
            event=event,
            endpoint=url,
            attempts=attempts,
            delivered=True,
            analysis=analysis,
        )
        notify(self.callbacks, "delivered", result)
        return result

    async def _post(self, url: str, event: LLMOutput) -> httpx.Response:
        response = await self._get_http_client().post(
            url,
            json=event.to_payload(),
            headers=self._get_headers(),
            timeout=self.config.timeout,
        )

        if not response.is_success:
            raise RetryableHTTPError(response.status_code)

        return response

    @staticmethod
    def _read_analysis(event: LLMOutput, response: httpx.Response) -> Any:
        try:
            analysis = response.json()
        except ValueError:
            return response.text

        if event.format_json_output:
            return json.dumps(analysis, indent=2)
        return analysis

    def _get_headers(self) -> Dict[str, str]:
        if self._headers is None:
            self._headers = get_meta_http_headers(self.config.api_key)
        return self._headers

    def _get_http_client(self) -> httpx.AsyncClient:
        if self.http_client is None:
            self.http_client = httpx.AsyncClient()
        return self.http_client

    async def aclose(self) -> None:
        """Close the HTTP client if this worker created it."""
        if self._owns_http_client and self.http_client is not None:
            await self.http_client.aclose()
            self.http_client = None
            logger.debug("HTTP client closed")
