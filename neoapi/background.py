"""
Thread-backed tracking client for code that does not run an event loop.
"""

import asyncio
import logging
import threading
from typing import Any, List, Optional

import httpx

from neoapi.callbacks import DeliveryCallbacks
from neoapi.client import NeoApiClient
from neoapi.config import ClientConfig
from neoapi.dispatcher import BatchReport
from neoapi.models import LLMOutput


class BackgroundClient:
    """
    Runs a NeoApiClient on a dedicated thread with its own asyncio event
    loop.

    Producer threads never touch the queue: `track` hands the event to the
    loop thread, which owns the queue and the timers.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        callbacks: Optional[DeliveryCallbacks] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        autostart: bool = True,
        **overrides: Any,
    ):
        """
        Initialize the background client.

        Args:
            config: Client settings, read from the environment when omitted
            callbacks: Observer for delivery outcomes
            http_client: Optional HTTP client, owned by the caller
            autostart: Start the loop thread right away
            **overrides: Settings passed to ClientConfig.from_env
        """
        self.config = config or ClientConfig.from_env(**overrides)
        self.callbacks = callbacks
        self.http_client = http_client

        self._client: Optional[NeoApiClient] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()

        self.logger = logging.getLogger("neoapi.background")

        if autostart:
            self.start()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return

        self._ready.clear()
        self._thread = threading.Thread(
            target=self._run_event_loop, name="neoapi-background", daemon=True
        )
        self._thread.start()
        self._ready.wait()

    def track(self, event: LLMOutput) -> bool:
        """
        Queue an event from any thread.

        Returns True if handed to the client, False if dropped because the
        client is not running.
        """
        if not self.running or self._loop is None or self._client is None:
            self.logger.warning("Background client is not running, dropping event")
            return False

        self._loop.call_soon_threadsafe(self._client.track, event)
        return True

    def flush(self, timeout: Optional[float] = None) -> Optional[BatchReport]:
        """Dispatch everything queued so far and block until delivered."""
        if not self.running or self._loop is None or self._client is None:
            return None

        future = asyncio.run_coroutine_threadsafe(self._client.flush(), self._loop)
        return future.result(timeout)

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the client (final flush included) and the loop thread.

        Returns True if the thread finished within `timeout`.
        """
        thread = self._thread
        if thread is None or not thread.is_alive():
            return True
        if self._loop is None or self._client is None:
            return True

        loop = self._loop
        future = asyncio.run_coroutine_threadsafe(self._client.stop(), loop)
        try:
            future.result(timeout)
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join(timeout)

        return not thread.is_alive()

    def batch_process(self, prompts: List[str], **fields: Any) -> List[str]:
        """
        Process each prompt, track its result and return all results.

        Args:
            prompts: The prompts to process
            **fields: Event fields for LLMOutput.from_result (project, group, ...)
        """
        results = []
        for prompt in prompts:
            result = self._process_prompt(prompt)
            self.track(LLMOutput.from_result(result, **fields))
            results.append(result)
        return results

    def _process_prompt(self, prompt: str) -> str:
        return f"Processed: {prompt}"

    def _run_event_loop(self) -> None:
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._client = NeoApiClient(
                self.config, callbacks=self.callbacks, http_client=self.http_client
            )
            self._loop.call_soon(self._client.start)
            self._loop.call_soon(self._ready.set)
            self._loop.run_forever()
        finally:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()
            self._loop = None
            self._ready.set()
            self.logger.debug("Background loop closed")

    def __enter__(self) -> "BackgroundClient":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
