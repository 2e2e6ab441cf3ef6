from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set

import httpx

from neoapi.adaptive import AdaptiveController, Adjustment
from neoapi.callbacks import DeliveryCallbacks, LoggingCallbacks, notify
from neoapi.config import ClientConfig
from neoapi.delivery import DeliveryWorker, Sleep
from neoapi.dispatcher import BatchDispatcher, BatchReport
from neoapi.models import LLMOutput
from neoapi.queue import Batch, EventQueue


logger = logging.getLogger(__name__)


class NeoApiClient:
    """
    Buffers LLM output events and delivers them in adaptive batches.

    All queue and timer work happens on the event loop the client was
    started on. Automatic flushes (batch size reached, flush timer) run in
    the background and never block `track`; `flush()` and `stop()` wait
    for delivery.

    Usage:
        async with NeoApiClient(api_key="...") as client:
            client.track(LLMOutput.create("Hello"))
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        callbacks: Optional[DeliveryCallbacks] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
        **overrides: Any,
    ):
        self.config = config or ClientConfig.from_env(**overrides)
        self.callbacks = callbacks or LoggingCallbacks()

        self.queue = EventQueue()
        self.controller = AdaptiveController.from_config(self.config)
        self.worker = DeliveryWorker(
            self.config, callbacks=self.callbacks, http_client=http_client, sleep=sleep
        )
        self.dispatcher = BatchDispatcher(
            self.worker, self.config.check_frequency, callbacks=self.callbacks
        )

        self._running = False
        self._flush_timer: Optional[asyncio.Task] = None
        self._adjustment_timer: Optional[asyncio.Task] = None
        self._flush_armed_at: Optional[float] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def batch_size(self) -> int:
        return self.controller.batch_size

    @property
    def flush_interval(self) -> float:
        return self.controller.flush_interval

    @property
    def running(self) -> bool:
        return self._running

    def track(self, event: LLMOutput) -> None:
        """
        Queue an event. While the client is running, dispatches the queue
        in the background once it holds `batch_size` events. Delivery
        errors never surface here.
        """
        depth = self.queue.put(event)
        if depth < self.batch_size:
            return

        if not self._running:
            logger.debug(
                "Client not running, %d events stay queued until the next flush",
                depth,
            )
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(
                "No running event loop, %d events stay queued until the next flush",
                depth,
            )
            return

        batch = self.queue.drain()
        if batch is not None:
            self._dispatch_in_background(batch)

    async def flush(self) -> Optional[BatchReport]:
        """Dispatch whatever is queued now and wait for its delivery."""
        batch = self.queue.drain()
        if batch is None:
            return None
        return await self.dispatcher.dispatch(batch)

    def start(self) -> None:
        """Arm the flush and adjustment timers. Must run inside an event loop."""
        if self._running:
            return

        loop = asyncio.get_running_loop()
        self._running = True
        self._flush_armed_at = loop.time()
        self._flush_timer = asyncio.create_task(
            self._flush_loop(self._flush_armed_at)
        )
        self._adjustment_timer = asyncio.create_task(self._adjustment_loop())
        logger.info(
            "Tracking client started (batch size %d, flush interval %.1fs)",
            self.batch_size,
            self.flush_interval,
        )

    async def stop(self) -> None:
        """
        Cancel both timers, flush what is left and wait until every
        dispatch, including ones started before, has finished.
        """
        if not self._running:
            return

        self._running = False
        timers = [t for t in (self._flush_timer, self._adjustment_timer) if t]
        for timer in timers:
            timer.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        self._flush_timer = None
        self._adjustment_timer = None
        self._flush_armed_at = None

        await self.flush()

        if self._pending:
            logger.info("Waiting for %d pending dispatches", len(self._pending))
            await asyncio.gather(*self._pending, return_exceptions=True)

        await self.worker.aclose()
        logger.info("Tracking client stopped")

    def adjust(self) -> Adjustment:
        """Run one tuning step against the current queue depth."""
        adjustment = self.controller.adjust(len(self.queue))

        if adjustment.changed:
            notify(self.callbacks, "tuning_changed", adjustment)

        if adjustment.flush_interval_changed and self._flush_timer is not None:
            self._flush_timer.cancel()
            self._flush_timer = asyncio.create_task(
                self._flush_loop(self._flush_armed_at)
            )

        return adjustment

    def _dispatch_in_background(self, batch: Batch) -> None:
        task = asyncio.create_task(self.dispatcher.dispatch(batch))
        self._pending.add(task)
        task.add_done_callback(self._on_dispatch_done)

    def _on_dispatch_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Background dispatch failed: %s",
                task.exception(),
                exc_info=task.exception(),
            )

    async def _flush_loop(self, armed_at: float) -> None:
        loop = asyncio.get_running_loop()
        self._flush_armed_at = armed_at
        while True:
            # Rescheduled loops keep the deadline of the period already running
            remaining = self._flush_armed_at + self.flush_interval - loop.time()
            await asyncio.sleep(max(0.0, remaining))
            self._flush_armed_at = loop.time()
            batch = self.queue.drain()
            if batch is not None:
                self._dispatch_in_background(batch)

    async def _adjustment_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.adjustment_interval)
            self.adjust()

    async def __aenter__(self) -> NeoApiClient:
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()
