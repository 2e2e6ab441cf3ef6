from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from neoapi.callbacks import DeliveryCallbacks, NullDeliveryCallbacks, notify
from neoapi.delivery import DeliveryResult, DeliveryWorker
from neoapi.queue import Batch


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchReport:
    size: int
    selected: int
    delivered: int
    failed: int

    @property
    def dropped(self) -> int:
        """Events skipped by the sampling stride."""
        return self.size - self.selected


class BatchDispatcher:
    """
    Fans a batch out to the delivery worker.

    Sampling policy: only positions where `index % check_frequency == 0`
    are sent. The other events are dropped on purpose, without retry, to
    shed load; with `check_frequency=1` every event is sent.
    """

    def __init__(
        self,
        worker: DeliveryWorker,
        check_frequency: int = 1,
        callbacks: Optional[DeliveryCallbacks] = None,
    ):
        self.worker = worker
        self.check_frequency = check_frequency
        self.callbacks = callbacks or NullDeliveryCallbacks()

    def select(self, batch: Batch) -> Batch:
        return batch[:: self.check_frequency]

    async def dispatch(self, batch: Batch) -> BatchReport:
        """
        Deliver the sampled events of `batch` concurrently and wait until
        every one of them is delivered or has failed for good.
        """
        selected = self.select(batch)
        logger.debug(
            "Dispatching %d of %d events", len(selected), len(batch)
        )

        # Sends start in batch order; completion order is not guaranteed.
        results = await asyncio.gather(
            *(self.worker.deliver(event) for event in selected),
            return_exceptions=True,
        )

        delivered = failed = 0
        for event, result in zip(selected, results):
            if isinstance(result, DeliveryResult) and result.delivered:
                delivered += 1
                continue

            failed += 1
            if isinstance(result, BaseException):
                logger.error(
                    "Unexpected error delivering event (timestamp=%s): %s",
                    event.timestamp,
                    result,
                    exc_info=result,
                )

        report = BatchReport(
            size=len(batch),
            selected=len(selected),
            delivered=delivered,
            failed=failed,
        )
        notify(self.callbacks, "batch_dispatched", report)
        return report
