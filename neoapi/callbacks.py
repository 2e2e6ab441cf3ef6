"""Callback interface for delivery outcomes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from neoapi.adaptive import Adjustment
    from neoapi.delivery import DeliveryResult
    from neoapi.dispatcher import BatchReport
    from neoapi.errors import DeliveryError
    from neoapi.models import LLMOutput


logger = logging.getLogger(__name__)


class DeliveryCallbacks(Protocol):
    def analysis_received(self, event: LLMOutput, analysis: Any) -> None: ...
    def delivered(self, result: DeliveryResult) -> None: ...
    def delivery_failed(self, event: LLMOutput, error: DeliveryError) -> None: ...
    def batch_dispatched(self, report: BatchReport) -> None: ...
    def tuning_changed(self, adjustment: Adjustment) -> None: ...


class NullDeliveryCallbacks:
    def analysis_received(self, event: LLMOutput, analysis: Any) -> None:
        pass

    def delivered(self, result: DeliveryResult) -> None:
        pass

    def delivery_failed(self, event: LLMOutput, error: DeliveryError) -> None:
        pass

    def batch_dispatched(self, report: BatchReport) -> None:
        pass

    def tuning_changed(self, adjustment: Adjustment) -> None:
        pass


class LoggingCallbacks(NullDeliveryCallbacks):
    """
    Default observer: analysis results and failures go to the log.
    """

    def analysis_received(self, event: LLMOutput, analysis: Any) -> None:
        logger.info("Analysis Response: %s", analysis)

    def delivery_failed(self, event: LLMOutput, error: DeliveryError) -> None:
        logger.error("%s", error, exc_info=error.__cause__)

    def batch_dispatched(self, report: BatchReport) -> None:
        logger.debug(
            "Batch done: %d events, %d delivered, %d failed, %d dropped by sampling",
            report.size,
            report.delivered,
            report.failed,
            report.dropped,
        )

    def tuning_changed(self, adjustment: Adjustment) -> None:
        logger.info(
            "Adjusted batch size %d -> %d, flush interval %.1fs -> %.1fs (queue depth %d)",
            adjustment.old_batch_size,
            adjustment.new_batch_size,
            adjustment.old_flush_interval,
            adjustment.new_flush_interval,
            adjustment.depth,
        )


def notify(callbacks: DeliveryCallbacks, name: str, *args: Any) -> None:
    """
    Invoke one callback; an observer error is logged and never reaches the
    delivery path.
    """
    try:
        getattr(callbacks, name)(*args)
    except Exception:
        logger.exception("Callback %s failed", name)
