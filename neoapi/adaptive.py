from __future__ import annotations

from dataclasses import dataclass

from neoapi.config import ClientConfig
from neoapi.constants import (
    BATCH_SIZE_STEP,
    FLUSH_INTERVAL_STEP,
    GROW_BATCH_RATIO,
    SHRINK_BATCH_RATIO,
    SPEED_UP_FLUSH_RATIO,
)


@dataclass(frozen=True)
class Adjustment:
    depth: int
    old_batch_size: int
    new_batch_size: int
    old_flush_interval: float
    new_flush_interval: float

    @property
    def batch_size_changed(self) -> bool:
        return self.old_batch_size != self.new_batch_size

    @property
    def flush_interval_changed(self) -> bool:
        return self.old_flush_interval != self.new_flush_interval

    @property
    def changed(self) -> bool:
        return self.batch_size_changed or self.flush_interval_changed


class AdaptiveController:
    """
    Retunes batch size and flush interval from the observed queue depth.

    The controller is the only writer of both values. Each tick:

    - backlog above 1.5x the batch size grows the batch by 5, below 0.5x
      shrinks it by 5;
    - backlog above 2x the (possibly just updated) batch size shortens
      the flush interval by 0.5s, backlog below 1x lengthens it by 0.5s.

    Every change is clamped to the configured bounds.
    """

    def __init__(
        self,
        batch_size: int,
        flush_interval: float,
        min_batch_size: int,
        max_batch_size: int,
        min_flush_interval: float,
        max_flush_interval: float,
    ):
        self.min_batch_size = min_batch_size
        self.max_batch_size = max_batch_size
        self.min_flush_interval = min_flush_interval
        self.max_flush_interval = max_flush_interval

        self.batch_size = batch_size
        self.flush_interval = flush_interval

    @classmethod
    def from_config(cls, config: ClientConfig) -> AdaptiveController:
        return cls(
            batch_size=config.batch_size,
            flush_interval=config.flush_interval,
            min_batch_size=config.min_batch_size,
            max_batch_size=config.max_batch_size,
            min_flush_interval=config.min_flush_interval,
            max_flush_interval=config.max_flush_interval,
        )

    def adjust(self, depth: int) -> Adjustment:
        old_batch_size = self.batch_size
        old_flush_interval = self.flush_interval

        if (
            depth > self.batch_size * GROW_BATCH_RATIO
            and self.batch_size < self.max_batch_size
        ):
            self.batch_size = min(self.batch_size + BATCH_SIZE_STEP, self.max_batch_size)
        elif (
            depth < self.batch_size * SHRINK_BATCH_RATIO
            and self.batch_size > self.min_batch_size
        ):
            self.batch_size = max(self.batch_size - BATCH_SIZE_STEP, self.min_batch_size)

        if (
            depth > self.batch_size * SPEED_UP_FLUSH_RATIO
            and self.flush_interval > self.min_flush_interval
        ):
            self.flush_interval = max(
                self.flush_interval - FLUSH_INTERVAL_STEP, self.min_flush_interval
            )
        elif depth < self.batch_size and self.flush_interval < self.max_flush_interval:
            self.flush_interval = min(
                self.flush_interval + FLUSH_INTERVAL_STEP, self.max_flush_interval
            )

        return Adjustment(
            depth=depth,
            old_batch_size=old_batch_size,
            new_batch_size=self.batch_size,
            old_flush_interval=old_flush_interval,
            new_flush_interval=self.flush_interval,
        )
