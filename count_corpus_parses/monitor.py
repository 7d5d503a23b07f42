from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)


class RateMonitor:
    """Counts processed sentences and logs the throughput every `report_every` ticks."""

    def __init__(self, label: str = "sentences", report_every: int = 100) -> None:
        if report_every < 1:
            raise ValueError("report_every must be >= 1")
        self.label = label
        self.report_every = report_every
        self.count = 0
        self._started = time.monotonic()

    def tick(self) -> None:
        self.count += 1
        if self.count % self.report_every == 0:
            logger.info(f"{self.label}: {self.count} processed ({self.rate():.2f}/s)")

    def rate(self) -> float:
        elapsed = time.monotonic() - self._started
        return self.count / elapsed if elapsed > 0 else 0.0
