"""Periodic water temperature sampling."""

from __future__ import annotations

import logging
from datetime import timedelta
from threading import Event
from typing import Optional

from services.errors import AgentError
from services.sensor import TemperatureReader
from services.state import MonitoringState

logger = logging.getLogger(__name__)


class TemperatureMonitor:
    """Samples the sensor on a fixed period and keeps the shared flag current."""

    def __init__(
        self,
        reader: TemperatureReader,
        state: MonitoringState,
        threshold: float,
        interval: timedelta,
    ) -> None:
        self.reader = reader
        self.state = state
        self.threshold = threshold
        self.interval = interval

    def check_temperature(self) -> Optional[float]:
        """Run one sampling tick. Returns the reading, or ``None`` if it was skipped."""
        try:
            temperature = self.reader.read_temperature()
        except AgentError as exc:
            logger.warning("Failed to get temperature: %s", exc, extra={"url": self.reader.sensor_url})
            return None

        if temperature > self.threshold:
            logger.info(
                "Temperature has exceeded %.1f°C! Legionella heating will be rescheduled.",
                self.threshold,
                extra={"temperature": temperature, "threshold": self.threshold},
            )
            self.state.record(True)
        else:
            logger.info(
                "Temperature is OK. Actual temperature: %.1f°C",
                temperature,
                extra={"temperature": temperature, "threshold": self.threshold},
            )
            self.state.record(False)
        return temperature

    def run(self, stop: Event) -> None:
        # First sample after one full interval, then every interval.
        period = self.interval.total_seconds()
        while not stop.wait(period):
            self.check_temperature()
