"""Weekly legionella prevention enforcement."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from threading import Event, Lock, Timer
from typing import List, Optional

from services.auth import Clock, utcnow
from services.errors import AgentError, CheckpointError
from services.heating import HeatingActuator
from services.state import MonitoringState
from storage.checkpoint import CheckpointStore

logger = logging.getLogger(__name__)

FORCED_HEATING_DURATION = timedelta(hours=4)


def compute_next_delay(
    now: datetime,
    last_check: Optional[datetime],
    interval: timedelta,
) -> timedelta:
    """Delay until the next weekly check is due; zero when it already is."""
    if last_check is None:
        return timedelta(0)
    next_due = last_check + interval
    if now >= next_due:
        return timedelta(0)
    return next_due - now


class WeeklyEnforcer:
    """Forces one heating cycle per interval unless the water already got hot.

    The schedule is re-derived from the checkpoint after every fire, so a
    restart resumes close to the original due time. Shut-off timers are owned
    by this object; ``shutdown`` cancels them and switches the heat pump off
    right away.
    """

    def __init__(
        self,
        actuator: HeatingActuator,
        state: MonitoringState,
        checkpoint: CheckpointStore,
        interval: timedelta,
        heating_duration: timedelta = FORCED_HEATING_DURATION,
        clock: Clock = utcnow,
    ) -> None:
        self.actuator = actuator
        self.state = state
        self.checkpoint = checkpoint
        self.interval = interval
        self.heating_duration = heating_duration
        self._clock = clock
        self._pending_off: List[Timer] = []
        self._last_fire: Optional[datetime] = None
        self._lock = Lock()

    @property
    def pending_shutoffs(self) -> int:
        with self._lock:
            return len(self._pending_off)

    def next_delay(self) -> timedelta:
        try:
            last_check: Optional[datetime] = self.checkpoint.load()
        except CheckpointError as exc:
            logger.info("No usable checkpoint, weekly check is due now: %s", exc)
            last_check = None
        # A fire whose checkpoint could not be saved still counts for this process.
        if self._last_fire is not None and (last_check is None or self._last_fire > last_check):
            last_check = self._last_fire
        return compute_next_delay(self._clock(), last_check, self.interval)

    def weekly_check(self) -> bool:
        """Run one evaluation. Returns ``True`` when a heating cycle was forced."""
        now = self._clock()
        exceeded = self.state.consume()
        self._last_fire = now

        if exceeded:
            logger.info("Threshold was exceeded this week; skipping forced heating cycle")
        else:
            logger.info("Threshold not reached this week; forcing heating cycle")
            try:
                self.actuator.turn_on()
            except AgentError as exc:
                logger.error("Failed to turn on heating: %s", exc, extra={"device_id": self.actuator.device_id})
            self._schedule_shutoff()

        try:
            self.checkpoint.save(now)
        except CheckpointError as exc:
            logger.error("Failed to save last check time: %s", exc)
        else:
            logger.debug("Saved weekly checkpoint", extra={"checkpoint": now.isoformat()})
        return not exceeded

    def run(self, stop: Event) -> None:
        while True:
            delay = self.next_delay()
            logger.info("Next weekly check scheduled", extra={"delay_s": int(delay.total_seconds())})
            if stop.wait(delay.total_seconds()):
                return
            self.weekly_check()

    def shutdown(self) -> None:
        """Cancel pending shut-off timers and, if any were pending, turn heating off now."""
        with self._lock:
            pending = list(self._pending_off)
            self._pending_off.clear()
        if not pending:
            return
        for timer in pending:
            timer.cancel()
        logger.info("Stopping with a forced heating cycle in progress; turning heating off now")
        self._turn_off()

    def _schedule_shutoff(self) -> None:
        timer: Timer

        def fire() -> None:
            with self._lock:
                if timer not in self._pending_off:
                    return
                self._pending_off.remove(timer)
            self._turn_off()

        timer = Timer(self.heating_duration.total_seconds(), fire)
        timer.name = "heating-shutoff"
        timer.daemon = True
        with self._lock:
            self._pending_off.append(timer)
        timer.start()
        logger.info(
            "Heating shut-off scheduled",
            extra={"delay_s": int(self.heating_duration.total_seconds())},
        )

    def _turn_off(self) -> None:
        try:
            self.actuator.turn_off()
        except AgentError as exc:
            logger.error("Failed to turn off heating: %s", exc, extra={"device_id": self.actuator.device_id})
