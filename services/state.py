from __future__ import annotations

from threading import Lock


class MonitoringState:
    """Whether the threshold was exceeded since the last weekly decision.

    Written by the temperature monitor, read-and-cleared by the weekly
    enforcer. Each access holds the lock so a read-then-clear cannot lose an
    update.
    """

    def __init__(self, exceeded: bool = False) -> None:
        self._exceeded = exceeded
        self._lock = Lock()

    @property
    def exceeded(self) -> bool:
        with self._lock:
            return self._exceeded

    def record(self, exceeded: bool) -> None:
        with self._lock:
            self._exceeded = exceeded

    def consume(self) -> bool:
        """Return the current flag and clear it atomically."""
        with self._lock:
            exceeded = self._exceeded
            self._exceeded = False
            return exceeded
