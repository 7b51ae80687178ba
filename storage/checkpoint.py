from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Optional

from services.errors import CheckpointError


class CheckpointStore:
    """Durable record of when the last weekly check completed.

    The file holds a single ISO-8601 timestamp and is truncated and rewritten
    on every save. A single writer is assumed.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()

    def save(self, when: datetime) -> None:
        stamp = _to_utc(when).isoformat(timespec="seconds")
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(stamp, encoding="utf-8")
            except OSError as exc:
                raise CheckpointError(f"failed to save last check time to {self.path}: {exc}") from exc

    def load(self) -> datetime:
        with self._lock:
            try:
                raw = self.path.read_text(encoding="utf-8")
            except OSError as exc:
                raise CheckpointError(f"failed to read last check time from {self.path}: {exc}") from exc

        try:
            return _parse_timestamp(raw)
        except ValueError as exc:
            raise CheckpointError(f"failed to parse last check time {raw!r}: {exc}") from exc

    def load_or_none(self) -> Optional[datetime]:
        try:
            return self.load()
        except CheckpointError:
            return None


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    return _to_utc(parsed)

