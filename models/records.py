"""Domain records shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Optional


class ChargingMode(IntEnum):
    """Heat pump charging modes as understood by the control API."""

    ON = 1
    OFF = 2


@dataclass(slots=True)
class AuthSession:
    """Bearer token currently held by the agent. Never persisted."""

    bearer_token: str = ""
    expires_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.bearer_token

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is None or now >= self.expires_at
