from __future__ import annotations

import logging

import httpx

from models.records import ChargingMode
from models.schemas import ChargingModeRequest
from services.auth import TokenManager
from services.transport import bearer, send

logger = logging.getLogger(__name__)

_SUCCESS_STATUSES = (200, 204)


class HeatingActuator:
    """Switches the heat pump charging mode through the control endpoint."""

    def __init__(
        self,
        client: httpx.Client,
        tokens: TokenManager,
        control_url: str,
        device_id: str,
    ) -> None:
        self._client = client
        self._tokens = tokens
        self.control_url = control_url
        self.device_id = device_id

    def set_charging_mode(self, mode: ChargingMode) -> None:
        """Send one state change; raises ``AgentError`` on failure, never retries."""
        token = self._tokens.ensure_valid_token()
        body = ChargingModeRequest(heat_pump_charging_mode=mode)
        response = send(
            self._client,
            "PUT",
            self.control_url,
            expected=_SUCCESS_STATUSES,
            headers={**bearer(token), "Content-Type": "application/json"},
            content=body.model_dump_json(by_alias=True),
        )
        context = {"mode": mode.name, "device_id": self.device_id, "status_code": response.status_code}
        if response.status_code == 200:
            logger.info("Heat pump state changed successfully", extra=context)
        else:
            logger.debug("Heat pump accepted state change without content", extra=context)

    def turn_on(self) -> None:
        self.set_charging_mode(ChargingMode.ON)

    def turn_off(self) -> None:
        self.set_charging_mode(ChargingMode.OFF)
