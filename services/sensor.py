from __future__ import annotations

import logging

import httpx

from models.schemas import SensorPayload
from services.auth import TokenManager
from services.transport import bearer, decode, send

logger = logging.getLogger(__name__)


class TemperatureReader:
    """Fetches the current water temperature from the sensor stream."""

    def __init__(self, client: httpx.Client, tokens: TokenManager, sensor_url: str) -> None:
        self._client = client
        self._tokens = tokens
        self.sensor_url = sensor_url

    def read_temperature(self) -> float:
        token = self._tokens.ensure_valid_token()
        response = send(self._client, "GET", self.sensor_url, headers=bearer(token))
        payload = decode(response, SensorPayload)
        temperature = payload.data.current_water_temp
        logger.debug("Read water temperature", extra={"temperature": temperature})
        return temperature
