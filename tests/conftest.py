from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import httpx
import pytest

from models.config import AgentConfig

IDENTITY_URL = "https://identity.test/v1"
SENSOR_URL = "https://cloud.test/v1/stream"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingTransport:
    """Wraps a handler and keeps every request it sees."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


def token_response(token: str = "token-1", expires_in: int = 3600) -> httpx.Response:
    return httpx.Response(200, json={"accessToken": token, "expiresIn": expires_in})


def make_client(transport: RecordingTransport) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(transport))


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def config_payload() -> dict:
    return {
        "solarManagerURL": SENSOR_URL,
        "solarManagerSensorID": "sensor-42",
        "temperatureThreshold": 55.0,
        "checkInterval": 10,
        "weeklyCheckInterval": 168,
        "username": "owner@example.com",
        "password": "hunter2",
        "heatPumpID": "hp-7",
        "heatPumpControlURL": "https://cloud.test/v1/control/heat-pump/%s",
        "identityURL": IDENTITY_URL,
    }


@pytest.fixture()
def agent_config(config_payload: dict) -> AgentConfig:
    return AgentConfig.model_validate(config_payload)


@pytest.fixture()
def config_file(tmp_path, config_payload: dict):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_payload))
    return path
