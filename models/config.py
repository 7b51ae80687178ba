"""JSON configuration consumed by the agent at startup."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from services.errors import ConfigError

DEFAULT_IDENTITY_URL = "https://cloud.solar-manager.ch/v1"


class AgentConfig(BaseModel):
    """Read-only configuration; keys match the deployed ``config.json`` files."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    solar_manager_url: str = Field(..., alias="solarManagerURL", min_length=1)
    sensor_id: str = Field(..., alias="solarManagerSensorID", min_length=1)
    temperature_threshold: float = Field(..., alias="temperatureThreshold")
    check_interval_minutes: float = Field(..., alias="checkInterval", gt=0)
    weekly_interval_hours: float = Field(..., alias="weeklyCheckInterval", gt=0)
    username: str = Field(..., min_length=1)
    password: SecretStr
    device_id: str = Field(..., alias="heatPumpID", min_length=1)
    heat_pump_control_url: str = Field(..., alias="heatPumpControlURL", min_length=1)
    identity_url: str = Field(DEFAULT_IDENTITY_URL, alias="identityURL", min_length=1)

    @property
    def check_interval(self) -> timedelta:
        return timedelta(minutes=self.check_interval_minutes)

    @property
    def weekly_interval(self) -> timedelta:
        return timedelta(hours=self.weekly_interval_hours)

    @property
    def sensor_url(self) -> str:
        return f"{self.solar_manager_url.rstrip('/')}/{self.sensor_id}"

    @property
    def heat_pump_url(self) -> str:
        template = self.heat_pump_control_url
        if "%s" in template:
            return template % self.device_id
        if "{device_id}" in template:
            return template.format(device_id=self.device_id)
        return f"{template.rstrip('/')}/{self.device_id}"


def load_agent_config(path: Union[str, Path]) -> AgentConfig:
    """Read and validate the configuration file, raising ``ConfigError`` on any failure."""
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to open config file {config_path}: {exc}") from exc

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"failed to parse config file {config_path}: {exc}") from exc

    try:
        return AgentConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {config_path}: {exc}") from exc
