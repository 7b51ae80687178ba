"""Pydantic models for the payloads exchanged with the cloud API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from models.records import ChargingMode


class TokenResponse(BaseModel):
    """Body returned by both the login and the refresh endpoints."""

    access_token: str = Field(..., alias="accessToken", min_length=1)
    expires_in: int = Field(..., alias="expiresIn", description="Validity in seconds.")


class SensorData(BaseModel):
    current_water_temp: float = Field(..., alias="currentWaterTemp")


class SensorPayload(BaseModel):
    """Sensor stream response; only the water temperature is of interest."""

    data: SensorData


class LoginRequest(BaseModel):
    email: str
    password: str


class ChargingModeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    heat_pump_charging_mode: ChargingMode = Field(..., alias="heatPumpChargingMode")
