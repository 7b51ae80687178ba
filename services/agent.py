"""Wiring of the two control loops around one shared context."""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Event, Thread
from typing import List, Optional

import httpx

from models.config import AgentConfig
from services.auth import TokenManager
from services.heating import HeatingActuator
from services.monitor import TemperatureMonitor
from services.sensor import TemperatureReader
from services.state import MonitoringState
from services.weekly import WeeklyEnforcer
from settings import Settings, get_settings
from storage.checkpoint import CheckpointStore

logger = logging.getLogger(__name__)

_JOIN_TIMEOUT_S = 10.0


class LegionellaAgent:
    """Explicit context object shared by the monitor and the weekly enforcer."""

    def __init__(
        self,
        client: httpx.Client,
        monitor: TemperatureMonitor,
        enforcer: WeeklyEnforcer,
    ) -> None:
        self.client = client
        self.monitor = monitor
        self.enforcer = enforcer
        self._stop = Event()
        self._threads: List[Thread] = []

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Agent already started.")
        self._threads = [
            Thread(target=self.monitor.run, args=(self._stop,), name="temperature-monitor", daemon=True),
            Thread(target=self.enforcer.run, args=(self._stop,), name="weekly-check", daemon=True),
        ]
        for thread in self._threads:
            thread.start()
        logger.info("Legionella agent started")

    def run_forever(self) -> None:
        """Start both loops and block until interrupted."""
        self.start()
        try:
            while not self._stop.wait(1.0):
                pass
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        finally:
            self.stop()

    def stop(self) -> None:
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout=_JOIN_TIMEOUT_S)
        self.enforcer.shutdown()
        self.client.close()
        logger.info("Legionella agent stopped")


def build_http_client(settings: Optional[Settings] = None) -> httpx.Client:
    settings = settings or get_settings()
    return httpx.Client(timeout=settings.http_timeout)


def build_token_manager(client: httpx.Client, config: AgentConfig) -> TokenManager:
    return TokenManager(
        client,
        identity_url=config.identity_url,
        username=config.username,
        password=config.password.get_secret_value(),
    )


def build_reader(client: httpx.Client, tokens: TokenManager, config: AgentConfig) -> TemperatureReader:
    return TemperatureReader(client, tokens, sensor_url=config.sensor_url)


def build_actuator(client: httpx.Client, tokens: TokenManager, config: AgentConfig) -> HeatingActuator:
    return HeatingActuator(client, tokens, control_url=config.heat_pump_url, device_id=config.device_id)


def build_agent(
    config: AgentConfig,
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
    checkpoint: Optional[CheckpointStore] = None,
) -> LegionellaAgent:
    """Factory that wires one agent from configuration."""
    settings = settings or get_settings()
    http_client = client or build_http_client(settings)
    tokens = build_token_manager(http_client, config)
    state = MonitoringState()
    monitor = TemperatureMonitor(
        reader=build_reader(http_client, tokens, config),
        state=state,
        threshold=config.temperature_threshold,
        interval=config.check_interval,
    )
    enforcer = WeeklyEnforcer(
        actuator=build_actuator(http_client, tokens, config),
        state=state,
        checkpoint=checkpoint or CheckpointStore(Path(settings.checkpoint_path)),
        interval=config.weekly_interval,
    )
    return LegionellaAgent(client=http_client, monitor=monitor, enforcer=enforcer)
