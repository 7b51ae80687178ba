"""Weekly enforcement: schedule derivation and fire behaviour."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Event, Thread
from typing import List, Optional

import pytest

from conftest import FakeClock
from models.records import ChargingMode
from services.errors import ProtocolError
from services.state import MonitoringState
from services.weekly import FORCED_HEATING_DURATION, WeeklyEnforcer, compute_next_delay
from storage.checkpoint import CheckpointStore

WEEK = timedelta(hours=168)
NOW = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


class StubActuator:
    device_id = "hp-7"

    def __init__(self, fail_on: Optional[ChargingMode] = None) -> None:
        self.commands: List[ChargingMode] = []
        self.fail_on = fail_on
        self.off_received = Event()

    def set_charging_mode(self, mode: ChargingMode) -> None:
        self.commands.append(mode)
        if mode is ChargingMode.OFF:
            self.off_received.set()
        if mode is self.fail_on:
            raise ProtocolError("status code 500", status_code=500)

    def turn_on(self) -> None:
        self.set_charging_mode(ChargingMode.ON)

    def turn_off(self) -> None:
        self.set_charging_mode(ChargingMode.OFF)


def _enforcer(
    tmp_path: Path,
    actuator: StubActuator,
    state: MonitoringState,
    clock: FakeClock,
    heating_duration: timedelta = FORCED_HEATING_DURATION,
) -> WeeklyEnforcer:
    return WeeklyEnforcer(
        actuator=actuator,
        state=state,
        checkpoint=CheckpointStore(tmp_path / "lastCheck.txt"),
        interval=WEEK,
        heating_duration=heating_duration,
        clock=clock,
    )


def test_compute_next_delay_without_checkpoint_is_zero() -> None:
    assert compute_next_delay(NOW, None, WEEK) == timedelta(0)


def test_compute_next_delay_counts_down_to_due_time() -> None:
    assert compute_next_delay(NOW, NOW - timedelta(hours=100), WEEK) == timedelta(hours=68)


@pytest.mark.parametrize("age_hours", [168, 169, 1000])
def test_compute_next_delay_overdue_is_zero(age_hours: int) -> None:
    assert compute_next_delay(NOW, NOW - timedelta(hours=age_hours), WEEK) == timedelta(0)


def test_next_delay_missing_checkpoint_fires_immediately(tmp_path: Path, clock: FakeClock) -> None:
    enforcer = _enforcer(tmp_path, StubActuator(), MonitoringState(), clock)

    assert enforcer.next_delay() == timedelta(0)


def test_next_delay_corrupt_checkpoint_fires_immediately(tmp_path: Path, clock: FakeClock) -> None:
    (tmp_path / "lastCheck.txt").write_text("garbage")
    enforcer = _enforcer(tmp_path, StubActuator(), MonitoringState(), clock)

    assert enforcer.next_delay() == timedelta(0)


def test_next_delay_uses_stored_checkpoint(tmp_path: Path, clock: FakeClock) -> None:
    CheckpointStore(tmp_path / "lastCheck.txt").save(clock.now - timedelta(hours=100))
    enforcer = _enforcer(tmp_path, StubActuator(), MonitoringState(), clock)

    assert enforcer.next_delay() == timedelta(hours=68)


def test_fire_with_exceeded_flag_skips_actuation(tmp_path: Path, clock: FakeClock) -> None:
    actuator = StubActuator()
    state = MonitoringState(exceeded=True)
    enforcer = _enforcer(tmp_path, actuator, state, clock)

    forced = enforcer.weekly_check()

    assert forced is False
    assert actuator.commands == []
    assert enforcer.pending_shutoffs == 0
    assert state.exceeded is False
    assert enforcer.checkpoint.load() == clock.now


def test_fire_without_exceeded_flag_forces_cycle(tmp_path: Path, clock: FakeClock) -> None:
    actuator = StubActuator()
    state = MonitoringState()
    enforcer = _enforcer(tmp_path, actuator, state, clock)

    try:
        forced = enforcer.weekly_check()

        assert forced is True
        assert actuator.commands == [ChargingMode.ON]
        assert enforcer.pending_shutoffs == 1
        assert state.exceeded is False
        assert enforcer.checkpoint.load() == clock.now
    finally:
        enforcer.shutdown()


def test_failed_turn_on_still_advances_checkpoint_and_schedules_off(tmp_path: Path, clock: FakeClock) -> None:
    actuator = StubActuator(fail_on=ChargingMode.ON)
    state = MonitoringState()
    enforcer = _enforcer(tmp_path, actuator, state, clock, heating_duration=timedelta(milliseconds=20))

    enforcer.weekly_check()

    assert actuator.off_received.wait(2)
    assert actuator.commands == [ChargingMode.ON, ChargingMode.OFF]
    assert state.exceeded is False
    assert enforcer.checkpoint.load() == clock.now
    assert enforcer.next_delay() == WEEK


def test_shutoff_fires_exactly_once_after_delay(tmp_path: Path, clock: FakeClock) -> None:
    actuator = StubActuator()
    enforcer = _enforcer(tmp_path, actuator, MonitoringState(), clock, heating_duration=timedelta(milliseconds=20))

    enforcer.weekly_check()

    assert actuator.off_received.wait(2)
    time.sleep(0.1)
    assert actuator.commands == [ChargingMode.ON, ChargingMode.OFF]
    assert enforcer.pending_shutoffs == 0

    enforcer.shutdown()
    assert actuator.commands == [ChargingMode.ON, ChargingMode.OFF]


def test_failed_shutoff_is_logged_not_raised(tmp_path: Path, clock: FakeClock, caplog) -> None:
    actuator = StubActuator(fail_on=ChargingMode.OFF)
    enforcer = _enforcer(tmp_path, actuator, MonitoringState(), clock, heating_duration=timedelta(milliseconds=10))

    enforcer.weekly_check()

    assert actuator.off_received.wait(2)
    time.sleep(0.05)
    assert any("Failed to turn off heating" in record.getMessage() for record in caplog.records)


def test_shutdown_turns_heating_off_immediately(tmp_path: Path, clock: FakeClock) -> None:
    actuator = StubActuator()
    enforcer = _enforcer(tmp_path, actuator, MonitoringState(), clock)

    enforcer.weekly_check()
    enforcer.shutdown()

    assert actuator.commands == [ChargingMode.ON, ChargingMode.OFF]
    assert enforcer.pending_shutoffs == 0


def test_checkpoint_write_failure_is_logged(tmp_path: Path, clock: FakeClock, caplog) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    enforcer = WeeklyEnforcer(
        actuator=StubActuator(),
        state=MonitoringState(exceeded=True),
        checkpoint=CheckpointStore(blocker / "lastCheck.txt"),
        interval=WEEK,
        clock=clock,
    )

    enforcer.weekly_check()

    assert any("Failed to save last check time" in record.getMessage() for record in caplog.records)


def test_run_fires_once_then_waits_for_next_week(tmp_path: Path) -> None:
    actuator = StubActuator()
    state = MonitoringState(exceeded=True)
    enforcer = WeeklyEnforcer(
        actuator=actuator,
        state=state,
        checkpoint=CheckpointStore(tmp_path / "lastCheck.txt"),
        interval=WEEK,
    )
    stop = Event()

    thread = Thread(target=enforcer.run, args=(stop,))
    thread.start()
    try:
        deadline = time.monotonic() + 2
        while not enforcer.checkpoint.path.exists() and time.monotonic() < deadline:
            time.sleep(0.01)
    finally:
        stop.set()
        thread.join(timeout=2)

    assert not thread.is_alive()
    assert enforcer.checkpoint.load_or_none() is not None
    assert actuator.commands == []
    assert enforcer.next_delay() > WEEK - timedelta(minutes=1)


def test_unwritable_checkpoint_still_waits_a_full_interval(tmp_path: Path, clock: FakeClock) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    actuator = StubActuator()
    enforcer = WeeklyEnforcer(
        actuator=actuator,
        state=MonitoringState(),
        checkpoint=CheckpointStore(blocker / "lastCheck.txt"),
        interval=WEEK,
        clock=clock,
    )
    stop = Event()

    thread = Thread(target=enforcer.run, args=(stop,))
    thread.start()
    try:
        time.sleep(0.3)
    finally:
        stop.set()
        thread.join(timeout=2)

    try:
        assert not thread.is_alive()
        assert actuator.commands == [ChargingMode.ON]
        assert enforcer.pending_shutoffs == 1
        assert enforcer.next_delay() == WEEK
    finally:
        enforcer.shutdown()
