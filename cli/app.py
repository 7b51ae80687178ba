from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from cli.config import CLIConfig, load_config
from cli.render import render_status, render_temperature
from logging_config import configure_logging
from models.config import AgentConfig, load_agent_config
from models.records import ChargingMode
from services.agent import (
    build_actuator,
    build_agent,
    build_http_client,
    build_reader,
    build_token_manager,
)
from services.auth import utcnow
from services.errors import AgentError, ConfigError
from services.weekly import compute_next_delay
from storage.checkpoint import CheckpointStore

logger = logging.getLogger(__name__)


@dataclass
class CLIState:
    config: CLIConfig


class HeatMode(str, Enum):
    on = "on"
    off = "off"


app = typer.Typer(
    help="Legionella prevention agent for a domestic hot-water heat pump.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _load_agent_config(state: CLIState) -> AgentConfig:
    try:
        return load_agent_config(state.config.config_path)
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        typer.secho(f"Failed to load configuration: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the JSON configuration (defaults to LEGIONELLA_CONFIG_PATH or config.json).",
    ),
    checkpoint_path: Optional[Path] = typer.Option(
        None,
        "--checkpoint",
        help="Path to the weekly checkpoint file (defaults to LEGIONELLA_CHECKPOINT_PATH or lastCheck.txt).",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to LOG_LEVEL or INFO).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        config_path=config_path,
        checkpoint_path=checkpoint_path,
        log_level=log_level,
    )
    configure_logging(config.log_level)
    ctx.obj = CLIState(config=config)


@app.command("run")
def run_command(ctx: typer.Context) -> None:
    """Run the temperature monitor and the weekly check until interrupted."""
    state = _get_state(ctx)
    agent_config = _load_agent_config(state)
    agent = build_agent(agent_config, checkpoint=CheckpointStore(state.config.checkpoint_path))
    agent.run_forever()


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show when the last weekly check ran and when the next one is due."""
    state = _get_state(ctx)
    agent_config = _load_agent_config(state)
    checkpoint = CheckpointStore(state.config.checkpoint_path)

    last_check = checkpoint.load_or_none()
    delay = compute_next_delay(utcnow(), last_check, agent_config.weekly_interval)
    next_due = last_check + agent_config.weekly_interval if last_check else None
    render_status(
        checkpoint_path=str(checkpoint.path),
        last_check=last_check,
        next_due=next_due,
        delay=delay,
        interval_hours=agent_config.weekly_interval_hours,
    )


@app.command("temperature")
def temperature_command(ctx: typer.Context) -> None:
    """Read the water temperature once."""
    state = _get_state(ctx)
    agent_config = _load_agent_config(state)
    client = build_http_client()
    ctx.call_on_close(client.close)

    reader = build_reader(client, build_token_manager(client, agent_config), agent_config)
    try:
        temperature = reader.read_temperature()
    except AgentError as exc:
        typer.secho(f"Failed to get temperature: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    render_temperature(temperature, agent_config.temperature_threshold)


@app.command("heat")
def heat_command(
    ctx: typer.Context,
    mode: HeatMode = typer.Argument(..., help="Switch the heat pump charging mode on or off."),
) -> None:
    """Send one charging-mode command to the heat pump."""
    state = _get_state(ctx)
    agent_config = _load_agent_config(state)
    client = build_http_client()
    ctx.call_on_close(client.close)

    actuator = build_actuator(client, build_token_manager(client, agent_config), agent_config)
    charging_mode = ChargingMode.ON if mode is HeatMode.on else ChargingMode.OFF
    try:
        actuator.set_charging_mode(charging_mode)
    except AgentError as exc:
        typer.secho(f"Failed to turn heating {mode.value}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho(f"Heating turned {mode.value}.", fg=typer.colors.GREEN)
