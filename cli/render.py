from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def format_delay(delay: timedelta) -> str:
    total = int(delay.total_seconds())
    if total <= 0:
        return "due now"
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h {minutes:02d}m {seconds:02d}s"


def render_status(
    checkpoint_path: str,
    last_check: Optional[datetime],
    next_due: Optional[datetime],
    delay: timedelta,
    interval_hours: float,
) -> None:
    echo_heading("Weekly Check")
    echo_key_values(
        [
            ("checkpoint", checkpoint_path),
            ("interval_hours", interval_hours),
            ("last_check", last_check.isoformat() if last_check else "never"),
            ("next_due", next_due.isoformat() if next_due else "now"),
            ("remaining", format_delay(delay)),
        ]
    )


def render_temperature(temperature: float, threshold: float) -> None:
    echo_heading("Water Temperature")
    echo_key_values(
        [
            ("temperature", f"{temperature:.1f}°C"),
            ("threshold", f"{threshold:.1f}°C"),
        ]
    )
    if temperature > threshold:
        typer.secho("Threshold exceeded.", fg=typer.colors.GREEN)
    else:
        typer.secho("Threshold not reached.", fg=typer.colors.YELLOW)
