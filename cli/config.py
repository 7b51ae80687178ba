from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    config_path: Path
    checkpoint_path: Path
    log_level: str


def load_config(
    config_path: Optional[Path] = None,
    checkpoint_path: Optional[Path] = None,
    log_level: Optional[str] = None,
) -> CLIConfig:
    settings = get_settings()
    return CLIConfig(
        config_path=config_path or Path(settings.config_path),
        checkpoint_path=checkpoint_path or Path(settings.checkpoint_path),
        log_level=(log_level or settings.log_level).upper(),
    )
