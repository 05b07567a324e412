"""
minutecron · Configuration system.

Loads configuration from:
  1. Defaults (defined here)
  2. ~/.minutecron/config.yaml (overrides defaults)
  3. Environment variables MINUTECRON_* (overrides everything)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from minutecron.core.errors import ConfigError
from minutecron.utils.logging import get_logger

log = get_logger(__name__)

ENV_PREFIX = "MINUTECRON_"

# ============================================================================
# Konfigurationsmodelle
# ============================================================================


class SchedulerConfig(BaseModel):
    """Scheduler-Einstellungen."""

    timezone: str | None = Field(
        default=None,
        description="IANA-Zeitzone (z.B. 'Europe/Berlin'). None = lokale Uhrzeit",
    )
    # Sekunde, ab der ein Tick zur nächsten Minute gezählt wird
    grace_seconds: int = Field(default=50, ge=0, le=59)
    dispatch_delay_seconds: float = Field(default=0.005, ge=0.0, le=1.0)
    max_workers: int = Field(default=8, ge=1, le=256)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unbekannte Zeitzone: {value}"
            raise ValueError(msg) from exc
        return value

    def tzinfo(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None


class LoggingConfig(BaseModel):
    """Logging-Konfiguration."""

    level: str = "INFO"
    json_logs: bool = False
    console: bool = True
    log_dir: Path | None = None


# ============================================================================
# Haupt-Konfiguration
# ============================================================================


class MinuteCronConfig(BaseModel):
    """Complete minutecron configuration."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def default_config_path() -> Path:
    return Path.home() / ".minutecron" / "config.yaml"


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Wendet MINUTECRON_* Umgebungsvariablen an.

    Konvention: MINUTECRON_SECTION_KEY → data["section"]["key"]
    Beispiel: MINUTECRON_SCHEDULER_GRACE_SECONDS → data["scheduler"]["grace_seconds"]
    """
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        parts = key[len(ENV_PREFIX):].lower().split("_", 1)
        if len(parts) != 2 or not parts[1]:
            continue
        section, leaf_key = parts
        node = data.setdefault(section, {})
        if isinstance(node, dict):
            node[leaf_key] = value
    return data


def load_config(config_path: Path | None = None) -> MinuteCronConfig:
    """Lädt die Konfiguration.

    Reihenfolge (spätere überschreiben frühere):
      1. Defaults (in den Pydantic-Modellen)
      2. config.yaml (wenn vorhanden)
      3. MINUTECRON_* Umgebungsvariablen

    Args:
        config_path: Expliziter Pfad zur config.yaml. Wenn None: ~/.minutecron/config.yaml

    Returns:
        Vollständig validierte MinuteCronConfig.

    Raises:
        ConfigError: Wenn die Werte die Validierung nicht bestehen.
    """
    data: dict[str, Any] = {}

    if config_path is None:
        config_path = default_config_path()

    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            if isinstance(file_data, dict):
                data = file_data
        except yaml.YAMLError as exc:
            log.warning("config_yaml_ignored", path=str(config_path), error=str(exc))

    data = _apply_env_overrides(data)

    try:
        return MinuteCronConfig(**data)
    except ValidationError as exc:
        raise ConfigError(
            f"Ungültige Konfiguration: {exc.error_count()} Fehler",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
