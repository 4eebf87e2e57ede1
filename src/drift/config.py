"""Configuration management for Drift."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DRIFT_HOME = Path(os.environ.get("DRIFT_HOME", Path.home() / "drift"))
CONFIG_FILE = DRIFT_HOME / "config" / "drift.conf"
DATA_DIR = DRIFT_HOME / "data"

AI_PROVIDERS = ("claude-cli", "anthropic", "none")


@dataclass
class Config:
    """Drift configuration."""

    timezone: str = "America/Toronto"
    db_path: str = ""
    # Planning oracle
    ai_provider: str = "claude-cli"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-haiku-4-5-20251001"
    oracle_timeout: int = 60
    focus_fallback_size: int = 5
    # Check-ins
    morning_checkin_time: str = "09:00"
    midday_checkin_time: str = "13:00"
    notifications_enabled: bool = True
    overdue_sweep_minute: int = 30

    @property
    def database_path(self) -> Path:
        if self.db_path:
            return Path(self.db_path).expanduser()
        return DATA_DIR / "drift.db"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from an unquoted value."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}, keeping {default}")
        return default


def _parse_bool(key: str, value: str, default: bool) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    logger.warning(f"Invalid boolean for {key.upper()}: {value!r}, keeping {default}")
    return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from drift.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "db_path":
                config.db_path = value
            case "ai_provider":
                if value in AI_PROVIDERS:
                    config.ai_provider = value
                else:
                    logger.warning(f"Unknown AI_PROVIDER {value!r}, expected one of {', '.join(AI_PROVIDERS)}")
            case "anthropic_api_key":
                config.anthropic_api_key = value
            case "anthropic_model":
                config.anthropic_model = value
            case "oracle_timeout":
                config.oracle_timeout = _parse_int(key, value, config.oracle_timeout)
            case "focus_fallback_size":
                config.focus_fallback_size = _parse_int(key, value, config.focus_fallback_size)
            case "morning_checkin_time":
                config.morning_checkin_time = value
            case "midday_checkin_time":
                config.midday_checkin_time = value
            case "notifications_enabled":
                config.notifications_enabled = _parse_bool(key, value, config.notifications_enabled)
            case "overdue_sweep_minute":
                config.overdue_sweep_minute = _parse_int(key, value, config.overdue_sweep_minute)

    return config
