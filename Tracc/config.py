import logging
import os
from datetime import tzinfo
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from Tracc.errors import StoreUnavailable

log = logging.getLogger(__name__)

APP_DIR_NAME = "tracc"
DT_FMT = "%H:%M %d.%m.%y"


class Settings(BaseSettings):
    # --- Storage ---
    data_dir: Optional[Path] = None # Defaults to $XDG_DATA_HOME/tracc
    db_filename: str = "tracc.duckdb"

    # --- Time & rendering ---
    local_tz: Optional[str] = None # IANA name, e.g. "Europe/Berlin". None = system zone
    datetime_format: str = DT_FMT

    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="TRACC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra='ignore'
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{value}'")
        return level


def default_data_dir() -> Path:
    """$XDG_DATA_HOME/tracc, or ~/.local/share/tracc when the variable is unset."""
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def resolve_data_dir(settings: Settings) -> Path:
    """Return the data directory, creating it if needed."""
    path = settings.data_dir or default_data_dir()
    if path.exists():
        if not path.is_dir():
            raise StoreUnavailable(f"Could not get data directory. {path} is a file.")
        return path
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreUnavailable(f"Could not create data directory: {e}") from e
    log.info(f"Created data directory {path}")
    return path


def database_path(settings: Settings) -> Path:
    return resolve_data_dir(settings) / settings.db_filename


def local_timezone(settings: Settings) -> Optional[tzinfo]:
    """
    The zone used for day boundaries and for rendering instants.

    None means the system zone; callers pass it on to ``astimezone(None)``,
    which picks the right DST offset for each instant.
    """
    if settings.local_tz:
        try:
            return ZoneInfo(settings.local_tz)
        except (ZoneInfoNotFoundError, ValueError):
            log.warning(f"Timezone '{settings.local_tz}' not found. Using the system timezone.")
    return None
