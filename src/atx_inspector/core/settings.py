"""
Settings management for atx-inspector.

Settings are pydantic models grouped by category and persisted as JSON in a
platform-specific configuration directory.

Settings Categories:
    - Decoder: verbose geometry checks, unknown chunk policy, nominal tracks
    - Report: hex dump width and which report sections are shown
    - Logging: level and optional log file
"""

import json
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from atx_inspector.core.errors import SettingsError
from atx_inspector.core.geometry import NOMINAL_TRACK_COUNT

# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Settings File Paths
# =============================================================================

def get_settings_dir() -> Path:
    """
    Get the platform-specific settings directory.

    Platform paths:
        - Linux: ~/.config/atx-inspector/
        - Windows: %APPDATA%/AtxInspector/
        - macOS: ~/Library/Application Support/AtxInspector/
    """
    if sys.platform == 'win32':
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
        return base / 'AtxInspector'
    elif sys.platform == 'darwin':
        return Path.home() / 'Library' / 'Application Support' / 'AtxInspector'
    else:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')
        return Path(xdg_config) / 'atx-inspector'


def get_settings_file() -> Path:
    """Get the settings file path."""
    return get_settings_dir() / 'settings.json'


# =============================================================================
# Enumerations
# =============================================================================

class UnknownChunkPolicy(Enum):
    """What the chunk loop does with a chunk type it does not recognise."""
    ABORT_TRACK = "abort_track"   # Warn, then fail the enclosing track
    SKIP_CHUNK = "skip_chunk"     # Warn, skip the declared length, continue


# =============================================================================
# Settings Categories
# =============================================================================

class DecoderSettings(BaseModel):
    """Options that change what the decoder checks and how it recovers."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    verbose: bool = False
    unknown_chunk_policy: UnknownChunkPolicy = UnknownChunkPolicy.ABORT_TRACK
    nominal_track_count: int = Field(default=NOMINAL_TRACK_COUNT, ge=1, le=255)


class ReportSettings(BaseModel):
    """Presentation options for the console report."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    hex_bytes_per_line: int = Field(default=16, ge=8, le=64)
    show_sectors: bool = False
    show_layout: bool = False
    show_notes: bool = True


class AppSettings(BaseModel):
    """Complete application settings."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    decoder: DecoderSettings = Field(default_factory=DecoderSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator('log_level')
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


# =============================================================================
# Persistence
# =============================================================================

def load_settings(path: Optional[Path] = None) -> AppSettings:
    """
    Load settings from a JSON file.

    A missing file yields the defaults.

    Args:
        path: Settings file (default: get_settings_file())

    Raises:
        SettingsError: If the file is unreadable, not JSON, or invalid
    """
    settings_file = Path(path) if path is not None else get_settings_file()

    if not settings_file.exists():
        logger.debug("Settings file not found: %s", settings_file)
        return AppSettings()

    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Invalid JSON in settings file {settings_file}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Cannot read settings file {settings_file}: {e}") from e

    try:
        settings = AppSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_file}: {e}") from e

    logger.info("Settings loaded from %s", settings_file)
    return settings


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> Path:
    """
    Write settings as JSON, creating the directory if needed.

    Returns:
        The path written to
    """
    settings_file = Path(path) if path is not None else get_settings_file()
    settings_file.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(settings_file, 'w', encoding='utf-8') as f:
            f.write(settings.model_dump_json(indent=2))
    except OSError as e:
        raise SettingsError(f"Cannot write settings file {settings_file}: {e}") from e

    logger.info("Settings saved to %s", settings_file)
    return settings_file
