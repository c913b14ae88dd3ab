"""
Settings API Routes - Timing, paging and logging preferences.
Settings are stored in ~/.knowledgebase/settings.json
(or $KNOWLEDGEBASE_HOME/settings.json when set).
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError, field_validator
from typing import Optional
import os
import json
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Settings"])

# Default settings
DEFAULT_SETTINGS = {
    # Phase simulation
    "tick_interval_ms": 200,
    "progress_step": 10,
    "phase_min_ms": 2000,
    "phase_jitter_ms": 1000,
    # Upload button stays busy for batch_base_ms + batch_per_file_ms * files
    "batch_base_ms": 2000,
    "batch_per_file_ms": 500,
    # File table
    "page_size": 5,
    # Logging
    "log_level": "INFO"
}


class SettingsModel(BaseModel):
    tick_interval_ms: Optional[int] = Field(default=None, gt=0)
    progress_step: Optional[int] = Field(default=None, gt=0, le=100)
    phase_min_ms: Optional[int] = Field(default=None, ge=0)
    phase_jitter_ms: Optional[int] = Field(default=None, ge=0)
    batch_base_ms: Optional[int] = Field(default=None, ge=0)
    batch_per_file_ms: Optional[int] = Field(default=None, ge=0)
    page_size: Optional[int] = Field(default=None, gt=0)
    log_level: Optional[str] = None


class StoredSettings(BaseModel):
    """Complete settings as read from disk. Every value is required and checked."""
    tick_interval_ms: int = Field(gt=0)
    progress_step: int = Field(gt=0, le=100)
    phase_min_ms: int = Field(ge=0)
    phase_jitter_ms: int = Field(ge=0)
    batch_base_ms: int = Field(ge=0)
    batch_per_file_ms: int = Field(ge=0)
    page_size: int = Field(gt=0)
    log_level: str

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {value}")
        return level


def get_settings_dir() -> Path:
    """Data directory, resolved on every call so it follows the environment."""
    return Path(os.getenv("KNOWLEDGEBASE_HOME", str(Path.home() / ".knowledgebase")))


def get_settings_file() -> Path:
    return get_settings_dir() / "settings.json"


def ensure_settings_dir():
    """Create settings directory if it doesn't exist."""
    get_settings_dir().mkdir(parents=True, exist_ok=True)


def load_settings() -> dict:
    """Load settings from JSON file, return defaults if not found."""
    settings_file = get_settings_file()

    if not settings_file.exists():
        return DEFAULT_SETTINGS.copy()

    try:
        with open(settings_file, "r") as f:
            saved = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"[WARN] Could not read {settings_file} ({e}), using defaults")
        return DEFAULT_SETTINGS.copy()

    if not isinstance(saved, dict):
        logger.warning(f"[WARN] {settings_file} does not hold a JSON object, using defaults")
        return DEFAULT_SETTINGS.copy()

    # Merge with defaults to handle new fields
    result = DEFAULT_SETTINGS.copy()
    result.update(saved)

    try:
        return StoredSettings.model_validate(result).model_dump()
    except ValidationError as e:
        logger.warning(f"[WARN] Invalid values in {settings_file} ({e.error_count()} error(s)), using defaults")
        return DEFAULT_SETTINGS.copy()


def save_settings(settings: dict) -> bool:
    """Save settings to JSON file."""
    ensure_settings_dir()

    try:
        with open(get_settings_file(), "w") as f:
            json.dump(settings, f, indent=2)
        return True
    except IOError as e:
        raise HTTPException(status_code=500, detail=f"Failed to save settings: {e}")


@router.get("/settings")
def get_settings():
    """Get current application settings."""
    return load_settings()


@router.put("/settings")
def update_settings(payload: SettingsModel):
    """
    Update application settings.
    Timing changes take effect the next time the server starts.
    """
    current = load_settings()

    updates = payload.model_dump(exclude_unset=True)

    for key, value in updates.items():
        # Only update if value is provided (not None)
        if value is not None:
            current[key] = value

    if "log_level" in updates and updates["log_level"]:
        level = updates["log_level"].upper()
        if not isinstance(logging.getLevelName(level), int):
            raise HTTPException(status_code=400, detail=f"Invalid log level: {updates['log_level']}")
        current["log_level"] = level

    save_settings(current)

    return {
        "success": True,
        "message": "Settings saved successfully",
        "settings": current
    }
