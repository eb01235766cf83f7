"""
Runtime settings, read from the environment.

Callers load a .env first (python-dotenv) so PKV_* values can live next to
the keys they manage.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .models import DEFAULT_VAR_NAME


class Settings(BaseModel):
    """PK Validator settings.

    Environment variables:
        PKV_DOTENV_PATH    dotenv file read by --env and written by --save-env
        PKV_VAR_NAME       default variable name for envvar / env_line
        PKV_PREVIEW_LIMIT  characters of formatted output shown on screen
        PKV_LOG_LEVEL      logging level name
    """

    dotenv_path: Path = Path(".env")
    var_name: str = DEFAULT_VAR_NAME
    preview_limit: int = Field(default=2000, gt=0)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "dotenv_path": os.environ.get("PKV_DOTENV_PATH"),
            "var_name": os.environ.get("PKV_VAR_NAME"),
            "preview_limit": os.environ.get("PKV_PREVIEW_LIMIT"),
            "log_level": os.environ.get("PKV_LOG_LEVEL"),
        }
        return cls(**{k: v for k, v in values.items() if v})
