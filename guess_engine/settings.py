"""
Process settings

Loads file locations, seed and log level from environment variables.
A .env file in the working directory (or the project root) is loaded first
using python-dotenv; variables already set in the environment win.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .models.config import EngineConfig, load_config

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _load_env_files() -> None:
    for candidate in (Path.cwd() / ".env", _PROJECT_ROOT / ".env"):
        if candidate.exists():
            load_dotenv(candidate)


@dataclass
class EngineSettings:
    """Process-level settings for the console driver and adapters."""

    # Engine config JSON (sectioned or flat). None uses defaults.
    config_path: Optional[Path] = None
    # Catalog JSON: {"items": [...], "tags": [...], "summary_groups": [...]}
    catalog_path: Optional[Path] = None
    # Session store JSON. None keeps sessions in memory.
    sessions_path: Optional[Path] = None
    # Seed for the confirm-type split. None uses system randomness.
    seed: Optional[int] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Load settings from environment variables."""
        _load_env_files()

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (Path.cwd() / p).resolve()

        seed = os.getenv("GUESS_ENGINE_SEED", "").strip()
        return cls(
            config_path=_path_env("GUESS_ENGINE_CONFIG"),
            catalog_path=_path_env("GUESS_ENGINE_CATALOG"),
            sessions_path=_path_env("GUESS_ENGINE_SESSIONS"),
            seed=int(seed) if seed else None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the settings.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.config_path is not None and not self.config_path.exists():
            errors.append(f"Config file not found: {self.config_path}")
        if self.catalog_path is not None and not self.catalog_path.exists():
            errors.append(f"Catalog file not found: {self.catalog_path}")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            errors.append(f"Unknown log level: {self.log_level}")
        return len(errors) == 0, errors

    def engine_config(self) -> EngineConfig:
        """EngineConfig from config_path, or defaults."""
        if self.config_path is None:
            return EngineConfig()
        return load_config(self.config_path)


# Global settings instance
_settings: Optional[EngineSettings] = None


def get_settings() -> EngineSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = EngineSettings.from_env()
    return _settings


def reload_settings() -> EngineSettings:
    """Reload settings from environment."""
    global _settings
    _settings = None
    return get_settings()
