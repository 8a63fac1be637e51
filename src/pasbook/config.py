"""
Contains the configuration options for the pasbook importer
"""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

USERPROFILE: Path = Path(os.getenv("userprofile", os.getenv("HOME", "")))
BASE_FOLDER: Path = (USERPROFILE / ".pasbook").resolve()
SETTINGS_FILE_PATH: Path = BASE_FOLDER / "config.json"


class Settings(BaseSettings):
    """Settings class for the pasbook importer"""

    model_config = SettingsConfigDict(env_prefix="PASBOOK_")

    DATA_DIR_PATH: Path = BASE_FOLDER / "data"
    PASSES_DIR_PATH: Path = DATA_DIR_PATH / "passes"
    DATABASE_PATH: Path = DATA_DIR_PATH / "passes.sqlite3"
    LOGGING_DIR_PATH: Path = DATA_DIR_PATH / "logging"

    # Working directory layout
    IMAGES_DIR_NAME: str = "images"
    ORIGINAL_ARCHIVE_NAME: str = "pass.pkpass"
    MAX_IMAGE_ENTRY_BYTES: int = 10 * 1024 * 1024

    # Manifest defaults
    DEFAULT_MESSAGE_ENCODING: str = "iso-8859-1"

    # Caller-side retry policy
    IMPORT_MAX_ATTEMPTS: int = 3
    IMPORT_RETRY_DELAY: float = 0.5  # in seconds
    IMPORT_RETRY_MULTIPLIER: float = 2

    @classmethod
    def load_from_file(cls, path: Path) -> "Settings":
        """Loads settings from a JSON file."""
        if not path.exists():
            return cls()  # Return default

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(**data)
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logging.getLogger("Config").error("Error loading settings: %s", e)
            return cls()  # Return defaults

    def save_to_file(self, path: Path):
        """Saves settings to JSON file."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                _ = f.write(self.model_dump_json(indent=2))
        except OSError as e:
            logging.getLogger("Config").error("Error saving settings: %s", e)


settings = Settings.load_from_file(SETTINGS_FILE_PATH)
