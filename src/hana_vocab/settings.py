"""Learner settings persistence."""
import logging
from dataclasses import asdict

from hana_vocab.db import SETTINGS_KEY, load, save
from hana_vocab.models import INPUT_MODES, LANGUAGES, Settings

logger = logging.getLogger(__name__)


def get_settings(db_path: str) -> Settings:
    """Stored settings, with defaults substituted for anything missing or invalid."""
    raw = load(db_path, SETTINGS_KEY)
    settings = Settings()
    if not isinstance(raw, dict):
        return settings
    input_mode = raw.get("input_mode", raw.get("inputMode"))
    if input_mode in INPUT_MODES:
        settings.input_mode = input_mode
    elif input_mode is not None:
        logger.warning("Ignoring unknown input mode %r", input_mode)
    language = raw.get("language")
    if language in LANGUAGES:
        settings.language = language
    elif language is not None:
        logger.warning("Ignoring unknown language %r", language)
    return settings


def save_settings(db_path: str, settings: Settings) -> None:
    save(db_path, SETTINGS_KEY, asdict(settings))


def update_settings(db_path: str, **changes) -> Settings:
    settings = get_settings(db_path)
    for key, value in changes.items():
        if key == "input_mode" and value not in INPUT_MODES:
            raise ValueError(f"Unknown input mode: {value}")
        if key == "language" and value not in LANGUAGES:
            raise ValueError(f"Unknown language: {value}")
        if not hasattr(settings, key):
            raise ValueError(f"Unknown setting: {key}")
        setattr(settings, key, value)
    save_settings(db_path, settings)
    return settings
