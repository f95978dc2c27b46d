"""
Configuration for hana-vocab.

Values come from environment variables (a local .env file is loaded first)
with defaults suitable for a single learner on one machine.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path.home() / ".hana_vocab"
DEFAULT_DB_PATH = str(DATA_DIR / "hana.db")


@dataclass
class Config:
    """Runtime settings for storage and the external speech/recognition services."""

    db_path: str = field(default_factory=lambda: os.getenv("HANA_DB_PATH", DEFAULT_DB_PATH))

    # Handwriting recognizer (Gemini REST API)
    gemini_api_key: str = field(
        default_factory=lambda: os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY", "")
    )
    recognizer_model: str = field(
        default_factory=lambda: os.getenv("HANA_RECOGNIZER_MODEL", "gemini-2.0-flash")
    )
    recognizer_timeout: float = field(
        default_factory=lambda: float(os.getenv("HANA_RECOGNIZER_TIMEOUT", "20"))
    )

    # Speech synthesis
    tts_voice: str = field(default_factory=lambda: os.getenv("HANA_TTS_VOICE", "ko-KR-SunHiNeural"))
    audio_dir: str = field(
        default_factory=lambda: os.getenv("HANA_AUDIO_DIR", str(DATA_DIR / "audio"))
    )

    log_level: str = field(default_factory=lambda: os.getenv("HANA_LOG_LEVEL", "WARNING").upper())
