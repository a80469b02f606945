from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / "data"
INPUT_DIR = DATA_DIR / "input"
SCRIPTS_DIR = DATA_DIR / "scripts"
AUDIO_DIR = DATA_DIR / "audio"
TIMELINES_DIR = DATA_DIR / "timelines"
LOGS_DIR = DATA_DIR / "logs"

DEFAULT_SOURCE_DOCUMENT = INPUT_DIR / "document.md"


def ensure_runtime_directories() -> None:
    """Create folders required by the pipeline."""
    for path in (
        DATA_DIR,
        INPUT_DIR,
        SCRIPTS_DIR,
        AUDIO_DIR,
        TIMELINES_DIR,
        LOGS_DIR,
    ):
        path.mkdir(parents=True, exist_ok=True)


def get_env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from environment variables."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_env_int(name: str, default: int) -> int:
    """Read an integer from environment variables, ignoring unparsable values."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default
