import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .database import DEFAULT_CANDIDATE_LIMIT

DEFAULT_STORE = "data/profiles.json"


def load_env() -> None:
    """Load .env from the working directory if present.

    Variables already set in the environment win over the file.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def store_path() -> Path:
    return Path(os.getenv("SKILLMATCH_STORE", DEFAULT_STORE))


def db_path() -> Optional[Path]:
    value = os.getenv("SKILLMATCH_DB")
    return Path(value) if value else None


def candidate_limit() -> int:
    raw = os.getenv("SKILLMATCH_CANDIDATE_LIMIT")
    if not raw:
        return DEFAULT_CANDIDATE_LIMIT
    try:
        value = int(raw)
    except ValueError:
        raise SystemExit(f"SKILLMATCH_CANDIDATE_LIMIT must be an integer, got {raw!r}")
    if value <= 0:
        raise SystemExit(f"SKILLMATCH_CANDIDATE_LIMIT must be positive, got {value}")
    return value
