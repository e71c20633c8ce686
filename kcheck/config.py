"""Application configuration and constants."""
import os
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Database
DB_DIR = Path(os.environ.get("DB_DIR", Path.cwd() / "data"))
DATABASE_URL = os.environ.get(
    "DATABASE_URL", f"sqlite:///{DB_DIR / 'knowledge_check.db'}"
)

# Logging
LOG_LEVEL = os.environ.get("KC_LOG_LEVEL", "INFO").upper()

# Grading
DEFAULT_PASSING_SCORE = _parse_int_env("KC_DEFAULT_PASSING_SCORE", 80)
EXACT_MATCH_MAX_DISTANCE = _parse_int_env("KC_EXACT_MATCH_MAX_DISTANCE", 2)
TRIGGER_MATCH_MAX_DISTANCE = _parse_int_env("KC_TRIGGER_MATCH_MAX_DISTANCE", 1)

# Identifiers
TEST_CODE_PREFIX = "KC-"
TEST_CODE_LENGTH = 4
RUN_NUMBER_PREFIX = "TR-"
RUN_NUMBER_WIDTH = 4
RESULT_SUFFIX_WIDTH = 4

# Synthetic run that collects assignments created before test runs existed
UNASSIGNED_RUN_ID = "default-unassigned-run"
UNASSIGNED_RUN_NUMBER = "TR-0000"
SYSTEM_ACTOR = "system"
