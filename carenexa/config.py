"""
Unified configuration: .env locally, plain environment variables everywhere else.

- Local: set OPENAI_API_KEY (or one of the alternate names below) in .env;
  python-dotenv loads it on import.
- Deployed: export the same variables in the process environment.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv


def _load_dotenv_local() -> None:
    """Load .env from the project root when one exists."""
    root = Path(__file__).resolve().parent.parent
    env_file = root / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)


_load_dotenv_local()


def _get_list(key: str, default: str) -> List[str]:
    raw = os.getenv(key, default) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


# ── Paths ───────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", str(Path(__file__).resolve().parent.parent)))

# ── LLM credentials (first non-empty wins) ──────────────────────────────────
API_KEY_ENV_NAMES: List[str] = [
    "OPENAI_API_KEY",
    "CARENEXA_LLM_API_KEY",
    "LLM_API_KEY",
]


def get_api_key() -> Optional[str]:
    """Return the configured LLM credential, or None when none of the names is set.

    Read on every call so a key exported after import (or removed in tests) is honoured.
    """
    for name in API_KEY_ENV_NAMES:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return None


# ── Models ──────────────────────────────────────────────────────────────────
# Tried in order; each candidate is attempted exactly once per request.
LLM_MODEL_CANDIDATES: List[str] = _get_list(
    "LLM_MODEL_CANDIDATES", "gpt-4o-mini,gpt-4o,gpt-4.1-mini"
)
VISION_MODEL: str = os.getenv("VISION_MODEL", "gpt-4o-mini")
LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
LLM_REQUEST_TIMEOUT: int = int(os.getenv("LLM_REQUEST_TIMEOUT", "60"))
LLM_MAX_RETRIES: int = int(os.getenv("LLM_MAX_RETRIES", "1"))

# ── Request limits ──────────────────────────────────────────────────────────
RATE_LIMIT_WINDOW_SECONDS: float = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "20"))
PROMPT_MAX_CHARS: int = 4000
UPLOAD_MAX_BYTES: int = 10 * 1024 * 1024  # 10 MB
PIN_DESCRIPTION_MAX_CHARS: int = 500

# ── Safe routing ────────────────────────────────────────────────────────────
ROUTE_STEPS: int = 8
DANGER_RADIUS_METERS: float = 200.0
DANGER_WEIGHT: int = 2
CAPABILITY_BONUS: int = 5

# ── Health scoring ──────────────────────────────────────────────────────────
NEUTRAL_AXIS_PRIOR: float = 0.7
CRITICAL_SCORE_THRESHOLD: int = int(os.getenv("CRITICAL_SCORE_THRESHOLD", "25"))

# ── Audit trail ─────────────────────────────────────────────────────────────
RECEIPT_HISTORY_SIZE: int = 100

# ── HTTP ────────────────────────────────────────────────────────────────────
CORS_ORIGINS: List[str] = _get_list("CORS_ORIGINS", "*")
