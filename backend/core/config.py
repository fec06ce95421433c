"""Runtime configuration for the FraudShield backend."""

from __future__ import annotations

import os
from pathlib import Path


def _split_csv(raw: str) -> list[str]:
    return [value.strip() for value in raw.split(",") if value.strip()]


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


ROOT_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = Path(os.getenv("FRAUDSHIELD_DATA_DIR", str(ROOT_DIR / "data")))

CORS_ALLOWLIST = _split_csv(os.getenv("CORS_ALLOWLIST", "http://localhost:8501,http://localhost:5173"))

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _env_int("JWT_EXPIRES_MINUTES", 60)

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bulk upload pipeline
BATCH_SIZE = _env_int("BATCH_SIZE", 500)
MAX_UPLOAD_MB = _env_int("MAX_UPLOAD_MB", 100)
MAX_UPLOAD_BYTES = MAX_UPLOAD_MB * 1024 * 1024

# "local" scores in-process, "http" posts each batch to SCORING_URL
SCORING_MODE = os.getenv("SCORING_MODE", "local").strip().lower()
SCORING_URL = os.getenv("SCORING_URL", "http://127.0.0.1:8000")
SCORING_PATH = os.getenv("SCORING_PATH", "/score")
SCORING_TIMEOUT_SECONDS = float(os.getenv("SCORING_TIMEOUT_SECONDS", "120"))
SCORING_MODEL = os.getenv("SCORING_MODEL", "gradient-boost-sim")
SCORING_SEED = int(os.environ["SCORING_SEED"]) if os.getenv("SCORING_SEED") else None

# Single-transaction history
HISTORY_PATH = os.getenv("HISTORY_PATH", "")
HISTORY_LIMIT = _env_int("HISTORY_LIMIT", 100)
SEED_DEMO_HISTORY = _env_flag("SEED_DEMO_HISTORY", "true")

TABLE_PAGE_SIZE = _env_int("TABLE_PAGE_SIZE", 10)
