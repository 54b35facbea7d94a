# contentops/core/config.py
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

# root .env first, then contentops/.env (do not override values already loaded)
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


# ---- Database ----------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./contentops.db")
SQL_ECHO = _flag("SQL_ECHO", "0")

# dev-only: create tables on startup instead of running alembic
ENABLE_CREATE_ALL = _flag("ENABLE_CREATE_ALL", "1")

# ---- Auth --------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ---- Logging -----------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
