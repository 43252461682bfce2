"""Configuration for the voice gateway backend."""

from __future__ import annotations

import json
import logging
import os
import pathlib
import re
import tempfile
from datetime import timedelta
from typing import Any

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DB_FILENAME = "database.sqlite"
MEMORY_DATABASE_URI = "sqlite+pysqlite:///:memory:"

DEFAULT_FLOW_WEBHOOK_URL = (
    "https://areadocliente.liguelead.com.br/api/crm/webhook/"
    "f914ed2e-30d3-4c5a-b4a4-6fe7ea1223d3"
)

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_statuses(name: str, default: str) -> frozenset[int]:
    raw = os.getenv(name, default)
    return frozenset(int(part) for part in raw.split(",") if part.strip())


def _env_candidates(name: str) -> list[dict[str, Any]] | None:
    raw = os.getenv(name)
    if not raw:
        return None
    candidates = json.loads(raw)
    if not isinstance(candidates, list):
        raise ValueError(f"{name} must be a JSON array")
    return candidates


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse durations such as ``"1h"``, ``"30m"`` or ``3600`` into a timedelta."""

    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_PATTERN.match(value)
    if match is None:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _DURATION_UNITS[unit.lower()])


def _is_writable_directory(directory: pathlib.Path) -> bool:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        return False
    return os.access(directory, os.W_OK)


def candidate_database_paths(db_path: str | None = None) -> list[pathlib.Path]:
    """Return the SQLite file locations tried in order of preference."""

    candidates: list[pathlib.Path] = []
    if db_path:
        candidates.append(pathlib.Path(db_path).expanduser())
    candidates.append(pathlib.Path.cwd() / "data" / DB_FILENAME)
    try:
        candidates.append(pathlib.Path.home() / ".voice-gateway" / DB_FILENAME)
    except RuntimeError:
        logger.warning("Home directory cannot be determined, skipping it as database location")
    candidates.append(pathlib.Path(tempfile.gettempdir()) / "voice-gateway" / DB_FILENAME)
    return candidates


def resolve_database_uri(db_path: str | None = None) -> tuple[str, bool]:
    """Pick the first usable SQLite location.

    Returns the SQLAlchemy URI and whether it points at an in-memory database.
    """

    if db_path == ":memory:":
        return MEMORY_DATABASE_URI, True

    for path in candidate_database_paths(db_path):
        if _is_writable_directory(path.parent):
            return f"sqlite:///{path.resolve()}", False
        logger.warning("Database directory %s is not writable, trying next location", path.parent)

    logger.warning("No writable location for the SQLite database, using in-memory storage")
    return MEMORY_DATABASE_URI, True


class Config:
    """Base configuration for the Flask application."""

    SQLALCHEMY_DATABASE_URI: str | None = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    DB_PATH: str | None = os.getenv("DB_PATH")
    DB_INIT_MAX_RETRIES: int = int(os.getenv("DB_INIT_MAX_RETRIES", "30"))
    DB_INIT_RETRY_DELAY: float = float(os.getenv("DB_INIT_RETRY_DELAY", "2"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ALLOWED_ORIGINS: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URI: str = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    ENABLE_LIGUELEAD_API: bool = _env_bool("ENABLE_LIGUELEAD_API", True)
    ENABLE_API4COM_API: bool = _env_bool("ENABLE_API4COM_API", True)
    ENABLE_USERS_API: bool = _env_bool("ENABLE_USERS_API", True)
    LIGUELEAD_URL_PREFIX: str = os.getenv("LIGUELEAD_URL_PREFIX", "")
    API4COM_URL_PREFIX: str = os.getenv("API4COM_URL_PREFIX", "/api4com")
    USERS_URL_PREFIX: str = os.getenv("USERS_URL_PREFIX", "")

    LIGUELEAD_BASE_URL: str = os.getenv("LIGUELEAD_BASE_URL", "https://api.liguelead.com.br/v1")
    LIGUELEAD_API_TOKEN: str | None = os.getenv("APITOKEN")
    LIGUELEAD_APP_ID: str | None = os.getenv("APPID")

    FLOW_WEBHOOK_URL: str = os.getenv("FLOW_WEBHOOK_URL", DEFAULT_FLOW_WEBHOOK_URL)
    FLOW_CANDIDATES: list[dict[str, Any]] | None = _env_candidates("FLOW_CANDIDATES")
    FLOW_RECOVERABLE_STATUSES: frozenset[int] = _env_statuses("FLOW_RECOVERABLE_STATUSES", "400,422")
    FLOW_RETRY_DELAY: float = float(os.getenv("FLOW_RETRY_DELAY", "0.3"))
    FLOW_REQUEST_TIMEOUT: float = float(os.getenv("FLOW_REQUEST_TIMEOUT", "10"))
    FLOW_START_RATE_LIMIT: str = os.getenv("FLOW_START_RATE_LIMIT", "10 per minute")

    API4COM_BASE_URL: str = os.getenv("API4COM_BASE_URL", "https://api.api4com.com/api/v1")
    API4COM_EMAIL: str | None = os.getenv("API4COM_EMAIL")
    API4COM_PASSWORD: str | None = os.getenv("API4COM_PASSWORD")
    API4COM_CPF_CNPJ: str | None = os.getenv("API4COM_CPF_CNPJ")
    API4COM_GATEWAY_NAME: str = os.getenv("API4COM_GATEWAY_NAME", "integration-test-15")
    API4COM_WEBHOOK_URL: str = os.getenv("WEBHOOK_URL", "http://localhost:3000/api4com/callback")
    API4COM_TIMEOUT: float = float(os.getenv("API4COM_TIMEOUT", "15"))

    JWT_SECRET: str = os.getenv("JWT_SECRET", "replace_this_secret_in_prod")
    JWT_EXPIRES_IN: str = os.getenv("JWT_EXPIRES_IN", "1h")
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
