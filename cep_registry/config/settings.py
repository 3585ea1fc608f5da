"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

To swap backends, change the relevant env var — no code edits required:
  STORE_BACKEND     → memory | postgres
  DB_DSN            → swap database
  VIACEP_BASE_URL   → point the lookup adapter at a mirror or stub
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")

_TRUTHY = {"1", "true", "yes", "on"}


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _env_bool(key: str, default: bool) -> bool:
    return os.getenv(key, str(default)).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Runtime environment ────────────────────────────────────────────────
    # Anything other than "production" exposes diagnostic detail in error
    # envelopes and serves the OpenAPI docs.
    app_env: str = field(
        default_factory=lambda: _env("APP_ENV", "development")
    )
    log_level: str = field(
        default_factory=lambda: _env("LOG_LEVEL", "INFO")
    )

    # ── Record store ───────────────────────────────────────────────────────
    # Valid values: "memory" | "postgres"
    store_backend: str = field(
        default_factory=lambda: _env("STORE_BACKEND", "memory")
    )
    db_dsn: str = field(
        default_factory=lambda: _env("DB_DSN", "dbname=cep_registry")
    )
    seed_demo_data: bool = field(
        default_factory=lambda: _env_bool("SEED_DEMO_DATA", False)
    )

    # ── Address lookup (ViaCEP) ────────────────────────────────────────────
    viacep_base_url: str = field(
        default_factory=lambda: _env("VIACEP_BASE_URL", "https://viacep.com.br/ws")
    )
    lookup_timeout: float = field(
        default_factory=lambda: _env_float("LOOKUP_TIMEOUT", 10.0)
    )
    http_user_agent: str = field(
        default_factory=lambda: _env("HTTP_USER_AGENT", "cep-registry/1.0")
    )

    # ── HTTP server ────────────────────────────────────────────────────────
    api_host: str = field(default_factory=lambda: _env("API_HOST", "127.0.0.1"))
    api_port: int = field(default_factory=lambda: _env_int("API_PORT", 8000))

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
