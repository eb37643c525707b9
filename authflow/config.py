"""
Application Configuration.

Pydantic Settings model for the AuthFlow controller.
All configuration is loaded from environment variables and .env files.
Inject an AppConfig instance via dependency injection where needed.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import model_validator


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Identity service ---
    API_BASE_URL: str = ""
    ADMIN_PREFIX: str = "/admin"
    REQUEST_TIMEOUT_S: float = 30.0

    # --- Controller behaviour ---
    # False keeps the submitting flag raised after an inactive-account
    # redirect and after a failed registration, exactly like the web
    # admin panel.  True lowers it on every terminal branch.
    RESET_SUBMITTING_ON_ALL_BRANCHES: bool = False
    DEFAULT_LOCALE: str = "en"
    SUPER_ADMIN_ROLE_CODE: str = "strapi-super-admin"

    # --- Session store ---
    SESSION_FILE: str = ""  # Empty = remembered entries live in memory only

    # --- Logging ---
    LOG_FILE: str = "authflow.log"  # Empty = console only
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty.

        Pydantic silently falls back to defaults when ``.env`` is missing,
        so operators get a hint that requests will target a relative URL.
        """
        _log = logging.getLogger("authflow.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.API_BASE_URL:
            _log.warning(
                "API_BASE_URL is empty; requests will be sent to "
                "relative URLs and only succeed against a mounted transport."
            )

        return self

    @property
    def log_level(self) -> int:
        """Numeric ``logging`` level for ``LOG_LEVEL`` (INFO when unknown)."""
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO


# ---------------------------------------------------------------------------
# Module-level singleton factory
# ---------------------------------------------------------------------------

_config_instance: Optional[AppConfig] = None
_config_lock: threading.Lock = threading.Lock()


def get_config() -> AppConfig:
    """Return a cached ``AppConfig`` singleton.

    On first call, creates an ``AppConfig`` instance (reading from ``.env``).
    Subsequent calls return the same instance.  Uses a check-lock-check
    pattern to avoid the lock overhead on the fast path while remaining
    thread-safe during first initialisation.

    Prefer direct constructor injection of ``AppConfig``; this factory
    exists for the logger and the composition root.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = AppConfig()
    return _config_instance
