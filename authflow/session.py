"""
Session Store.

Provides an injectable ``SessionStore`` holding the authenticated admin
session: the JWT, the user record, and a few generic flags (e.g.
``GUIDED_TOUR_SKIPPED``).

Entries written with ``remember=True`` go to the persistent tier (kept
across restarts when a session file is configured); everything else
lives in the volatile tier and dies with the process.  Reads check the
persistent tier first.

Usage::

    from authflow.session import SessionStore

    store = SessionStore(logger=get_logger("session"))
    store.set_token("jwt...", remember=True)
    store.get_token()
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from authflow.logger import StructuredLogger
from authflow.models.user import AuthUser

TOKEN_KEY: str = "jwtToken"
USER_INFO_KEY: str = "userInfo"
GUIDED_TOUR_SKIPPED_KEY: str = "GUIDED_TOUR_SKIPPED"


class StoredEntries(BaseModel):
    """Validated on-disk layout of the persistent tier."""

    entries: dict[str, object] = Field(default_factory=dict)


class SessionStore:
    """Two-tier key/value holder for the current admin session.

    Parameters
    ----------
    logger:
        Structured logger for session events.
    session_file:
        Optional JSON file backing the persistent tier.  ``None`` keeps
        remembered entries in memory.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        session_file: Optional[Path] = None,
    ) -> None:
        self._lock: threading.RLock = threading.RLock()
        self._logger: StructuredLogger = logger
        self._session_file: Optional[Path] = session_file
        self._persistent: dict[str, object] = {}
        self._volatile: dict[str, object] = {}
        self._load()

    # ------------------------------------------------------------------
    # Generic flags
    # ------------------------------------------------------------------

    def set(self, value: object, key: str, remember: bool) -> None:
        """Store *value* under *key* in the tier selected by *remember*.

        ``None`` removes the key from both tiers.
        """
        with self._lock:
            self._persistent.pop(key, None)
            self._volatile.pop(key, None)
            if value is not None:
                if remember:
                    self._persistent[key] = value
                else:
                    self._volatile[key] = value
            self._persist()

    def get(self, key: str) -> object:
        """Return the value for *key*, persistent tier first, else ``None``."""
        with self._lock:
            if key in self._persistent:
                return self._persistent[key]
            return self._volatile.get(key)

    # ------------------------------------------------------------------
    # Token & user info
    # ------------------------------------------------------------------

    def set_token(self, token: str, remember: bool) -> None:
        self.set(token, TOKEN_KEY, remember)

    def get_token(self) -> Optional[str]:
        token = self.get(TOKEN_KEY)
        return token if isinstance(token, str) and token else None

    def set_user_info(self, user: AuthUser, remember: bool) -> None:
        self.set(user.model_dump(by_alias=True, exclude_none=True), USER_INFO_KEY, remember)

    def get_user_info(self) -> Optional[AuthUser]:
        raw = self.get(USER_INFO_KEY)
        if not isinstance(raw, dict):
            return None
        return AuthUser.model_validate(raw)

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a token is present in either tier."""
        return self.get_token() is not None

    def clear(self) -> None:
        """Remove everything from both tiers, ending the session."""
        with self._lock:
            self._persistent.clear()
            self._volatile.clear()
            self._persist()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self._session_file is None or not self._session_file.is_file():
            return
        try:
            stored = StoredEntries.model_validate_json(
                self._session_file.read_text(encoding="utf-8"),
            )
        except (OSError, ValidationError) as exc:
            self._logger.warning(
                "Could not load session file '%s': %s. Starting empty.",
                self._session_file, exc,
            )
            return
        self._persistent = dict(stored.entries)

    def _persist(self) -> None:
        """Write the persistent tier.  Caller MUST hold ``self._lock``."""
        if self._session_file is None:
            return
        try:
            self._session_file.parent.mkdir(parents=True, exist_ok=True)
            self._session_file.write_text(
                StoredEntries(entries=self._persistent).model_dump_json(),
                encoding="utf-8",
            )
        except OSError as exc:
            self._logger.warning(
                "Could not persist session file '%s': %s",
                self._session_file, exc,
            )
