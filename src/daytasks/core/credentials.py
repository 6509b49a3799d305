# src/daytasks/core/credentials.py

from __future__ import annotations

import contextlib
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class TokenCredentials:
    """
    Bearer token cached in memory and optionally on disk.

    The token is issued by the authentication side (out of scope here); this
    class only hands it to the task repo and throws it away when the server
    rejects it, so the user is forced to log in again.
    """

    def __init__(self, token: str | None = None, *, token_path: str | Path | None = None) -> None:
        self._token = (token or "").strip() or None
        self._path = Path(token_path) if token_path else None

    def token(self) -> str | None:
        if self._token is None and self._path is not None and self._path.exists():
            try:
                self._token = self._path.read_text("utf-8").strip() or None
            except OSError:
                logger.exception("Failed to read token file %s", self._path)
        return self._token

    def save(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("token is empty")
        self._token = token
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(token, "utf-8")
        with contextlib.suppress(OSError):
            # owner-only
            os.chmod(self._path, 0o600)

    def discard(self) -> None:
        self._token = None
        if self._path is not None:
            with contextlib.suppress(FileNotFoundError):
                self._path.unlink()
        logger.warning("Cached credentials discarded; re-authentication required")
