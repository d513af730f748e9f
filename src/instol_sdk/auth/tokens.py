"""Durable storage for the bearer credential.

Exactly one persistence channel is used: a JSON file per profile under
``<config_dir>/tokens/`` holding the token under a fixed key. Any failure to
read is reported as "no credential" so callers fail safe to logged-out.
"""

from __future__ import annotations
import json
import logging
import os
from pathlib import Path


logger = logging.getLogger(__name__)

TOKEN_KEY = "jwt_token"


class TokenStoreError(OSError):
    """Raised when the credential cannot be written to disk."""


class TokenStore:
    """Read, write, and delete the credential file for one profile."""

    def __init__(self, directory: Path, *, profile: str) -> None:
        """Bind the store to ``directory`` and ``profile``."""
        self.directory = directory
        self.profile = profile

    @property
    def path(self) -> Path:
        """Location of the credential file."""
        return self.directory / f"{self.profile}.json"

    def load(self) -> str | None:
        """Return the stored token or ``None`` when absent or unreadable."""
        path = self.path
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError:
            logger.warning("Unable to read credential file %s", path)
            return None

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed credential file %s", path)
            return None

        if not isinstance(payload, dict):
            return None
        token = payload.get(TOKEN_KEY)
        if not isinstance(token, str) or not token:
            return None
        return token

    def save(self, token: str) -> None:
        """Persist ``token`` with owner-only permissions."""
        path = self.path
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({TOKEN_KEY: token}, handle)
            os.chmod(path, 0o600)
        except OSError as exc:
            raise TokenStoreError(f"Unable to store credential in {path}") from exc

    def clear(self) -> None:
        """Delete the credential file if it exists."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Unable to delete credential file %s", self.path)


__all__ = ["TOKEN_KEY", "TokenStore", "TokenStoreError"]
