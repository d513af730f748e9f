"""Runtime state shared across CLI commands."""

from __future__ import annotations
from dataclasses import dataclass, field
from rich.console import Console
from instol_sdk.auth.manager import CredentialManager
from instol_sdk.auth.tokens import TokenStore
from instol_sdk.client import InstolSession
from instol_sdk.config import Settings
from instol_sdk.navigation import Navigator


@dataclass(slots=True)
class CLIContext:
    """Object stored on :class:`typer.Context` for command access."""

    settings: Settings
    console: Console
    navigator: Navigator = field(default_factory=Navigator)

    def token_store(self) -> TokenStore:
        """Return the credential store for the active profile."""
        return TokenStore(self.settings.tokens_dir, profile=self.settings.profile)

    def credentials(self) -> CredentialManager:
        """Return a credential manager without a network transport."""
        return CredentialManager(self.token_store(), navigator=self.navigator)

    def session(self) -> InstolSession:
        """Return a session; create it inside the event loop that uses it."""
        return InstolSession(self.settings, navigator=self.navigator)


__all__ = ["CLIContext"]
