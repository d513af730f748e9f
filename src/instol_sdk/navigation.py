"""Navigation intents emitted by the client core.

The core never navigates on its own. Credential and lifecycle components emit
a :class:`NavigationIntent` to a :class:`Navigator`, and the presentation layer
(the CLI here) decides what to do with it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import StrEnum


logger = logging.getLogger(__name__)


class Route(StrEnum):
    """Destinations the presentation layer knows how to render."""

    LOGIN = "login"
    DASHBOARD = "dashboard"
    CREATE_INSTANCE = "create-instance"


@dataclass(frozen=True, slots=True)
class NavigationIntent:
    """Request to move the user to ``route``, optionally with a reason."""

    route: Route
    reason: str | None = None

    @property
    def path(self) -> str:
        """Return the route rendered as a path with its query string."""
        if self.reason:
            return f"/{self.route}?error={self.reason}"
        return f"/{self.route}"


@dataclass(slots=True)
class Navigator:
    """Records navigation intents for the presentation layer to act on."""

    history: list[NavigationIntent] = field(default_factory=list)

    @property
    def current(self) -> NavigationIntent | None:
        """Return the most recent intent, if any."""
        return self.history[-1] if self.history else None

    def go(self, intent: NavigationIntent) -> NavigationIntent:
        """Record ``intent`` as the current destination."""
        logger.debug("Navigating to %s", intent.path)
        self.history.append(intent)
        return intent


__all__ = ["NavigationIntent", "Navigator", "Route"]
