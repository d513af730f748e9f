"""Ownership of the bearer credential.

:class:`CredentialManager` is the only place that reads or mutates the
credential. Everything else asks it for :meth:`~CredentialManager.current`
or lets it :meth:`~CredentialManager.attach` the header to a request.
"""

from __future__ import annotations
import logging
import urllib.parse
from collections.abc import Mapping, MutableMapping
import httpx
from instol_sdk.auth.tokens import TokenStore, TokenStoreError
from instol_sdk.errors import UnauthorizedError
from instol_sdk.navigation import NavigationIntent, Navigator, Route


logger = logging.getLogger(__name__)

LOGOUT_PATH = "/api/auth/logout"
AUTH_SCHEME = "Bearer"
MISSING_TOKEN_REASON = "no_token"
STORAGE_UNAVAILABLE_REASON = "storage_unavailable"
SESSION_EXPIRED_REASON = "session_expired"


def parse_callback(source: Mapping[str, str] | str) -> dict[str, str]:
    """Return the redirect parameters carried by ``source``.

    ``source`` is either a mapping of query parameters or a full redirect URL.
    For URLs, parameters in the fragment are merged over the query string.
    """
    if not isinstance(source, str):
        return {key: value for key, value in source.items() if value is not None}

    parts = urllib.parse.urlsplit(source.strip())
    params: dict[str, str] = {}
    for chunk in (parts.query, parts.fragment):
        for key, values in urllib.parse.parse_qs(chunk).items():
            if values:
                params[key] = values[0]
    return params


class CredentialManager:
    """Single source of truth for "is this client authorised, and with what"."""

    def __init__(
        self,
        store: TokenStore,
        *,
        navigator: Navigator | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Load the persisted credential once and keep it in memory.

        ``client`` is only used for the best-effort logout notification.
        """
        self._store = store
        self._client = client
        self.navigator = navigator or Navigator()
        self._token = store.load()

    def current(self) -> str | None:
        """Return the current credential without touching the network."""
        return self._token

    def is_authenticated(self) -> bool:
        """Return whether a credential is present."""
        return self.current() is not None

    def require_authenticated(self) -> None:
        """Guard protected views, redirecting to login when signed out."""
        if self.is_authenticated():
            return
        intent = self.navigator.go(NavigationIntent(Route.LOGIN))
        raise UnauthorizedError(
            "Not authenticated. Run 'instol auth login' first.", navigation=intent
        )

    def capture(self, source: Mapping[str, str] | str) -> NavigationIntent:
        """Consume an OAuth redirect and return where to go next."""
        params = parse_callback(source)
        error = params.get("error")
        if error:
            logger.info("Login callback reported an error", extra={"reason": error})
            return self.navigator.go(NavigationIntent(Route.LOGIN, reason=error))

        token = params.get("token")
        if not token:
            logger.info("Login callback carried neither token nor error")
            return self.navigator.go(
                NavigationIntent(Route.LOGIN, reason=MISSING_TOKEN_REASON)
            )

        try:
            self._store.save(token)
        except TokenStoreError:
            logger.warning("Credential could not be persisted; staying signed out")
            self._token = None
            return self.navigator.go(
                NavigationIntent(Route.LOGIN, reason=STORAGE_UNAVAILABLE_REASON)
            )

        self._token = token
        logger.info("Credential captured")
        return self.navigator.go(NavigationIntent(Route.DASHBOARD))

    def authorization_header(self) -> dict[str, str]:
        """Return the ``Authorization`` header for the current credential."""
        token = self.current()
        if token is None:
            return {}
        return {"Authorization": f"{AUTH_SCHEME} {token}"}

    def attach(
        self, request: httpx.Request | MutableMapping[str, str]
    ) -> httpx.Request | MutableMapping[str, str]:
        """Add the bearer header to ``request`` when a credential is present.

        Accepts an :class:`httpx.Request` or a mutable header mapping and
        returns the same object. Without a credential it passes through
        unchanged; the backend decides whether to reject the call.
        """
        headers = request.headers if isinstance(request, httpx.Request) else request
        headers.update(self.authorization_header())
        return request

    async def invalidate(self) -> NavigationIntent:
        """Log out: notify the backend, clear the credential, go to login.

        The network call is fire-and-forget. Its failure never prevents the
        local credential from being cleared. Safe to call repeatedly.
        """
        try:
            await self._notify_logout()
        finally:
            intent = self._clear(NavigationIntent(Route.LOGIN))
        return intent

    async def _notify_logout(self) -> None:
        if self._token is None or self._client is None:
            return
        try:
            request = self._client.build_request("POST", LOGOUT_PATH)
            self.attach(request)
            response = await self._client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL, RuntimeError) as exc:
            logger.warning("Logout notification failed: %s", exc)
            return
        if response.is_error:
            logger.warning(
                "Logout notification rejected with status %s", response.status_code
            )

    def handle_unauthorized(self) -> NavigationIntent:
        """Clear a credential the backend has rejected and go to login."""
        logger.info("Credential rejected by the backend")
        return self._clear(NavigationIntent(Route.LOGIN, reason=SESSION_EXPIRED_REASON))

    def _clear(self, intent: NavigationIntent) -> NavigationIntent:
        self._token = None
        self._store.clear()
        return self.navigator.go(intent)


__all__ = [
    "AUTH_SCHEME",
    "LOGOUT_PATH",
    "MISSING_TOKEN_REASON",
    "SESSION_EXPIRED_REASON",
    "STORAGE_UNAVAILABLE_REASON",
    "CredentialManager",
    "parse_callback",
]
