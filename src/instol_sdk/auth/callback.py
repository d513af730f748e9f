"""Browser based login through a loopback redirect receiver."""

from __future__ import annotations
import http.server
import logging
import socketserver
import time
import urllib.parse
import webbrowser
from typing import Any, ClassVar
from rich.console import Console
from instol_sdk.auth.manager import (
    MISSING_TOKEN_REASON,
    STORAGE_UNAVAILABLE_REASON,
    CredentialManager,
)
from instol_sdk.errors import InstolError, MissingCredentialError, OAuthCallbackError
from instol_sdk.navigation import NavigationIntent, Route


logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/google"
CALLBACK_PATH = "/callback"
LOGIN_TIMEOUT_SECONDS = 300
_POLL_SECONDS = 1.0

_PAGE = (
    "<!doctype html><html><head><title>instol</title></head>"
    "<body style='font-family:sans-serif;text-align:center;margin-top:4em'>"
    "<h2>{title}</h2><p>{detail}</p></body></html>"
)


class _CallbackHandler(http.server.BaseHTTPRequestHandler):
    """Receive the redirect carrying ``token`` or ``error``."""

    params: ClassVar[dict[str, str] | None] = None

    def do_GET(self) -> None:  # noqa: N802 - required by BaseHTTPRequestHandler
        """Record the redirect parameters and answer with a small page."""
        parsed = urllib.parse.urlsplit(self.path)
        if parsed.path != CALLBACK_PATH:
            self._respond(404, "Not found", "This address only accepts logins.")
            return

        query = {
            key: values[0]
            for key, values in urllib.parse.parse_qs(parsed.query).items()
            if values
        }
        if query.get("error"):
            type(self).params = query
            self._respond(
                200, "Authentication failed", f"Reason: {query['error']}."
            )
            return
        if query.get("token"):
            type(self).params = query
            self._respond(
                200,
                "Authentication successful",
                "You can close this window and return to the terminal.",
            )
            return

        type(self).params = query
        self._respond(200, "Invalid callback", "No token was received.")

    def _respond(self, status: int, title: str, detail: str) -> None:
        body = _PAGE.format(title=title, detail=detail).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        """Route request logs to the module logger at debug level."""
        logger.debug("callback server: " + format, *args)


def build_login_url(api_url: str, redirect_uri: str) -> str:
    """Return the URL that starts the provider login for ``redirect_uri``."""
    query = urllib.parse.urlencode({"redirect_uri": redirect_uri})
    return f"{api_url.rstrip('/')}{LOGIN_PATH}?{query}"


def raise_for_login_intent(intent: NavigationIntent) -> NavigationIntent:
    """Turn a login-bound intent produced by a capture into an exception."""
    if intent.route is not Route.LOGIN:
        return intent
    if intent.reason == MISSING_TOKEN_REASON:
        raise MissingCredentialError("Login callback did not include a token.")
    if intent.reason == STORAGE_UNAVAILABLE_REASON:
        raise InstolError("Signed in, but the credential could not be saved.")
    raise OAuthCallbackError(intent.reason or "unknown_error")


def start_browser_login(
    manager: CredentialManager,
    *,
    api_url: str,
    console: Console,
    port: int,
    no_browser: bool = False,
    timeout: float = LOGIN_TIMEOUT_SECONDS,
) -> NavigationIntent:
    """Run the redirect login and hand the result to ``manager.capture``."""
    redirect_uri = f"http://localhost:{port}{CALLBACK_PATH}"
    login_url = build_login_url(api_url, redirect_uri)
    _CallbackHandler.params = None

    with socketserver.TCPServer(("localhost", port), _CallbackHandler) as server:
        server.timeout = _POLL_SECONDS
        if no_browser:
            console.print("Open this URL in your browser to sign in:")
            console.print(f"[cyan]{login_url}[/cyan]")
        else:
            console.print("Opening your browser to sign in...")
            console.print(f"If nothing happens, visit [cyan]{login_url}[/cyan]")
            webbrowser.open(login_url)

        deadline = time.time() + timeout
        while _CallbackHandler.params is None and time.time() < deadline:
            server.handle_request()

    params = _CallbackHandler.params
    _CallbackHandler.params = None
    if params is None:
        raise InstolError("Authentication timed out. Please try again.")

    return raise_for_login_intent(manager.capture(params))


__all__ = [
    "CALLBACK_PATH",
    "LOGIN_PATH",
    "LOGIN_TIMEOUT_SECONDS",
    "build_login_url",
    "raise_for_login_intent",
    "start_browser_login",
]
