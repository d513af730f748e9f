"""High level session object wiring the client components together."""

from __future__ import annotations
from types import TracebackType
import httpx
from instol_sdk.api import ProvisioningAPI, build_http_client
from instol_sdk.auth.manager import CredentialManager
from instol_sdk.auth.tokens import TokenStore
from instol_sdk.config import Settings
from instol_sdk.lifecycle.controller import ResourceLifecycleController
from instol_sdk.navigation import Navigator


class InstolSession:
    """Owns the HTTP transport, the credential, and the lifecycle controller.

    ``http_client`` may be supplied to reuse or mock the transport; the
    session only closes transports it created.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        navigator: Navigator | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Build every component from resolved ``settings``."""
        self.settings = settings
        self.navigator = navigator or Navigator()
        self._owns_http = http_client is None
        self.http = http_client or build_http_client(
            settings.api_url, timeout=settings.http_timeout
        )
        self.store = TokenStore(settings.tokens_dir, profile=settings.profile)
        self.credentials = CredentialManager(
            self.store, navigator=self.navigator, client=self.http
        )
        self.api = ProvisioningAPI(self.http, self.credentials)
        self.controller = ResourceLifecycleController(
            self.api, navigator=self.navigator, region=settings.region
        )

    async def aclose(self) -> None:
        """Close the transport if this session created it."""
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> InstolSession:
        """Enter the async context."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the transport on exit."""
        await self.aclose()


__all__ = ["InstolSession"]
