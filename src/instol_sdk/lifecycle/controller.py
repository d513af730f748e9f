"""Entry point tying the lifecycle flows to one API client."""

from __future__ import annotations
from instol_sdk.api import ProvisioningAPI
from instol_sdk.lifecycle.creation import CreationForm
from instol_sdk.lifecycle.dashboard import InstanceDashboard
from instol_sdk.models import DEFAULT_REGION
from instol_sdk.navigation import NavigationIntent, Navigator, Route


class ResourceLifecycleController:
    """Routes every instance operation through the credential-aware API."""

    def __init__(
        self,
        api: ProvisioningAPI,
        *,
        navigator: Navigator | None = None,
        region: str = DEFAULT_REGION,
    ) -> None:
        """Create the controller and its dashboard."""
        self.api = api
        self.navigator = navigator or api.credentials.navigator
        self.default_region = region
        self.dashboard = InstanceDashboard(api)

    def require_authenticated(self) -> None:
        """Run the synchronous route guard before protected views."""
        self.api.credentials.require_authenticated()

    def creation_form(self, *, region: str | None = None) -> CreationForm:
        """Open a fresh creation form and move to the creation view."""
        form = CreationForm(
            self.api, self.navigator, region=region or self.default_region
        )
        self.navigator.go(NavigationIntent(Route.CREATE_INSTANCE))
        return form


__all__ = ["ResourceLifecycleController"]
