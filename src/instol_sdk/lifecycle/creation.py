"""Instance creation form state."""

from __future__ import annotations
import logging
from typing import Protocol
from instol_sdk.errors import TransportFailureError, ValidationRejectedError
from instol_sdk.lifecycle.availability import AvailabilityProber, SubdomainChecker
from instol_sdk.models import (
    DEFAULT_REGION,
    ENABLED_REGIONS,
    AvailabilityState,
    Instance,
)
from instol_sdk.navigation import NavigationIntent, Navigator, Route


logger = logging.getLogger(__name__)

CREATE_FAILED_MESSAGE = "Failed to create instance"
CREATE_RETRY_MESSAGE = "Failed to create instance. Please try again."
EMPTY_SUBDOMAIN_MESSAGE = "Choose a subdomain for the instance."
UNAVAILABLE_MESSAGE = "This subdomain is not available."


class InstanceCreator(SubdomainChecker, Protocol):
    """API surface used by the creation form."""

    async def create_instance(self, subdomain: str, region: str) -> Instance | None:
        """Submit the creation request."""
        ...  # pragma: no cover


class CreationForm:
    """Subdomain/region form with exactly-once submission."""

    def __init__(
        self,
        api: InstanceCreator,
        navigator: Navigator,
        *,
        region: str = DEFAULT_REGION,
        prober: AvailabilityProber | None = None,
    ) -> None:
        """Bind the form to the API and the navigator."""
        self._api = api
        self._navigator = navigator
        self.prober = prober or AvailabilityProber(api)
        self.subdomain = ""
        self.region = region
        self.pending = False
        self.error: str | None = None
        self.created: Instance | None = None

    def set_subdomain(self, value: str) -> None:
        """Update the candidate; input is lower-cased like the web form."""
        self.subdomain = value.lower()
        self.prober.set_candidate(self.subdomain)

    @property
    def availability(self) -> AvailabilityState:
        """Availability of the current subdomain."""
        return self.prober.state

    @property
    def region_enabled(self) -> bool:
        """Whether the selected region is known to be open for deployments.

        Advisory only; the server re-validates the region on submission.
        """
        return self.region in ENABLED_REGIONS

    @property
    def can_submit(self) -> bool:
        """Whether the submit control should be enabled."""
        return (
            bool(self.subdomain)
            and self.availability is not AvailabilityState.UNAVAILABLE
            and not self.pending
        )

    async def submit(self) -> NavigationIntent | None:
        """Submit the form once and return the resulting navigation intent.

        Returns ``None`` when the submission is ignored (already pending),
        rejected locally, or declined by the server; :attr:`error` then holds
        the message to show.
        """
        if self.pending:
            logger.debug("Ignoring duplicate submission for %r", self.subdomain)
            return None
        if not self.subdomain:
            self.error = EMPTY_SUBDOMAIN_MESSAGE
            return None
        if self.availability is AvailabilityState.UNAVAILABLE:
            self.error = self.prober.message or UNAVAILABLE_MESSAGE
            return None

        self.pending = True
        self.error = None
        try:
            self.created = await self._api.create_instance(self.subdomain, self.region)
        except ValidationRejectedError as exc:
            self.error = str(exc) or CREATE_FAILED_MESSAGE
            return None
        except TransportFailureError:
            self.error = CREATE_RETRY_MESSAGE
            return None
        finally:
            self.pending = False

        logger.info(
            "Instance creation accepted",
            extra={"subdomain": self.subdomain, "region": self.region},
        )
        return self._navigator.go(NavigationIntent(Route.DASHBOARD))

    async def aclose(self) -> None:
        """Cancel outstanding availability probes."""
        await self.prober.aclose()


__all__ = [
    "CREATE_FAILED_MESSAGE",
    "CREATE_RETRY_MESSAGE",
    "CreationForm",
    "InstanceCreator",
]
