"""Instance listing, polling, and guarded deletion."""

from __future__ import annotations
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol
from instol_sdk.errors import (
    ConfirmationMismatchError,
    TransportFailureError,
    ValidationRejectedError,
)
from instol_sdk.models import Instance, InstanceHealth


logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_POLLS = 60


class InstanceDirectory(Protocol):
    """API surface used by the dashboard."""

    async def list_instances(self) -> list[Instance]:
        """Return the full instance set."""
        ...  # pragma: no cover

    async def delete_instance(self, instance_id: str) -> None:
        """Delete one instance."""
        ...  # pragma: no cover


@dataclass(slots=True)
class DeleteConfirmation:
    """Type-to-confirm context scoped to exactly one instance."""

    instance: Instance
    typed: str = ""

    @property
    def expected(self) -> str:
        """Text the operator has to type."""
        return self.instance.subdomain

    @property
    def matches(self) -> bool:
        """Exact, case-sensitive comparison with no trimming.

        An instance without a derivable subdomain never matches.
        """
        return bool(self.expected) and self.typed == self.expected


class InstanceDashboard:
    """Server-authoritative view of the session's instances."""

    def __init__(
        self,
        api: InstanceDirectory,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Bind the dashboard to the API."""
        self._api = api
        self._sleep = sleep
        self.instances: list[Instance] = []
        self.loading = False
        self.error: str | None = None
        self.confirmation: DeleteConfirmation | None = None

    def find(self, instance_id: str) -> Instance | None:
        """Return the listed instance with ``instance_id``."""
        for instance in self.instances:
            if instance.id == instance_id:
                return instance
        return None

    async def refresh(self) -> list[Instance]:
        """Replace the local instance set with the server's listing.

        Failures other than an unauthorised response keep the previous set
        and record :attr:`error`.
        """
        self.loading = True
        try:
            instances = await self._api.list_instances()
        except (ValidationRejectedError, TransportFailureError) as exc:
            logger.warning("Failed to fetch instances: %s", exc)
            self.error = str(exc)
            return self.instances
        finally:
            self.loading = False
        self.instances = instances
        self.error = None
        return self.instances

    async def watch(
        self,
        instance_id: str,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_polls: int = DEFAULT_MAX_POLLS,
    ) -> AsyncIterator[Instance | None]:
        """Poll the listing and yield each observation of ``instance_id``.

        Stops once the instance reports a healthy status, disappears from the
        listing, or ``max_polls`` refreshes have been made.
        """
        for attempt in range(max_polls):
            if attempt:
                await self._sleep(interval)
            await self.refresh()
            instance = self.find(instance_id)
            yield instance
            if instance is None or instance.health is InstanceHealth.HEALTHY:
                return

    def open_delete(self, instance: Instance) -> DeleteConfirmation:
        """Open the confirmation for ``instance``, replacing any other one."""
        self.confirmation = DeleteConfirmation(instance=instance)
        return self.confirmation

    def type_confirmation(self, text: str) -> None:
        """Record what the operator typed into the open confirmation."""
        if self.confirmation is not None:
            self.confirmation.typed = text

    @property
    def can_delete(self) -> bool:
        """Whether the destructive control is enabled."""
        return self.confirmation is not None and self.confirmation.matches

    def close_delete(self) -> None:
        """Dismiss the confirmation and clear the typed text."""
        self.confirmation = None

    async def confirm_delete(self) -> bool:
        """Delete the instance of the open confirmation.

        Returns ``True`` when the backend accepted the deletion. On failure
        the confirmation stays open so the operator can retry.
        """
        confirmation = self.confirmation
        if confirmation is None or not confirmation.matches:
            expected = confirmation.expected if confirmation else ""
            raise ConfirmationMismatchError(f"Type '{expected}' to confirm deletion.")

        instance_id = confirmation.instance.id
        try:
            await self._api.delete_instance(instance_id)
        except (ValidationRejectedError, TransportFailureError) as exc:
            logger.warning("Failed to delete instance %s: %s", instance_id, exc)
            self.error = str(exc)
            return False

        logger.info("Instance deleted", extra={"instance_id": instance_id})
        if self.confirmation is confirmation:
            self.close_delete()
        await self.refresh()
        return True


__all__ = [
    "DEFAULT_MAX_POLLS",
    "DEFAULT_POLL_INTERVAL",
    "DeleteConfirmation",
    "InstanceDashboard",
    "InstanceDirectory",
]
