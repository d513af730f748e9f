"""Debounced subdomain availability probing.

Each keystroke replaces the candidate. A probe is only issued after a quiet
period with no further input, and every probe carries a :class:`ProbeTicket`
naming the candidate it was issued for. A result is applied only if its
ticket is still live and its candidate is still the current one, so a slow
answer for an abandoned string can never overwrite a newer state.
"""

from __future__ import annotations
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol
from instol_sdk.errors import (
    TransportFailureError,
    UnauthorizedError,
    ValidationRejectedError,
)
from instol_sdk.models import AvailabilityState, SubdomainCheck


logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.5
MIN_SUBDOMAIN_LENGTH = 3


class SubdomainChecker(Protocol):
    """Anything able to answer an availability question."""

    async def check_subdomain(self, subdomain: str) -> SubdomainCheck:
        """Return the server's verdict for ``subdomain``."""
        ...  # pragma: no cover


@dataclass(frozen=True, slots=True)
class Availability:
    """Availability state bound to the candidate it describes."""

    candidate: str = ""
    state: AvailabilityState = AvailabilityState.UNKNOWN
    message: str = ""


@dataclass(slots=True)
class ProbeTicket:
    """Tag identifying one scheduled probe."""

    generation: int
    candidate: str
    cancelled: bool = field(default=False)
    in_flight: bool = field(default=False)

    def cancel(self) -> None:
        """Mark the probe as superseded; its result will be discarded."""
        self.cancelled = True


class AvailabilityProber:
    """Turn a stream of candidate edits into at most one applied probe result."""

    def __init__(
        self,
        checker: SubdomainChecker,
        *,
        quiet_period: float = DEBOUNCE_SECONDS,
        min_length: int = MIN_SUBDOMAIN_LENGTH,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Create a prober issuing checks through ``checker``."""
        self._checker = checker
        self.quiet_period = quiet_period
        self.min_length = min_length
        self._sleep = sleep
        self.candidate = ""
        self.availability = Availability()
        self.checking = False
        self._generation = 0
        self._ticket: ProbeTicket | None = None
        self._tasks: dict[asyncio.Task[None], ProbeTicket] = {}
        self._unauthorized: UnauthorizedError | None = None

    @property
    def state(self) -> AvailabilityState:
        """Availability of the current candidate."""
        if self.availability.candidate != self.candidate:
            return AvailabilityState.UNKNOWN
        return self.availability.state

    @property
    def message(self) -> str:
        """Advisory message for the current candidate."""
        if self.availability.candidate != self.candidate:
            return ""
        return self.availability.message

    def set_candidate(self, value: str) -> None:
        """Record a new candidate and (re)schedule the debounced probe.

        Must be called from within a running event loop when ``value`` is long
        enough to be probed.
        """
        self.candidate = value
        self._supersede()
        self.availability = Availability(candidate=value)

        if len(value) < self.min_length:
            return

        self._generation += 1
        ticket = ProbeTicket(generation=self._generation, candidate=value)
        self._ticket = ticket
        task = asyncio.get_running_loop().create_task(self._probe(ticket))
        self._tasks[task] = ticket
        task.add_done_callback(self._forget)

    def _supersede(self) -> None:
        """Cancel the pending schedule and mark any in-flight probe stale."""
        for task, ticket in self._tasks.items():
            ticket.cancel()
            if not ticket.in_flight:
                task.cancel()
        self._ticket = None
        self.checking = False

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._tasks.pop(task, None)

    def _is_current(self, ticket: ProbeTicket) -> bool:
        return not ticket.cancelled and ticket.candidate == self.candidate

    async def _probe(self, ticket: ProbeTicket) -> None:
        await self._sleep(self.quiet_period)
        if not self._is_current(ticket):
            return

        ticket.in_flight = True
        self.checking = True
        logger.debug(
            "Probing subdomain %r (generation %s)", ticket.candidate, ticket.generation
        )
        try:
            result = await self._checker.check_subdomain(ticket.candidate)
        except UnauthorizedError as exc:
            self._unauthorized = exc
            return
        except (TransportFailureError, ValidationRejectedError) as exc:
            logger.debug("Availability probe failed: %s", exc)
            return
        finally:
            if self._ticket is ticket:
                self.checking = False

        if not self._is_current(ticket):
            logger.debug("Discarding stale availability for %r", ticket.candidate)
            return

        state = (
            AvailabilityState.AVAILABLE
            if result.available
            else AvailabilityState.UNAVAILABLE
        )
        self.availability = Availability(
            candidate=ticket.candidate, state=state, message=result.message
        )

    async def wait_idle(self) -> None:
        """Wait for scheduled and in-flight probes to settle.

        Re-raises :class:`UnauthorizedError` if a probe was rejected; the
        credential has already been cleared at that point.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._unauthorized is not None:
            exc, self._unauthorized = self._unauthorized, None
            raise exc

    async def aclose(self) -> None:
        """Cancel every outstanding probe."""
        tasks = list(self._tasks)
        for task, ticket in self._tasks.items():
            ticket.cancel()
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self.checking = False


__all__ = [
    "DEBOUNCE_SECONDS",
    "MIN_SUBDOMAIN_LENGTH",
    "Availability",
    "AvailabilityProber",
    "ProbeTicket",
    "SubdomainChecker",
]
