"""Wire models and derived views for the provisioning API."""

from __future__ import annotations
from datetime import datetime
from enum import StrEnum
from pydantic import BaseModel, Field


HEALTHY_STATUS = "running"
DEFAULT_REGION = "us-central"
ENABLED_REGIONS = frozenset({DEFAULT_REGION})
KNOWN_REGIONS = (DEFAULT_REGION, "europe", "asia")


class AvailabilityState(StrEnum):
    """Three-valued subdomain availability as seen by the client."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class InstanceHealth(StrEnum):
    """Display classification of an opaque server status string."""

    HEALTHY = "healthy"
    PENDING = "pending"


def subdomain_from_url(url: str) -> str:
    """Return the left-most host label of ``url``.

    ``https://myapp.instol.cloud`` yields ``myapp``. The value is returned as
    is, without case folding, because it gates type-to-confirm deletion.
    """
    _, sep, rest = url.partition("://")
    host = rest if sep else url
    host = host.split("/", 1)[0]
    return host.split(".", 1)[0]


def classify_status(status: str) -> InstanceHealth:
    """Map a server status onto the healthy/pending display buckets."""
    if status == HEALTHY_STATUS:
        return InstanceHealth.HEALTHY
    return InstanceHealth.PENDING


class Instance(BaseModel):
    """A provisioned workflow-automation deployment."""

    id: str
    instance_url: str = ""
    status: str = ""
    created_at: datetime | None = None

    @property
    def subdomain(self) -> str:
        """Return the subdomain derived from the public URL."""
        return subdomain_from_url(self.instance_url)

    @property
    def host(self) -> str:
        """Return the public URL without its scheme."""
        _, sep, rest = self.instance_url.partition("://")
        return rest if sep else self.instance_url

    @property
    def health(self) -> InstanceHealth:
        """Return the display classification for :attr:`status`."""
        return classify_status(self.status)

    @property
    def created_display(self) -> str:
        """Return the creation date formatted for listings."""
        if self.created_at is None:
            return ""
        return self.created_at.date().isoformat()


class InstanceList(BaseModel):
    """Response body of ``GET /api/instances``."""

    instances: list[Instance] = Field(default_factory=list)


class SubdomainCheck(BaseModel):
    """Response body of ``POST /api/instances/check-subdomain``."""

    available: bool
    message: str = ""
    validation_error: bool = False


class CreateInstanceRequest(BaseModel):
    """Request body of ``POST /api/instances``."""

    subdomain: str
    region: str = DEFAULT_REGION


class UserInfo(BaseModel):
    """Response body of ``GET /api/auth/me``."""

    email: str = ""
    name: str = ""
    picture: str | None = None


__all__ = [
    "DEFAULT_REGION",
    "ENABLED_REGIONS",
    "HEALTHY_STATUS",
    "KNOWN_REGIONS",
    "AvailabilityState",
    "CreateInstanceRequest",
    "Instance",
    "InstanceHealth",
    "InstanceList",
    "SubdomainCheck",
    "UserInfo",
    "classify_status",
    "subdomain_from_url",
]
