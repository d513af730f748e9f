"""Client library and CLI for the instol.cloud provisioning service."""

from __future__ import annotations
from instol_sdk.api import ProvisioningAPI
from instol_sdk.auth import CredentialManager, TokenStore
from instol_sdk.client import InstolSession
from instol_sdk.config import Settings, resolve_settings
from instol_sdk.lifecycle import (
    AvailabilityProber,
    CreationForm,
    InstanceDashboard,
    ResourceLifecycleController,
)
from instol_sdk.models import AvailabilityState, Instance
from instol_sdk.navigation import NavigationIntent, Navigator, Route


__all__ = [
    "AvailabilityProber",
    "AvailabilityState",
    "CreationForm",
    "CredentialManager",
    "Instance",
    "InstanceDashboard",
    "InstolSession",
    "NavigationIntent",
    "Navigator",
    "ProvisioningAPI",
    "ResourceLifecycleController",
    "Route",
    "Settings",
    "TokenStore",
    "resolve_settings",
]
