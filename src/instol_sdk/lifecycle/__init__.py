"""Instance lifecycle flows: availability, creation, listing, deletion."""

from __future__ import annotations
from instol_sdk.lifecycle.availability import Availability, AvailabilityProber
from instol_sdk.lifecycle.controller import ResourceLifecycleController
from instol_sdk.lifecycle.creation import CreationForm
from instol_sdk.lifecycle.dashboard import DeleteConfirmation, InstanceDashboard


__all__ = [
    "Availability",
    "AvailabilityProber",
    "CreationForm",
    "DeleteConfirmation",
    "InstanceDashboard",
    "ResourceLifecycleController",
]
