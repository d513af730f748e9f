"""Async client for the instol provisioning API."""

from __future__ import annotations
import logging
import urllib.parse
from typing import Any
import httpx
from pydantic import ValidationError
from instol_sdk.auth.manager import CredentialManager
from instol_sdk.errors import (
    TransportFailureError,
    UnauthorizedError,
    ValidationRejectedError,
)
from instol_sdk.models import (
    CreateInstanceRequest,
    Instance,
    InstanceList,
    SubdomainCheck,
    UserInfo,
)


logger = logging.getLogger(__name__)

USER_AGENT = "instol-cli/1.0"
UNAUTHORIZED_STATUSES = frozenset({401, 403})


def build_http_client(base_url: str, *, timeout: float = 30.0) -> httpx.AsyncClient:
    """Return the transport shared by the credential manager and API client."""
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    if isinstance(payload, dict):
        for key in ("error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class ProvisioningAPI:
    """Typed wrapper around the provisioning endpoints.

    Every request goes through :meth:`CredentialManager.attach`. A 401 or 403
    on any call clears the credential through
    :meth:`CredentialManager.handle_unauthorized` before
    :class:`UnauthorizedError` is raised.
    """

    def __init__(
        self, client: httpx.AsyncClient, credentials: CredentialManager
    ) -> None:
        """Bind the API to an HTTP transport and the credential owner."""
        self._client = client
        self.credentials = credentials

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        description: str,
        default_error: str,
    ) -> httpx.Response:
        request = self._client.build_request(method, path, json=json)
        self.credentials.attach(request)
        logger.debug("%s %s", method, path)
        try:
            response = await self._client.send(request)
        except httpx.HTTPError as exc:
            msg = f"Unable to reach the instol API while {description}"
            raise TransportFailureError(msg) from exc

        if response.status_code in UNAUTHORIZED_STATUSES:
            intent = self.credentials.handle_unauthorized()
            raise UnauthorizedError(
                status_code=response.status_code, navigation=intent
            )
        if response.is_error:
            logger.info(
                "Request rejected",
                extra={"path": path, "status_code": response.status_code},
            )
            raise ValidationRejectedError(
                _error_message(response, default_error),
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, description: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Received an unreadable response while {description}"
            raise TransportFailureError(msg) from exc

    async def check_subdomain(self, subdomain: str) -> SubdomainCheck:
        """Ask whether ``subdomain`` can be assigned to a new instance."""
        response = await self._request(
            "POST",
            "/api/instances/check-subdomain",
            json={"subdomain": subdomain},
            description="checking subdomain availability",
            default_error="Failed to check subdomain availability",
        )
        payload = self._json(response, "checking subdomain availability")
        try:
            return SubdomainCheck.model_validate(payload)
        except ValidationError as exc:
            msg = "Unexpected availability response"
            raise TransportFailureError(msg) from exc

    async def create_instance(self, subdomain: str, region: str) -> Instance | None:
        """Request a new instance; returns the record when the server sends one."""
        body = CreateInstanceRequest(subdomain=subdomain, region=region)
        response = await self._request(
            "POST",
            "/api/instances",
            json=body.model_dump(),
            description="creating the instance",
            default_error="Failed to create instance",
        )
        try:
            return Instance.model_validate(response.json())
        except (ValueError, ValidationError):
            logger.debug("Creation response did not include an instance record")
            return None

    async def list_instances(self) -> list[Instance]:
        """Return every instance owned by the session."""
        response = await self._request(
            "GET",
            "/api/instances",
            description="listing instances",
            default_error="Failed to load instances",
        )
        payload = self._json(response, "listing instances")
        if isinstance(payload, dict) and payload.get("instances") is None:
            return []
        try:
            return InstanceList.model_validate(payload).instances
        except ValidationError as exc:
            msg = "Unexpected instance listing response"
            raise TransportFailureError(msg) from exc

    async def get_instance(self, instance_id: str) -> Instance:
        """Return a single instance by identifier."""
        response = await self._request(
            "GET",
            f"/api/instances/{urllib.parse.quote(instance_id, safe='')}",
            description="loading the instance",
            default_error="Failed to load instance",
        )
        payload = self._json(response, "loading the instance")
        try:
            return Instance.model_validate(payload)
        except ValidationError as exc:
            msg = "Unexpected instance response"
            raise TransportFailureError(msg) from exc

    async def delete_instance(self, instance_id: str) -> None:
        """Delete an instance; the response body is ignored."""
        await self._request(
            "DELETE",
            f"/api/instances/{urllib.parse.quote(instance_id, safe='')}",
            description="deleting the instance",
            default_error="Failed to delete instance",
        )

    async def me(self) -> UserInfo:
        """Return the profile of the signed-in user."""
        response = await self._request(
            "GET",
            "/api/auth/me",
            description="loading the current user",
            default_error="Failed to load the current user",
        )
        payload = self._json(response, "loading the current user")
        if isinstance(payload, dict) and isinstance(payload.get("user"), dict):
            payload = payload["user"]
        try:
            return UserInfo.model_validate(payload)
        except ValidationError as exc:
            msg = "Unexpected user response"
            raise TransportFailureError(msg) from exc


__all__ = ["USER_AGENT", "ProvisioningAPI", "build_http_client"]
