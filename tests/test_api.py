"""Provisioning API client tests."""

from __future__ import annotations
import json
from collections.abc import Awaitable, Callable
from typing import Any
import httpx
import pytest
import respx
from instol_sdk.api import ProvisioningAPI, build_http_client
from instol_sdk.auth.manager import SESSION_EXPIRED_REASON, CredentialManager
from instol_sdk.auth.tokens import TokenStore
from instol_sdk.errors import (
    TransportFailureError,
    UnauthorizedError,
    ValidationRejectedError,
)
from instol_sdk.navigation import NavigationIntent, Navigator, Route


BASE = "http://api.test"


@pytest.fixture()
def signed_in(store: TokenStore, navigator: Navigator) -> CredentialManager:
    store.save("jwt-123")
    return CredentialManager(store, navigator=navigator)


@pytest.mark.asyncio
async def test_check_subdomain_sends_candidate(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock(assert_all_called=True) as router:
            route = router.post(f"{BASE}/api/instances/check-subdomain").mock(
                return_value=httpx.Response(
                    200,
                    json={
                        "available": False,
                        "message": "This subdomain is already taken",
                    },
                )
            )
            result = await api.check_subdomain("myapp")

    request = route.calls[0].request
    assert json.loads(request.content) == {"subdomain": "myapp"}
    assert request.headers["Authorization"] == "Bearer jwt-123"
    assert result.available is False
    assert result.message == "This subdomain is already taken"


@pytest.mark.asyncio
async def test_create_instance_posts_subdomain_and_region(
    signed_in: CredentialManager,
) -> None:
    record = {
        "id": "inst-1",
        "instance_url": "https://myapp.instol.cloud",
        "status": "provisioning",
        "created_at": "2025-01-02T03:04:05Z",
    }
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock(assert_all_called=True) as router:
            route = router.post(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(201, json=record)
            )
            instance = await api.create_instance("myapp", "us-central")

    assert json.loads(route.calls[0].request.content) == {
        "subdomain": "myapp",
        "region": "us-central",
    }
    assert instance is not None
    assert instance.id == "inst-1"
    assert instance.subdomain == "myapp"


@pytest.mark.asyncio
async def test_create_instance_tolerates_unstructured_success(
    signed_in: CredentialManager,
) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.post(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(202, text="accepted")
            )
            assert await api.create_instance("myapp", "us-central") is None


@pytest.mark.asyncio
async def test_create_instance_surfaces_server_error_verbatim(
    signed_in: CredentialManager,
) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.post(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(
                    400, json={"error": "You already have an active instance"}
                )
            )
            with pytest.raises(ValidationRejectedError) as excinfo:
                await api.create_instance("myapp", "us-central")

    assert str(excinfo.value) == "You already have an active instance"
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_create_instance_generic_error_without_message(
    signed_in: CredentialManager,
) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.post(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(500, text="boom")
            )
            with pytest.raises(
                ValidationRejectedError, match="Failed to create instance"
            ):
                await api.create_instance("myapp", "us-central")


@pytest.mark.asyncio
async def test_list_instances_parses_payload(signed_in: CredentialManager) -> None:
    payload = {
        "instances": [
            {
                "id": "a",
                "instance_url": "https://alpha.instol.cloud",
                "status": "running",
                "created_at": "2025-01-02T03:04:05Z",
            },
            {"id": "b", "instance_url": "https://beta.instol.cloud", "status": "x"},
        ]
    }
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.get(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(200, json=payload)
            )
            instances = await api.list_instances()

    assert [item.id for item in instances] == ["a", "b"]
    assert instances[0].created_display == "2025-01-02"


@pytest.mark.asyncio
async def test_list_instances_null_list_is_empty(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.get(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(200, json={"instances": None})
            )
            assert await api.list_instances() == []


@pytest.mark.asyncio
async def test_list_instances_unreadable_body(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.get(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(200, text="<html>")
            )
            with pytest.raises(TransportFailureError):
                await api.list_instances()


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.get(f"{BASE}/api/instances").mock(
                side_effect=httpx.ConnectError("offline")
            )
            with pytest.raises(TransportFailureError, match="listing instances"):
                await api.list_instances()

    assert signed_in.current() == "jwt-123"


@pytest.mark.asyncio
async def test_delete_instance_quotes_identifier(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock(assert_all_called=True) as router:
            route = router.delete(f"{BASE}/api/instances/a%2Fb").mock(
                return_value=httpx.Response(204)
            )
            await api.delete_instance("a/b")

    assert route.called


@pytest.mark.asyncio
async def test_me_unwraps_user_envelope(signed_in: CredentialManager) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.get(f"{BASE}/api/auth/me").mock(
                return_value=httpx.Response(
                    200, json={"user": {"email": "ada@example.com", "name": "Ada"}}
                )
            )
            user = await api.me()

    assert user.email == "ada@example.com"
    assert user.name == "Ada"


_PROTECTED_CALLS: list[
    tuple[str, str, str, Callable[[ProvisioningAPI], Awaitable[Any]]]
] = [
    (
        "check",
        "POST",
        "/api/instances/check-subdomain",
        lambda a: a.check_subdomain("abc"),
    ),
    (
        "create",
        "POST",
        "/api/instances",
        lambda a: a.create_instance("abc", "us-central"),
    ),
    ("list", "GET", "/api/instances", lambda a: a.list_instances()),
    ("get", "GET", "/api/instances/x1", lambda a: a.get_instance("x1")),
    ("delete", "DELETE", "/api/instances/x1", lambda a: a.delete_instance("x1")),
    ("me", "GET", "/api/auth/me", lambda a: a.me()),
]


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.parametrize(
    ("name", "method", "path", "call"),
    _PROTECTED_CALLS,
    ids=[entry[0] for entry in _PROTECTED_CALLS],
)
async def test_unauthorized_response_clears_credential(
    signed_in: CredentialManager,
    store: TokenStore,
    navigator: Navigator,
    status: int,
    name: str,
    method: str,
    path: str,
    call: Callable[[ProvisioningAPI], Awaitable[Any]],
) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, signed_in)
        with respx.mock() as router:
            router.route(method=method, url=f"{BASE}{path}").mock(
                return_value=httpx.Response(status, json={"error": "unauthorized"})
            )
            with pytest.raises(UnauthorizedError) as excinfo:
                await call(api)

    expected = NavigationIntent(Route.LOGIN, reason=SESSION_EXPIRED_REASON)
    assert excinfo.value.status_code == status
    assert excinfo.value.navigation == expected
    assert navigator.current == expected
    assert signed_in.current() is None
    assert store.load() is None


@pytest.mark.asyncio
async def test_requests_without_credential_are_sent_unmodified(
    manager: CredentialManager,
) -> None:
    async with build_http_client(BASE) as client:
        api = ProvisioningAPI(client, manager)
        with respx.mock() as router:
            route = router.get(f"{BASE}/api/instances").mock(
                return_value=httpx.Response(200, json={"instances": []})
            )
            await api.list_instances()

    assert "Authorization" not in route.calls[0].request.headers
