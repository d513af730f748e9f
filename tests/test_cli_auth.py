"""Authentication command tests."""

from __future__ import annotations
from typing import Any
import httpx
import pytest
import respx
from typer.testing import CliRunner
import instol_sdk.cli.auth as auth_module
from instol_sdk.auth.tokens import TokenStore
from instol_sdk.cli import app
from instol_sdk.errors import OAuthCallbackError
from instol_sdk.navigation import NavigationIntent, Route


def test_status_without_token(runner: CliRunner, env: dict[str, str]) -> None:
    result = runner.invoke(app, ["auth", "status"], env=env)
    assert result.exit_code == 0
    assert "Not authenticated" in result.output


def test_status_with_token_shows_account(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    store.save("jwt-1234567890")
    with respx.mock(base_url="http://api.test") as router:
        router.get("/api/auth/me").mock(
            return_value=httpx.Response(
                200, json={"user": {"email": "ada@example.com", "name": "Ada"}}
            )
        )
        result = runner.invoke(app, ["auth", "status"], env=env)

    assert result.exit_code == 0
    assert "jwt-1234..." in result.output
    assert "jwt-1234567890" not in result.output
    assert "ada@example.com" in result.output
    assert "http://api.test" in result.output


def test_status_with_rejected_token_signs_out(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    store.save("jwt-expired")
    with respx.mock(base_url="http://api.test") as router:
        router.get("/api/auth/me").mock(return_value=httpx.Response(401))
        result = runner.invoke(app, ["auth", "status"], env=env)

    assert result.exit_code == 1
    assert "Session expired" in result.output
    assert store.load() is None


def test_status_tolerates_unreachable_backend(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    store.save("jwt-1234567890")
    with respx.mock(base_url="http://api.test") as router:
        router.get("/api/auth/me").mock(side_effect=httpx.ConnectError("offline"))
        result = runner.invoke(app, ["auth", "status"], env=env)

    assert result.exit_code == 0
    assert "Could not load account details" in result.output
    assert store.load() == "jwt-1234567890"


def test_callback_command_stores_token(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    result = runner.invoke(
        app,
        ["auth", "callback", "http://localhost:8765/callback?token=jwt-from-url"],
        env=env,
    )

    assert result.exit_code == 0
    assert "Logged in" in result.output
    assert store.load() == "jwt-from-url"


def test_callback_command_reports_provider_error(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    result = runner.invoke(
        app,
        ["auth", "callback", "http://localhost:8765/callback?error=access_denied"],
        env=env,
    )

    assert result.exit_code == 1
    assert "OAuth error: access_denied" in result.output
    assert store.load() is None


def test_login_uses_configured_callback_port(
    runner: CliRunner, env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    calls: list[dict[str, Any]] = []

    def fake_login(manager: Any, **kwargs: Any) -> NavigationIntent:
        calls.append(kwargs)
        return NavigationIntent(Route.DASHBOARD)

    monkeypatch.setattr(auth_module, "start_browser_login", fake_login)

    result = runner.invoke(
        app,
        ["auth", "login", "--no-browser"],
        env={**env, "INSTOL_CALLBACK_PORT": "9123"},
    )

    assert result.exit_code == 0
    assert "Logged in" in result.output
    assert calls[0]["port"] == 9123
    assert calls[0]["no_browser"] is True
    assert calls[0]["api_url"] == "http://api.test"


def test_login_port_option_overrides_settings(
    runner: CliRunner, env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    ports: list[int] = []

    def fake_login(manager: Any, **kwargs: Any) -> NavigationIntent:
        ports.append(kwargs["port"])
        return NavigationIntent(Route.DASHBOARD)

    monkeypatch.setattr(auth_module, "start_browser_login", fake_login)

    result = runner.invoke(app, ["auth", "login", "--port", "9999"], env=env)

    assert result.exit_code == 0
    assert ports == [9999]


def test_login_failure_exits_non_zero(
    runner: CliRunner, env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_login(*_: Any, **__: Any) -> NavigationIntent:
        raise OAuthCallbackError("access_denied")

    monkeypatch.setattr(auth_module, "start_browser_login", fake_login)

    result = runner.invoke(app, ["auth", "login"], env=env)

    assert result.exit_code == 1
    assert "OAuth error: access_denied" in result.output


def test_login_port_in_use(
    runner: CliRunner, env: dict[str, str], monkeypatch: pytest.MonkeyPatch
) -> None:
    def fake_login(*_: Any, **__: Any) -> NavigationIntent:
        raise OSError("Address already in use")

    monkeypatch.setattr(auth_module, "start_browser_login", fake_login)

    result = runner.invoke(app, ["auth", "login"], env=env)

    assert result.exit_code == 1
    assert "Address already in use" in result.output


def test_logout_notifies_backend_and_clears_token(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    store.save("jwt-123")
    with respx.mock(base_url="http://api.test", assert_all_called=True) as router:
        route = router.post("/api/auth/logout").mock(
            return_value=httpx.Response(200, json={"success": True})
        )
        result = runner.invoke(app, ["auth", "logout"], env=env)

    assert result.exit_code == 0
    assert "Logged out" in result.output
    assert route.calls[0].request.headers["Authorization"] == "Bearer jwt-123"
    assert store.load() is None


def test_logout_offline_still_clears_token(
    runner: CliRunner, env: dict[str, str], store: TokenStore
) -> None:
    store.save("jwt-123")
    with respx.mock(base_url="http://api.test") as router:
        router.post("/api/auth/logout").mock(side_effect=httpx.ConnectError("offline"))
        result = runner.invoke(app, ["auth", "logout"], env=env)

    assert result.exit_code == 0
    assert store.load() is None


def test_logout_without_token(runner: CliRunner, env: dict[str, str]) -> None:
    with respx.mock(base_url="http://api.test") as router:
        result = runner.invoke(app, ["auth", "logout"], env=env)
    assert not router.calls
    assert result.exit_code == 0
    assert "Logged out" in result.output


def test_unknown_profile_is_a_usage_error(
    runner: CliRunner, env: dict[str, str]
) -> None:
    result = runner.invoke(app, ["--profile", "missing", "auth", "status"], env=env)
    assert result.exit_code == 2
    assert "missing" in result.output
