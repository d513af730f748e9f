"""Shared fixtures for the instol SDK tests."""

from __future__ import annotations
import sys
from pathlib import Path
import pytest
from typer.testing import CliRunner


ROOT = Path(__file__).resolve().parents[1]
SDK_SRC = ROOT / "src"
for entry in (ROOT, SDK_SRC):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from instol_sdk.auth.manager import CredentialManager  # noqa: E402
from instol_sdk.auth.tokens import TokenStore  # noqa: E402
from instol_sdk.navigation import Navigator  # noqa: E402
from tests.fakes import FakeProvisioningAPI  # noqa: E402


@pytest.fixture()
def fake_api() -> FakeProvisioningAPI:
    return FakeProvisioningAPI()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    config = tmp_path / "config"
    config.mkdir()
    monkeypatch.setenv("INSTOL_CONFIG_DIR", str(config))
    return config


@pytest.fixture()
def env(config_dir: Path) -> dict[str, str]:
    return {
        "INSTOL_API_URL": "http://api.test",
        "INSTOL_CONFIG_DIR": str(config_dir),
        "NO_COLOR": "1",
    }


@pytest.fixture()
def store(config_dir: Path) -> TokenStore:
    return TokenStore(config_dir / "tokens", profile="default")


@pytest.fixture()
def navigator() -> Navigator:
    return Navigator()


@pytest.fixture()
def manager(store: TokenStore, navigator: Navigator) -> CredentialManager:
    return CredentialManager(store, navigator=navigator)
