from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "src"

sys.path.insert(0, str(SDK_SRC))

from faranux_client_sdk.auth_store import AuthStore  # noqa: E402
from faranux_client_sdk.config import ClientConfig  # noqa: E402
from faranux_client_sdk.http_client import HttpClient  # noqa: E402
from faranux_client_sdk.models import UserResponse  # noqa: E402
from faranux_client_sdk.session import ApiSession  # noqa: E402

BASE_URL = "https://api.example.com/index.php"


@pytest.fixture()
def config() -> ClientConfig:
    return ClientConfig(env_name="test", api_base_url=BASE_URL)


@pytest.fixture()
def http(config: ClientConfig) -> HttpClient:
    return HttpClient(config)


@pytest.fixture()
def auth_store(tmp_path: Path) -> AuthStore:
    return AuthStore(base_dir=tmp_path)


@pytest.fixture()
def session(config: ClientConfig, auth_store: AuthStore) -> ApiSession:
    user = UserResponse(id=9, name="Aline", role="staff", branch_id=7, api_token="tok-123")
    return ApiSession(config, auth_store=auth_store, user=user)


@pytest.fixture()
def admin_session(config: ClientConfig, auth_store: AuthStore) -> ApiSession:
    user = UserResponse(id=1, name="Admin", role="admin", branch_id=None, api_token="tok-admin")
    return ApiSession(config, auth_store=auth_store, user=user)
