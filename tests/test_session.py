from __future__ import annotations

import pytest
import responses
from responses import matchers

from faranux_client_sdk.auth_store import AuthStore
from faranux_client_sdk.config import ClientConfig
from faranux_client_sdk.models import SessionData, UserResponse
from faranux_client_sdk.session import ApiSession
from faranux_client_sdk.stock_validation import ClientValidationError

from conftest import BASE_URL


def test_auth_store_round_trip(auth_store: AuthStore) -> None:
    user = UserResponse(id=4, name="Eric", role="admin", api_token="abc")
    auth_store.save(SessionData(user=user, env_name="test", default_order_location_id=3))
    loaded = auth_store.load()
    assert loaded.access_token == "abc"
    assert loaded.default_order_location_id == 3
    auth_store.clear()
    assert auth_store.load() is None


def test_auth_store_discards_corrupt_file(auth_store: AuthStore, tmp_path) -> None:
    (tmp_path / "session.json").write_text("{not json")
    assert auth_store.load() is None
    assert not (tmp_path / "session.json").exists()


@responses.activate
def test_login_persists_and_restores(config: ClientConfig, auth_store: AuthStore) -> None:
    responses.add(
        responses.POST,
        BASE_URL,
        json={
            "status": "success",
            "user": {"id": 12, "name": "Aline", "role": "staff", "branch_id": 7, "api_token": "tok-xyz"},
        },
        match=[
            matchers.query_param_matcher({"action": "login"}),
            matchers.json_params_matcher({"email": "aline@example.com", "password": "secret"}),
        ],
    )
    session = ApiSession(config, auth_store=auth_store)
    user = session.login("aline@example.com", "secret")
    assert user.branch_id == 7
    assert not session.is_admin

    restored = ApiSession(config, auth_store=auth_store)
    assert restored.token == "tok-xyz"
    assert restored.inventory_client()._auth_headers() == {"Authorization": "Bearer tok-xyz"}


@responses.activate
def test_requests_carry_bearer_token(session: ApiSession) -> None:
    responses.add(
        responses.GET,
        BASE_URL,
        json={"status": "success", "data": ["Phones", "Phones > Android"]},
        match=[matchers.header_matcher({"Authorization": "Bearer tok-123"})],
    )
    assert session.inventory_client().get_categories() == ["Phones", "Phones > Android"]


def test_clear_resets_shared_state(session: ApiSession, auth_store: AuthStore) -> None:
    session.remember_order_location(3)
    session.guard.begin("import_stock")
    session.snapshot.toggle_selection(42)
    session.clear()
    assert session.user is None
    assert session.token is None
    assert not session.guard.is_busy("import_stock")
    assert not session.snapshot.selected_ids
    assert auth_store.load() is None


@responses.activate
def test_login_rejects_bad_credentials_locally(config: ClientConfig, auth_store: AuthStore) -> None:
    session = ApiSession(config, auth_store=auth_store)
    with pytest.raises(ClientValidationError, match="email"):
        session.login("not-an-email", "secret")
    with pytest.raises(ClientValidationError, match="password"):
        session.login("aline@example.com", "abc")
    assert len(responses.calls) == 0
