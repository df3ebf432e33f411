from __future__ import annotations

from dataclasses import dataclass

from ..exceptions import NetworkError
from ..models import UserResponse
from .base import BaseClient


@dataclass
class AuthClient(BaseClient):
    def login(self, email: str, password: str) -> UserResponse:
        payload = self._request("login", "POST", json_body={"email": email, "password": password})
        user = payload.get("user") or payload.get("data")
        if not isinstance(user, dict):
            raise NetworkError(
                code="MALFORMED_RESPONSE",
                message="Expected login response to include a user object",
                details=None,
                status_code=200,
                raw_payload=payload,
            )
        return UserResponse.model_validate(user)
