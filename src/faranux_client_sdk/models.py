from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class Pagination(BaseModel):
    model_config = ConfigDict(extra="allow")

    page: int | None = None
    total_pages: int | None = None
    total_items: int | None = None


class ApiEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    data: Any = None
    message: str | None = None
    pagination: Pagination | None = None
    errors: list[str] | None = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"


class UserResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str | None = None
    email: str | None = None
    role: str = "staff"
    branch_id: int | None = None
    api_token: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class SessionData(BaseModel):
    model_config = ConfigDict(extra="allow")

    user: UserResponse
    env_name: str | None = None
    default_order_location_id: int | None = None

    @property
    def access_token(self) -> str | None:
        return self.user.api_token
