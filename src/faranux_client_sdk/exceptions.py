from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    details: object | None
    status_code: int
    raw_payload: object | None = None

    def __str__(self) -> str:
        return f"[{self.status_code}] {self.code}: {self.message}"


class ApplicationError(ApiError):
    """The server answered with a well-formed rejection (status="error")."""


class AuthError(ApplicationError):
    """Authentication failed or the stored api token is no longer valid."""


class PermissionDeniedError(ApplicationError):
    """The requester's role does not allow this action."""


class NotFoundError(ApplicationError):
    pass


class BadRequestError(ApplicationError):
    pass


class ConflictError(ApplicationError):
    """409 or duplicate-style rejections (duplicate branch name, branch with history)."""


class RateLimitError(ApplicationError):
    pass


class ServerError(ApplicationError):
    """5xx responses that still carried a JSON body."""


class ServerRejectedError(ApplicationError):
    """A transfer mutation was refused by the server (e.g. stock changed since the form opened)."""


class NetworkError(ApiError):
    """Transport failure, or a response body that was empty or not JSON."""


class RequestCancelledError(NetworkError):
    """The response arrived after its view context was switched and must be ignored."""
