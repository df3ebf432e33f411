from __future__ import annotations

from typing import Mapping

from .exceptions import (
    ApplicationError,
    AuthError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
)


def map_error(status_code: int, payload: Mapping[str, object] | None) -> ApplicationError:
    payload = payload or {}
    code = str(payload.get("code") or payload.get("error_type") or "APPLICATION_ERROR")
    message = str(payload.get("message") or "Request failed")
    details = payload.get("errors") if payload.get("errors") is not None else payload.get("details")
    mapped: type[ApplicationError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionDeniedError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = BadRequestError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code == 429:
        mapped = RateLimitError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = ApplicationError
    return mapped(
        code=code,
        message=message,
        details=details,
        status_code=status_code,
        raw_payload=dict(payload),
    )
