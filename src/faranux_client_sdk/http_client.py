from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import NetworkError, RequestCancelledError

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]

logger = logging.getLogger(__name__)


def clean_params(params: dict[str, Any] | None) -> dict[str, Any]:
    return {key: value for key, value in (params or {}).items() if value not in (None, "")}


@dataclass
class LastOperation:
    action: str
    method: str
    duration_ms: int
    result: str


@dataclass
class HttpClient:
    """Transport for the action-dispatched JSON API.

    Every call goes to the single configured endpoint with ``action=<name>`` in
    the query string and returns the decoded envelope
    ``{"status": ..., "data": ..., "message": ..., "pagination": ...}``.
    Nothing is retried: a failed call is reported and the user re-triggers it.
    """

    config: ClientConfig
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    last_operation: LastOperation | None = None
    _context_versions: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
                max_retries=0,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def call(
        self,
        action: str,
        method: str = "GET",
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context_key: str | None = None,
        context_version: int | None = None,
    ) -> dict[str, Any]:
        started = time.monotonic()
        response = self._send(
            action,
            method,
            params=params,
            json_body=json_body,
            headers=headers,
            context_key=context_key,
            context_version=context_version,
        )
        text = response.text
        if not text or not text.strip():
            self._record(action, method, started, "error")
            raise NetworkError(
                code="EMPTY_RESPONSE",
                message="Empty response from server",
                details=None,
                status_code=response.status_code,
                raw_payload=None,
            )
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            self._record(action, method, started, "error")
            raise NetworkError(
                code="MALFORMED_RESPONSE",
                message=f"Server Error: {text[:100]}",
                details=None,
                status_code=response.status_code,
                raw_payload=text,
            ) from exc
        if not isinstance(payload, dict):
            self._record(action, method, started, "error")
            raise NetworkError(
                code="MALFORMED_RESPONSE",
                message="Expected a JSON object envelope",
                details=None,
                status_code=response.status_code,
                raw_payload=payload,
            )

        if not response.ok or payload.get("status") != "success":
            self._record(action, method, started, "error")
            raise map_error(response.status_code, payload)

        self._record(action, method, started, "success")
        return payload

    def download(
        self,
        action: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        response = self._send(action, "GET", params=params, headers=headers, accept="*/*")
        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = {"message": f"Server rejected request: {response.status_code}"}
            if not isinstance(payload, dict):
                payload = {"message": f"Server rejected request: {response.status_code}"}
            raise map_error(response.status_code, payload)
        return response.content

    def switch_context(self, context_key: str) -> int:
        new_version = self.get_context_version(context_key) + 1
        self._context_versions[context_key] = new_version
        return new_version

    def get_context_version(self, context_key: str) -> int:
        return self._context_versions.get(context_key, 0)

    def _send(
        self,
        action: str,
        method: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        context_key: str | None = None,
        context_version: int | None = None,
        accept: str = "application/json",
    ) -> requests.Response:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        request_headers = {"Accept": accept}
        if json_body is not None:
            request_headers["Content-Type"] = "application/json"
        if headers:
            request_headers.update(headers)

        normalized_method = method.upper()
        query = {"action": action, **clean_params(params)}
        request_context = {"headers": request_headers, "json_body": json_body, "params": query}
        if self.before_request:
            self.before_request(normalized_method, self.config.api_base_url, request_context)

        if context_key and context_version is None:
            context_version = self.get_context_version(context_key)

        started = time.monotonic()
        try:
            response = self.session.request(
                method=normalized_method,
                url=self.config.api_base_url,
                headers=request_headers,
                json=json_body,
                params=query,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.RequestException as exc:
            self._record(action, normalized_method, started, "network_error")
            raise NetworkError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                status_code=0,
                raw_payload=None,
            ) from exc

        if context_key and self.get_context_version(context_key) != context_version:
            self._record(action, normalized_method, started, "cancelled")
            raise RequestCancelledError(
                code="REQUEST_CANCELLED",
                message="Response ignored after context switch",
                details={"context_key": context_key},
                status_code=0,
                raw_payload=None,
            )

        if self.after_response:
            self.after_response(response)
        return response

    def _record(self, action: str, method: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            action=action,
            method=method.upper(),
            duration_ms=max(0, int((time.monotonic() - started) * 1000)),
            result=result,
        )
        logger.debug(
            "api_call action=%s method=%s result=%s duration_ms=%s",
            action,
            method.upper(),
            result,
            self.last_operation.duration_ms,
        )
