"""Shared plumbing for the outbound provider clients."""
from __future__ import annotations

from typing import Any

import requests


class ProviderError(Exception):
    """Raised when a provider call fails.

    ``status`` and ``payload`` describe the provider response; both are ``None``
    when the request never produced a response (DNS failure, timeout, ...).
    """

    def __init__(self, message: str, status: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def has_response(self) -> bool:
        return self.status is not None

    def payload_message(self, default: str | None = None) -> str | None:
        """Return the ``message`` field of a JSON error body, if any."""
        if isinstance(self.payload, dict):
            message = self.payload.get("message")
            if message:
                return str(message)
        return default


def response_body(response: requests.Response) -> Any:
    """Return the parsed JSON body of ``response``, falling back to its text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def failed_status_message(status: int) -> str:
    return f"Request failed with status code {status}"


class ProviderClient:
    """Small wrapper around a ``requests`` session bound to one base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {}

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        return self._send(method, path, headers=headers, **kwargs)

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, self._url(path), **kwargs)
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc

        body = response_body(response)
        if not 200 <= response.status_code < 300:
            raise ProviderError(
                failed_status_message(response.status_code),
                status=response.status_code,
                payload=body,
            )
        return body
