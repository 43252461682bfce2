"""Client for the Api4Com telephony API."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests

from .base import ProviderClient, ProviderError

logger = logging.getLogger(__name__)

WEBHOOK_VERSION = "v1.8"
WEBHOOK_TYPES = ["channel-answer", "channel-hangup"]


class AuthenticationError(ProviderError):
    """Raised when the Api4Com login fails or is not configured."""


class Api4ComClient(ProviderClient):
    """Authenticated proxy for users, extensions, the dialer and integrations.

    The login token is requested on first use and reused for the lifetime of
    the client.
    """

    def __init__(
        self,
        base_url: str,
        email: str | None,
        password: str | None,
        *,
        cpf_cnpj: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, session=session)
        self.email = email
        self.password = password
        self.cpf_cnpj = cpf_cnpj
        self._token: str | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Api4ComClient:
        return cls(
            config["API4COM_BASE_URL"],
            config.get("API4COM_EMAIL"),
            config.get("API4COM_PASSWORD"),
            cpf_cnpj=config.get("API4COM_CPF_CNPJ"),
            timeout=config.get("API4COM_TIMEOUT"),
        )

    @property
    def configured(self) -> bool:
        return bool(self.email and self.password)

    def authenticate(self) -> str:
        if self._token:
            return self._token
        if not self.configured:
            raise AuthenticationError("API4COM_EMAIL e API4COM_PASSWORD devem estar definidas")

        credentials: dict[str, str] = {"email": self.email or "", "password": self.password or ""}
        if self.cpf_cnpj:
            credentials["cpf_cnpj"] = self.cpf_cnpj
        try:
            body = self._send("POST", "/users/login", json=credentials)
        except ProviderError as exc:
            raise AuthenticationError(exc.message, exc.status, exc.payload) from exc
        token = body.get("id") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Api4Com login did not return a token", payload=body)
        self._token = str(token)
        logger.info("Api4Com session token obtained")
        return self._token

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.authenticate()}

    def create_user(self, user: Mapping[str, Any]) -> Any:
        return self._request("POST", "/users", json=dict(user))

    def list_users(self, filter_: str | None = None) -> Any:
        params = {"filter": filter_} if filter_ else {}
        return self._request("GET", "/users", params=params)

    def create_extension(self, extension: Mapping[str, Any]) -> Any:
        return self._request("POST", "/extensions", json=dict(extension))

    def list_extensions(self) -> Any:
        return self._request("GET", "/extensions")

    def dial(self, extension: str, phone: str, metadata: Any = None) -> Any:
        return self._request(
            "POST",
            "/dialer",
            json={"extension": extension, "phone": phone, "metadata": metadata},
        )

    def hangup(self, call_id: str) -> Any:
        return self._request("POST", f"/calls/{call_id}/hangup", json={})

    def list_integrations(self) -> list[dict[str, Any]]:
        body = self._request("GET", "/integrations")
        if isinstance(body, list):
            return body
        if isinstance(body, dict) and isinstance(body.get("data"), list):
            return body["data"]
        return []

    def register_webhook(self, gateway: str, webhook_url: str) -> tuple[dict[str, Any], Any]:
        """Create or update the webhook integration for ``gateway``.

        Returns the payload sent to Api4Com and the id of the integration that
        was updated (``None`` when a new one was created).
        """

        payload: dict[str, Any] = {
            "gateway": gateway,
            "webhook": True,
            "webhookConstraint": {"metadata": {"gateway": gateway}},
            "metadata": {
                "webhookUrl": webhook_url,
                "webhookVersion": WEBHOOK_VERSION,
                "webhookTypes": list(WEBHOOK_TYPES),
            },
        }
        existing = next(
            (item for item in self.list_integrations() if item.get("gateway") == gateway),
            None,
        )
        existing_id = existing.get("id") if existing else None
        if existing_id:
            payload["id"] = existing_id

        self._request("PATCH", "/integrations", json=payload)
        return payload, existing_id
