"""Client for the LigueLead voice broadcast API."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import IO, Any

import requests

from .base import ProviderClient


@dataclass(frozen=True)
class LigueLeadCredentials:
    """The ``api-token`` / ``app-id`` pair issued by LigueLead."""

    api_token: str | None = None
    app_id: str | None = None

    @property
    def complete(self) -> bool:
        return bool(self.api_token and self.app_id)

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_token:
            headers["api-token"] = self.api_token
        if self.app_id:
            headers["app-id"] = self.app_id
        return headers


class LigueLeadClient(ProviderClient):
    """Thin proxy for the audio, voice and campaign resources."""

    def __init__(
        self,
        base_url: str,
        credentials: LigueLeadCredentials,
        *,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(base_url, timeout=timeout, session=session)
        self.credentials = credentials

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> LigueLeadClient:
        credentials = LigueLeadCredentials(
            api_token=config.get("LIGUELEAD_API_TOKEN"),
            app_id=config.get("LIGUELEAD_APP_ID"),
        )
        return cls(config["LIGUELEAD_BASE_URL"], credentials)

    def _headers(self) -> dict[str, str]:
        return self.credentials.headers()

    def upload_audio(self, title: str, filename: str, stream: IO[bytes], mimetype: str | None = None) -> Any:
        files = {"audio": (filename, stream, mimetype or "application/octet-stream")}
        return self._request("POST", "/audio", data={"title": title}, files=files)

    def list_audios(self) -> Any:
        return self._request("GET", "/audio")

    def get_audio(self, audio_id: str) -> Any:
        return self._request("GET", f"/audio/{audio_id}")

    def send_voice(self, title: str, audio_id: Any, phones: list[str]) -> Any:
        return self._request(
            "POST",
            "/voice",
            json={"title": title, "audio_id": audio_id, "phones": phones},
        )

    def get_voice_campaign(self, campaign_id: str, page: str | None = None, per_page: str | None = None) -> Any:
        params: dict[str, str] = {}
        if page:
            params["page"] = page
        if per_page:
            params["per_page"] = per_page
        return self._request("GET", f"/campaigns/voice/{campaign_id}", params=params)

    def flow_headers(self) -> dict[str, str]:
        """Headers sent to the CRM flow webhook."""
        return {"Content-Type": "application/json", **self.credentials.headers()}
