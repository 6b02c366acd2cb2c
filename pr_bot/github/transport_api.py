"""GitHub REST transport backed by ``requests``."""

from __future__ import annotations

from typing import Any

import requests

from pr_bot.github.auth import GitHubAuth
from pr_bot.github.contracts import TransportError, TransportResponse

DEFAULT_API_URL = "https://api.github.com"


class RequestsTransport:
    def __init__(
        self,
        auth: GitHubAuth | None = None,
        base_url: str = DEFAULT_API_URL,
        session: requests.Session | None = None,
        timeout_s: float = 15.0,
    ) -> None:
        self.auth = auth or GitHubAuth(token=None)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout_s = timeout_s

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | list[Any] | None = None,
    ) -> TransportResponse:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.auth.token:
            headers["Authorization"] = f"Bearer {self.auth.token}"

        try:
            response = self.session.request(
                method=method,
                url=f"{self.base_url}{path}",
                headers=headers,
                json=json,
                params=params,
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            return TransportResponse(
                status_code=0,
                error=TransportError(f"{method} {path} failed: {exc}"),
            )

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers or {}),
            payload=_decode_payload(response),
        )


def _decode_payload(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
