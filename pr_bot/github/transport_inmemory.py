"""In-memory transport replaying scripted responses for deterministic tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pr_bot.github.contracts import TransportError, TransportResponse


@dataclass
class ScriptedResponse:
    status_code: int = 200
    payload: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    page: int | None = None
    persist: bool = False
    error: str = ""

    def matches(self, page: int | None) -> bool:
        return self.page is None or self.page == page


class InMemoryTransport:
    """Answers from a per-route queue; unscripted routes get a 404."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self._routes: dict[tuple[str, str], list[ScriptedResponse]] = {}

    def add(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        payload: Any = None,
        headers: dict[str, str] | None = None,
        page: int | None = None,
        persist: bool = False,
    ) -> "InMemoryTransport":
        self._routes.setdefault((method.upper(), path), []).append(
            ScriptedResponse(
                status_code=status_code,
                payload=payload,
                headers=dict(headers or {}),
                page=page,
                persist=persist,
            )
        )
        return self

    def add_transport_failure(
        self, method: str, path: str, message: str = "connection reset", persist: bool = False
    ) -> "InMemoryTransport":
        self._routes.setdefault((method.upper(), path), []).append(
            ScriptedResponse(status_code=0, persist=persist, error=message)
        )
        return self

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [
            call for call in self.calls if call["method"] == method.upper() and call["path"] == path
        ]

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | list[Any] | None = None,
    ) -> TransportResponse:
        normalized = method.upper()
        self.calls.append({"method": normalized, "path": path, "params": params, "json": json})
        page = _page_param(params)

        queue = self._routes.get((normalized, path), [])
        for index, scripted in enumerate(queue):
            if not scripted.matches(page):
                continue
            if not scripted.persist:
                queue.pop(index)
            if scripted.error:
                return TransportResponse(
                    status_code=0,
                    error=TransportError(f"{normalized} {path} failed: {scripted.error}"),
                )
            return TransportResponse(
                status_code=scripted.status_code,
                headers=dict(scripted.headers),
                payload=scripted.payload,
            )

        return TransportResponse(status_code=404, payload={"message": "Not Found"})


def _page_param(params: dict[str, str] | None) -> int | None:
    value = (params or {}).get("page")
    if value in (None, ""):
        return None
    return int(value)
