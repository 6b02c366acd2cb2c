"""Pipeline client: GitHub domain operations executed through the middleware chain."""

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Iterable
from urllib.parse import quote

from pr_bot.github.contracts import (
    InvocationContext,
    MalformedPayloadError,
    RemoteFailure,
    Transport,
    TransportResponse,
    UnitOfWork,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import Middleware, MiddlewareChain
from pr_bot.github.models import (
    ChangedFile,
    CommitStatus,
    PermissionLevel,
    QuotaSnapshot,
    RepositoryChange,
    RepositoryIssue,
)
from pr_bot.github.pagination import PaginationMiddleware, next_page_from_headers
from pr_bot.github.quota import QuotaMiddleware, fetch_quota_snapshot
from pr_bot.github.retry import RetryMiddleware
from pr_bot.shared.settings import PipelineSettings

Converter = Callable[[Any], list[Any]]


def default_middlewares(transport: Transport, settings: PipelineSettings) -> MiddlewareChain:
    """Quota outermost, retry around the whole pagination loop, pagination innermost."""
    return (
        MiddlewareChain.builder()
        .use(
            QuotaMiddleware(
                fetch_quota=partial(fetch_quota_snapshot, transport),
                threshold=settings.rate_limit_threshold,
            )
        )
        .use(RetryMiddleware(max_attempts=settings.retry_attempts, delay_s=settings.retry_delay_s))
        .use(PaginationMiddleware(max_pages=settings.max_pages))
        .build()
    )


class PipelineClient:
    def __init__(
        self,
        transport: Transport,
        middlewares: MiddlewareChain | Iterable[Middleware] = (),
        per_page: int = 100,
    ) -> None:
        self.transport = transport
        self.chain = (
            middlewares if isinstance(middlewares, MiddlewareChain) else MiddlewareChain(middlewares)
        )
        self.per_page = per_page

    @classmethod
    def from_settings(cls, transport: Transport, settings: PipelineSettings) -> "PipelineClient":
        return cls(
            transport=transport,
            middlewares=default_middlewares(transport, settings),
            per_page=settings.per_page,
        )

    def get_permission_level(self, owner: str, repo: str, user: str) -> PermissionLevel:
        row = self._fetch_one(
            "GET", f"/repos/{owner}/{repo}/collaborators/{quote(user, safe='')}/permission"
        )
        return PermissionLevel.from_api(row)

    def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return self._fetch_one("GET", f"/repos/{owner}/{repo}/pulls/{number}")

    def list_pull_request_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]:
        return self._fetch_all(
            f"/repos/{owner}/{repo}/pulls/{number}/files",
            convert=lambda rows: [ChangedFile.from_api(row) for row in _rows(rows)],
        )

    def list_pull_request_reviews(self, owner: str, repo: str, number: int) -> list[dict[str, Any]]:
        return self._fetch_all(f"/repos/{owner}/{repo}/pulls/{number}/reviews")

    def list_issue_comments(self, issue: RepositoryIssue) -> list[dict[str, Any]]:
        return self._fetch_all(
            f"/repos/{issue.owner}/{issue.repo_name}/issues/{issue.number}/comments"
        )

    def create_issue_comment(self, issue: RepositoryIssue, body: str) -> dict[str, Any]:
        return self._fetch_one(
            "POST",
            f"/repos/{issue.owner}/{issue.repo_name}/issues/{issue.number}/comments",
            json={"body": body},
        )

    def edit_issue_comment(
        self, issue: RepositoryIssue, comment_id: int, body: str
    ) -> dict[str, Any]:
        return self._fetch_one(
            "PATCH",
            f"/repos/{issue.owner}/{issue.repo_name}/issues/comments/{comment_id}",
            json={"body": body},
        )

    def create_status(self, change: RepositoryChange, status: CommitStatus) -> dict[str, Any]:
        return self._fetch_one(
            "POST",
            f"/repos/{change.owner}/{change.repo_name}/statuses/{change.hash}",
            json=status.to_payload(),
        )

    def add_pull_request_labels(
        self, change: RepositoryChange, number: int, labels: list[str]
    ) -> list[dict[str, Any]]:
        path = f"/repos/{change.owner}/{change.repo_name}/issues/{number}/labels"
        return self._execute(self._unit("POST", path, json={"labels": list(labels)}, convert=_rows))

    def remove_pull_request_label(self, change: RepositoryChange, number: int, label: str) -> None:
        path = (
            f"/repos/{change.owner}/{change.repo_name}/issues/{number}"
            f"/labels/{quote(label, safe='')}"
        )
        self._execute(self._unit("DELETE", path))

    def edit_pull_request(
        self, owner: str, repo: str, number: int, changes: dict[str, Any]
    ) -> dict[str, Any]:
        return self._fetch_one("PATCH", f"/repos/{owner}/{repo}/pulls/{number}", json=changes)

    def get_rate_limit(self) -> QuotaSnapshot:
        return fetch_quota_snapshot(self.transport)

    def _fetch_one(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        staged = self._execute(self._unit(method, path, json=json, convert=_single))
        return staged[0] if staged else {}

    def _fetch_all(self, path: str, convert: Converter | None = None) -> list[Any]:
        return self._execute(self._unit("GET", path, paginated=True, convert=convert or _rows))

    def _execute(self, unit: UnitOfWork) -> list[Any]:
        context = InvocationContext()
        result = self.chain.around(unit)(context)
        if result.error is not None:
            raise result.error
        result.apply()
        return list(context.staged)

    def _unit(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        paginated: bool = False,
        convert: Converter | None = None,
    ) -> UnitOfWork:
        def unit(context: InvocationContext) -> UnitOfWorkResult:
            params: dict[str, str] | None = None
            if paginated:
                params = {"per_page": str(self.per_page)}
                if context.page_cursor:
                    params["page"] = str(context.page_cursor)

            response = self.transport.request(method, path, params=params, json=json)
            error = _check_http_code(response)
            items: list[Any] = []
            if error is None and convert is not None:
                try:
                    items = convert(response.payload)
                except (TypeError, ValueError) as exc:
                    error = MalformedPayloadError(
                        f"{method} {path} returned a malformed payload: {exc}"
                    )
            return UnitOfWorkResult(
                apply=partial(context.stage, items),
                status_code=response.status_code,
                next_page_cursor=next_page_from_headers(response.headers) if paginated else None,
                error=error,
            )

        return unit


def build_client_from_env(
    env: dict[str, str] | None = None,
    transport: Transport | None = None,
) -> PipelineClient:
    settings = PipelineSettings.from_env(env)
    if transport is None:
        if settings.transport == "api":
            from pr_bot.github.transport_api import RequestsTransport

            transport = RequestsTransport(
                auth=settings.auth,
                base_url=settings.api_url,
                timeout_s=settings.timeout_s,
            )
        else:
            from pr_bot.github.transport_inmemory import InMemoryTransport

            transport = InMemoryTransport()
    return PipelineClient.from_settings(transport, settings)


def _check_http_code(response: TransportResponse) -> Exception | None:
    if response.error is not None:
        return response.error
    if response.status_code >= 404:
        detail = ""
        if isinstance(response.payload, dict):
            detail = str(response.payload.get("message", ""))
        return RemoteFailure(response.status_code, detail)
    return None


def _rows(payload: Any) -> list[Any]:
    if not isinstance(payload, list):
        return []
    return [row for row in payload if isinstance(row, dict)]


def _single(payload: Any) -> list[Any]:
    if isinstance(payload, dict):
        return [payload]
    return []


__all__ = [
    "PipelineClient",
    "build_client_from_env",
    "default_middlewares",
]
