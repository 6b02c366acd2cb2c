"""Invocation pipeline contracts: context, unit-of-work results, transport and errors."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Mapping, Protocol

NO_PAGE = 0
FIRST_PAGE = 1


@dataclass(frozen=True)
class InvocationContext:
    """Per-call state threaded through the middleware chain.

    Contexts derived with :meth:`with_page` share one ``staged`` buffer, so every
    page and every attempt of a top-level call writes into the same place.
    """

    page_cursor: int = NO_PAGE
    staged: list[Any] = field(default_factory=list)

    def with_page(self, page_cursor: int) -> "InvocationContext":
        return replace(self, page_cursor=page_cursor)

    def stage(self, items: Iterable[Any]) -> None:
        self.staged.extend(items)

    def savepoint(self) -> int:
        return len(self.staged)

    def rollback(self, savepoint: int) -> None:
        del self.staged[savepoint:]


def _noop() -> None:
    return None


@dataclass(frozen=True)
class UnitOfWorkResult:
    apply: Callable[[], None] = _noop
    status_code: int = 0
    next_page_cursor: int | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


UnitOfWork = Callable[[InvocationContext], UnitOfWorkResult]


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: Any = None
    error: Exception | None = None


class Transport(Protocol):
    """Performs exactly one HTTP request; never raises for HTTP or network failures."""

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | list[Any] | None = None,
    ) -> TransportResponse: ...


class GitHubPipelineError(RuntimeError):
    retryable = True


class TransportError(GitHubPipelineError):
    """The request never produced a response (connection, timeout)."""


class RemoteFailure(GitHubPipelineError):
    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"server responded with {status_code} status"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code


class RetriesExhaustedError(GitHubPipelineError):
    retryable = False

    def __init__(self, errors: Iterable[Exception]) -> None:
        self.errors = tuple(errors)
        message = f"all {len(self.errors)} attempts of sending a request failed. See the errors:"
        for index, error in enumerate(self.errors, start=1):
            message += f"\n{index}. [{error}]"
        super().__init__(message)


class PaginationLimitExceeded(GitHubPipelineError):
    retryable = False

    def __init__(self, max_pages: int) -> None:
        super().__init__(f"pagination limit exceeded: server reported more than {max_pages} pages")
        self.max_pages = max_pages


class MalformedPayloadError(GitHubPipelineError):
    retryable = False


class QuotaProbeError(GitHubPipelineError):
    retryable = False


__all__ = [
    "FIRST_PAGE",
    "GitHubPipelineError",
    "InvocationContext",
    "MalformedPayloadError",
    "NO_PAGE",
    "PaginationLimitExceeded",
    "QuotaProbeError",
    "RemoteFailure",
    "RetriesExhaustedError",
    "Transport",
    "TransportError",
    "TransportResponse",
    "UnitOfWork",
    "UnitOfWorkResult",
]
