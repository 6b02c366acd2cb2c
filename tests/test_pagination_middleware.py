from __future__ import annotations

import pytest

from pr_bot.github.contracts import (
    InvocationContext,
    PaginationLimitExceeded,
    RemoteFailure,
    RetriesExhaustedError,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import MiddlewareChain
from pr_bot.github.pagination import PaginationMiddleware, next_page_from_headers
from pr_bot.github.retry import RetryMiddleware


class PagedUnit:
    """Serves ``pages[n - 1]`` for page ``n``; ``failures`` maps page -> remaining failures."""

    def __init__(self, pages: list[list[str]], failures: dict[int, int] | None = None) -> None:
        self.pages = pages
        self.failures = dict(failures or {})
        self.requested: list[int] = []
        self.applied: list[int] = []

    def __call__(self, context: InvocationContext) -> UnitOfWorkResult:
        page = context.page_cursor
        self.requested.append(page)
        if self.failures.get(page, 0) > 0:
            self.failures[page] -= 1
            return UnitOfWorkResult(
                apply=lambda: self.applied.append(page),
                status_code=500,
                next_page_cursor=page + 1,
                error=RemoteFailure(500),
            )

        items = self.pages[page - 1]

        def apply() -> None:
            self.applied.append(page)
            context.stage(items)

        return UnitOfWorkResult(
            apply=apply,
            status_code=200,
            next_page_cursor=page + 1 if page < len(self.pages) else None,
        )


def _pages(*sizes: int) -> list[list[str]]:
    return [[f"p{page}-{i}" for i in range(size)] for page, size in enumerate(sizes, start=1)]


@pytest.mark.parametrize(("a", "b", "c"), [(2, 3, 1), (100, 100, 7), (0, 1, 0)])
def test_merges_all_pages_in_order(a: int, b: int, c: int) -> None:
    pages = _pages(a, b, c)
    unit = PagedUnit(pages)
    context = InvocationContext()

    result = MiddlewareChain([PaginationMiddleware()]).execute(unit, context)

    assert result.error is None
    assert unit.requested == [1, 2, 3]
    assert len(context.staged) == a + b + c
    assert context.staged == pages[0] + pages[1] + pages[2]


def test_single_page_when_no_cursor_is_returned() -> None:
    unit = PagedUnit(_pages(4))

    MiddlewareChain([PaginationMiddleware()]).execute(unit)

    assert unit.requested == [1]


def test_error_stops_the_loop_after_applying_the_failed_page() -> None:
    unit = PagedUnit(_pages(1, 1, 1), failures={2: 1})

    result = MiddlewareChain([PaginationMiddleware()]).execute(unit)

    assert isinstance(result.error, RemoteFailure)
    assert unit.requested == [1, 2]
    assert unit.applied == [1, 2]


def test_every_invocation_restarts_from_the_first_page() -> None:
    unit = PagedUnit(_pages(1, 1))
    wrapped = PaginationMiddleware().wrap(unit)

    wrapped(InvocationContext(page_cursor=7))
    wrapped(InvocationContext())

    assert unit.requested == [1, 2, 1, 2]


def test_returned_apply_does_not_stage_pages_twice() -> None:
    unit = PagedUnit(_pages(2, 2))
    context = InvocationContext()

    result = MiddlewareChain([PaginationMiddleware()]).execute(unit, context)
    result.apply()

    assert len(context.staged) == 4


def test_endless_cursor_chain_is_bounded_by_max_pages() -> None:
    calls = 0

    def endless(context: InvocationContext) -> UnitOfWorkResult:
        nonlocal calls
        calls += 1
        return UnitOfWorkResult(status_code=200, next_page_cursor=context.page_cursor + 1)

    result = MiddlewareChain([PaginationMiddleware(max_pages=5)]).execute(endless)

    assert calls == 5
    assert isinstance(result.error, PaginationLimitExceeded)
    assert result.error.max_pages == 5
    assert result.error.retryable is False


def test_exactly_max_pages_is_not_an_error() -> None:
    unit = PagedUnit(_pages(1, 1, 1))

    result = MiddlewareChain([PaginationMiddleware(max_pages=3)]).execute(unit)

    assert result.error is None
    assert unit.requested == [1, 2, 3]


def test_unbounded_pagination_follows_long_cursor_chains() -> None:
    unit = PagedUnit(_pages(*([1] * 250)))
    context = InvocationContext()

    MiddlewareChain([PaginationMiddleware(max_pages=None)]).execute(unit, context)

    assert len(unit.requested) == 250
    assert len(context.staged) == 250


def test_invalid_max_pages_is_rejected() -> None:
    with pytest.raises(ValueError):
        PaginationMiddleware(max_pages=0)


def test_retry_restarts_pagination_from_page_one_without_duplicating_pages() -> None:
    pages = _pages(2, 2, 2)
    unit = PagedUnit(pages, failures={2: 1})
    context = InvocationContext()
    chain = MiddlewareChain([RetryMiddleware(max_attempts=3, delay_s=0), PaginationMiddleware()])

    result = chain.execute(unit, context)

    assert result.error is None
    # failed attempt: pages 1-2, successful attempt: pages 1-3
    assert unit.requested == [1, 2, 1, 2, 3]
    assert len(unit.requested) == 2 + 3
    assert context.staged == pages[0] + pages[1] + pages[2]


def test_failure_on_any_page_is_retried_like_a_first_page_failure() -> None:
    unit = PagedUnit(_pages(1, 1, 1), failures={3: 5})
    chain = MiddlewareChain([RetryMiddleware(max_attempts=2, delay_s=0), PaginationMiddleware()])
    context = InvocationContext()

    result = chain.execute(unit, context)

    assert isinstance(result.error, RetriesExhaustedError)
    assert unit.requested == [1, 2, 3, 1, 2, 3]
    assert context.staged == []


def test_link_header_next_page_is_translated_to_cursor() -> None:
    headers = {
        "Link": (
            '<https://api.github.com/repositories/1/pulls/2/files?per_page=1&page=1>; rel="prev", '
            '<https://api.github.com/repositories/1/pulls/2/files?per_page=1&page=3>; rel="next", '
            '<https://api.github.com/repositories/1/pulls/2/files?per_page=1&page=5>; rel="last"'
        )
    }

    assert next_page_from_headers(headers) == 3


def test_link_header_lookup_is_case_insensitive() -> None:
    headers = {"link": '<https://api.github.com/x?page=2>; rel="next"'}

    assert next_page_from_headers(headers) == 2


@pytest.mark.parametrize(
    "headers",
    [
        None,
        {},
        {"Link": '<https://api.github.com/x?page=1>; rel="prev", <https://api.github.com/x?page=1>; rel="first"'},
        {"Link": '<https://api.github.com/x?cursor=abc>; rel="next"'},
        {"Link": '<https://api.github.com/x?page=abc>; rel="next"'},
    ],
)
def test_missing_or_unusable_next_link_means_last_page(headers: dict[str, str] | None) -> None:
    assert next_page_from_headers(headers) is None
