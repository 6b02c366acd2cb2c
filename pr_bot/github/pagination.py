"""Page-by-page accumulation around the inner chain, plus Link header cursors."""

from __future__ import annotations

from dataclasses import replace
from typing import Mapping
from urllib.parse import parse_qs, urlparse

from requests.utils import parse_header_links

from pr_bot.github.contracts import (
    FIRST_PAGE,
    InvocationContext,
    PaginationLimitExceeded,
    UnitOfWork,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import Middleware

DEFAULT_MAX_PAGES = 100


def _already_applied() -> None:
    return None


class PaginationMiddleware(Middleware):
    """Runs the inner chain once per page, starting from the first page on every invocation.

    ``apply`` is called for every page, failed ones included, so units must stage
    nothing when their payload is absent. Pass ``max_pages=None`` to follow the
    server's cursor chain without a bound.
    """

    def __init__(self, max_pages: int | None = DEFAULT_MAX_PAGES) -> None:
        if max_pages is not None and max_pages < 1:
            raise ValueError(f"max_pages must be >= 1 or None, got {max_pages}")
        self.max_pages = max_pages

    def around(self, inner: UnitOfWork, context: InvocationContext) -> UnitOfWorkResult:
        page_context = context.with_page(FIRST_PAGE)
        pages = 0
        while True:
            result = inner(page_context)
            pages += 1
            result.apply()
            if result.error is not None:
                return replace(result, apply=_already_applied)
            if not result.next_page_cursor:
                return replace(result, apply=_already_applied)
            if self.max_pages is not None and pages >= self.max_pages:
                return replace(
                    result,
                    apply=_already_applied,
                    error=PaginationLimitExceeded(self.max_pages),
                )
            page_context = page_context.with_page(result.next_page_cursor)


def next_page_from_headers(headers: Mapping[str, str] | None) -> int | None:
    """Translate an RFC 5988 ``Link: <...page=N>; rel="next"`` header into a page cursor."""
    link_value = ""
    for key, value in (headers or {}).items():
        if key.lower() == "link":
            link_value = str(value)
            break
    if not link_value:
        return None

    for link in parse_header_links(link_value):
        if link.get("rel") != "next":
            continue
        pages = parse_qs(urlparse(link.get("url", "")).query).get("page", [])
        try:
            return int(pages[0]) if pages else None
        except ValueError:
            return None
    return None
