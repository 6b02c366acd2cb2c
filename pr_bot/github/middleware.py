"""Middleware abstraction and right-to-left chain composition.

The first registered middleware is the outermost layer:

    [Quota, Retry, Pagination]  ->  Quota(Retry(Pagination(unit)))

A middleware only ever sees the already-composed inner chain through
``around(inner, context)``; it has no handle on the raw unit of work, so it
cannot skip the middlewares registered after it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Iterator

from pr_bot.github.contracts import InvocationContext, UnitOfWork, UnitOfWorkResult


class Middleware(ABC):
    @abstractmethod
    def around(self, inner: UnitOfWork, context: InvocationContext) -> UnitOfWorkResult:
        """Run ``inner`` with one cross-cutting concern applied."""

    def wrap(self, inner: UnitOfWork) -> UnitOfWork:
        def wrapped(context: InvocationContext) -> UnitOfWorkResult:
            return self.around(inner, context)

        return wrapped


class MiddlewareChain:
    """Immutable, ordered middleware registration shared by all calls of a client."""

    def __init__(self, middlewares: Iterable[Middleware] = ()) -> None:
        registered = tuple(middlewares)
        for middleware in registered:
            if not isinstance(middleware, Middleware):
                raise TypeError(f"Not a middleware: {middleware!r}")
        self._middlewares = registered

    @classmethod
    def builder(cls) -> "MiddlewareChainBuilder":
        return MiddlewareChainBuilder()

    @property
    def middlewares(self) -> tuple[Middleware, ...]:
        return self._middlewares

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middlewares)

    def __len__(self) -> int:
        return len(self._middlewares)

    def around(self, unit: UnitOfWork) -> UnitOfWork:
        composed = unit
        for middleware in reversed(self._middlewares):
            composed = middleware.wrap(composed)
        return composed

    def execute(
        self, unit: UnitOfWork, context: InvocationContext | None = None
    ) -> UnitOfWorkResult:
        return self.around(unit)(context or InvocationContext())


class MiddlewareChainBuilder:
    def __init__(self) -> None:
        self._pending: list[Middleware] = []

    def use(self, middleware: Middleware) -> "MiddlewareChainBuilder":
        self._pending.append(middleware)
        return self

    def build(self) -> MiddlewareChain:
        return MiddlewareChain(self._pending)
