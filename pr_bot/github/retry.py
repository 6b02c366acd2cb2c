"""Fixed-delay retry around the whole inner chain."""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Callable

from pr_bot.github.contracts import (
    InvocationContext,
    RetriesExhaustedError,
    UnitOfWork,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import Middleware


def is_retryable(error: Exception) -> bool:
    return bool(getattr(error, "retryable", True))


class RetryMiddleware(Middleware):
    def __init__(
        self,
        max_attempts: int = 3,
        delay_s: float = 0.0,
        should_retry: Callable[[Exception], bool] = is_retryable,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay_s < 0:
            raise ValueError(f"delay_s must be >= 0, got {delay_s}")
        self.max_attempts = max(1, int(max_attempts))
        self.delay_s = float(delay_s)
        self._should_retry = should_retry
        self._sleep = sleep

    def around(self, inner: UnitOfWork, context: InvocationContext) -> UnitOfWorkResult:
        savepoint = context.savepoint()
        errors: list[Exception] = []
        result = UnitOfWorkResult()
        for attempt in range(1, self.max_attempts + 1):
            # partial pages staged by a failed attempt must not survive into the next one
            context.rollback(savepoint)
            result = inner(context)
            if result.error is None:
                return result
            if not self._should_retry(result.error):
                return result
            errors.append(result.error)
            if attempt < self.max_attempts:
                self._sleep(self.delay_s)

        context.rollback(savepoint)
        return replace(result, error=RetriesExhaustedError(errors))
