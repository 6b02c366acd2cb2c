"""Quota observation: one rate-limit probe after each top-level call."""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import ValidationError

from pr_bot.github.contracts import (
    GitHubPipelineError,
    InvocationContext,
    QuotaProbeError,
    Transport,
    UnitOfWork,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import Middleware
from pr_bot.github.models import QuotaSnapshot

logger = logging.getLogger(__name__)

RATE_LIMIT_PATH = "/rate_limit"
DEFAULT_CATEGORY = "core"

QuotaFetcher = Callable[[], QuotaSnapshot]


def fetch_quota_snapshot(transport: Transport, category: str = DEFAULT_CATEGORY) -> QuotaSnapshot:
    response = transport.request("GET", RATE_LIMIT_PATH)
    if response.error is not None:
        raise QuotaProbeError(str(response.error)) from response.error
    if response.status_code >= 400:
        raise QuotaProbeError(f"rate limit endpoint responded with {response.status_code} status")

    payload = response.payload if isinstance(response.payload, dict) else {}
    resources = payload.get("resources")
    if not isinstance(resources, dict):
        raise QuotaProbeError("rate limit resources not reported")
    row = resources.get(category)
    if not isinstance(row, dict):
        raise QuotaProbeError(f"rate limit category not reported: {category}")
    try:
        return QuotaSnapshot.from_api(row)
    except (KeyError, TypeError, ValueError, OverflowError, OSError, ValidationError) as exc:
        raise QuotaProbeError(f"malformed rate limit payload: {exc}") from exc


class QuotaMiddleware(Middleware):
    """Warns when the remaining quota drops below ``threshold``.

    The probe runs after the inner chain, outside of any retry or pagination
    nested below it, and its failures never reach the caller.
    """

    def __init__(
        self,
        fetch_quota: QuotaFetcher,
        threshold: int,
        log: logging.Logger | None = None,
    ) -> None:
        self._fetch_quota = fetch_quota
        self.threshold = int(threshold)
        self._log = log or logger

    def around(self, inner: UnitOfWork, context: InvocationContext) -> UnitOfWorkResult:
        try:
            return inner(context)
        finally:
            self.check_quota()

    def check_quota(self) -> QuotaSnapshot | None:
        try:
            snapshot = self._fetch_quota()
        except GitHubPipelineError as exc:
            self._log.error("failed to load rate limits %s", exc)
            return None

        if snapshot.remaining < self.threshold:
            self._log.warning(
                "reaching limit for GH API calls. %d/%d left. resetting at [%s]",
                snapshot.remaining,
                snapshot.limit,
                snapshot.reset_at.strftime("%Y-%m-%d %H:%M:%S"),
                extra={
                    "quota_remaining": snapshot.remaining,
                    "quota_limit": snapshot.limit,
                    "quota_reset_at": snapshot.reset_at.isoformat(),
                },
            )
        return snapshot
