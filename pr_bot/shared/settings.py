"""Shared runtime settings for the GitHub invocation pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass

from pr_bot.github.auth import GitHubAuth, load_github_auth_from_env


@dataclass(frozen=True)
class PipelineSettings:
    """Transport, retry, pagination and quota knobs for one client."""

    transport: str = "in_memory"
    api_url: str = "https://api.github.com"
    retry_attempts: int = 3
    retry_delay_s: float = 2.0
    rate_limit_threshold: int = 100
    max_pages: int | None = 100
    per_page: int = 100
    timeout_s: float = 15.0
    auth: GitHubAuth = GitHubAuth(token=None)

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "PipelineSettings":
        source = os.environ if env is None else env
        max_pages = _int(source, "PR_BOT_MAX_PAGES", 100, minimum=0)
        return cls(
            transport=(source.get("PR_BOT_GITHUB_TRANSPORT") or "in_memory").strip().lower(),
            api_url=(source.get("PR_BOT_GITHUB_API_URL") or "https://api.github.com").strip(),
            retry_attempts=_int(source, "PR_BOT_RETRY_ATTEMPTS", 3),
            retry_delay_s=_float(source, "PR_BOT_RETRY_DELAY_S", 2.0),
            rate_limit_threshold=_int(source, "PR_BOT_RATE_LIMIT_THRESHOLD", 100),
            max_pages=max_pages or None,
            per_page=_int(source, "PR_BOT_PER_PAGE", 100, minimum=1),
            timeout_s=_float(source, "PR_BOT_HTTP_TIMEOUT_S", 15.0),
            auth=load_github_auth_from_env(dict(source)),
        )

    def redacted(self) -> dict[str, object]:
        return {
            "transport": self.transport,
            "api_url": self.api_url,
            "retry_attempts": self.retry_attempts,
            "retry_delay_s": self.retry_delay_s,
            "rate_limit_threshold": self.rate_limit_threshold,
            "max_pages": self.max_pages,
            "per_page": self.per_page,
            "timeout_s": self.timeout_s,
            "token": self.auth.redacted(),
        }


def _int(source: dict[str, str], name: str, default: int, minimum: int | None = None) -> int:
    raw = (source.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {raw!r}")
    return value


def _float(source: dict[str, str], name: str, default: float) -> float:
    raw = (source.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {raw!r}")
    return value
