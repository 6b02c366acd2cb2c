"""GitHub token loading with safe (redacted) display."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class GitHubAuth:
    token: str | None

    def redacted(self) -> str:
        if self.token is None:
            return "unset"
        if len(self.token) <= 8:
            return "***"
        return f"{self.token[:4]}...{self.token[-4:]}"


def load_github_auth_from_env(env: dict[str, str] | None = None) -> GitHubAuth:
    env_map = os.environ if env is None else env
    return GitHubAuth(token=_clean(env_map.get("PR_BOT_GITHUB_TOKEN") or env_map.get("GITHUB_TOKEN")))


def _clean(token: str | None) -> str | None:
    if token is None:
        return None
    value = token.strip()
    return value or None
