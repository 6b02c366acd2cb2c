"""Pydantic models for the GitHub resources the bots read and write."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class RepositoryIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo_name: str = Field(min_length=1)
    number: int = Field(ge=1)


class RepositoryChange(BaseModel):
    """A commit in a repository, the target of commit statuses."""

    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo_name: str = Field(min_length=1)
    hash: str = Field(min_length=1)


class ChangedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    status: str = ""
    additions: int = 0
    deletions: int = 0

    @classmethod
    def from_api(cls, row: dict[str, Any]) -> "ChangedFile":
        return cls(
            name=str(row.get("filename", "")),
            status=str(row.get("status", "")),
            additions=int(row.get("additions", 0) or 0),
            deletions=int(row.get("deletions", 0) or 0),
        )


class CommitStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    state: Literal["error", "failure", "pending", "success"]
    context: str = Field(min_length=1)
    description: str = ""
    target_url: str = ""

    def to_payload(self) -> dict[str, str]:
        payload = {"state": self.state, "context": self.context}
        if self.description:
            payload["description"] = self.description
        if self.target_url:
            payload["target_url"] = self.target_url
        return payload


class PermissionLevel(BaseModel):
    user: str
    permission: str

    @classmethod
    def from_api(cls, row: dict[str, Any]) -> "PermissionLevel":
        user = row.get("user") or {}
        return cls(
            user=str(user.get("login", "")) if isinstance(user, dict) else "",
            permission=str(row.get("permission", "none")),
        )


class QuotaSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    remaining: int
    limit: int
    reset_at: datetime

    @classmethod
    def from_api(cls, row: dict[str, Any]) -> "QuotaSnapshot":
        return cls(
            remaining=int(row["remaining"]),
            limit=int(row["limit"]),
            reset_at=datetime.fromtimestamp(int(row["reset"]), tz=timezone.utc),
        )
