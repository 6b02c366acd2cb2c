"""pr-bot CLI: read pull-request data through the resilient GitHub pipeline."""

from __future__ import annotations

import json
import re
from typing import Any, Callable

import typer

from pr_bot.github.client import PipelineClient, build_client_from_env
from pr_bot.github.contracts import GitHubPipelineError
from pr_bot.github.models import RepositoryIssue
from pr_bot.shared.log_config import configure_logging
from pr_bot.shared.settings import PipelineSettings

REPO_RE = re.compile(r"^(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+)$")

app = typer.Typer(add_completion=False, help="pr-bot: GitHub pull-request bots")


@app.callback()
def main(log_level: str = typer.Option("WARNING", "--log-level")) -> None:
    try:
        configure_logging(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--log-level") from exc


def _split_repo(repo: str) -> tuple[str, str]:
    match = REPO_RE.match(repo.strip())
    if not match:
        raise typer.BadParameter("Expected <owner>/<repo>", param_hint="REPO")
    return match.group("owner"), match.group("repo")


def _emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True, default=str))


def _run(operation: Callable[[PipelineClient], Any]) -> None:
    try:
        client = build_client_from_env()
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    try:
        result = operation(client)
    except GitHubPipelineError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _emit(result)


@app.command()
def files(repo: str, number: int) -> None:
    """List the files changed by a pull request."""
    owner, name = _split_repo(repo)
    _run(
        lambda client: [
            changed.model_dump() for changed in client.list_pull_request_files(owner, name, number)
        ]
    )


@app.command()
def pull(repo: str, number: int) -> None:
    """Print a pull request."""
    owner, name = _split_repo(repo)
    _run(lambda client: client.get_pull_request(owner, name, number))


@app.command()
def comments(repo: str, number: int) -> None:
    """List all comments of an issue or pull request."""
    owner, name = _split_repo(repo)
    issue = RepositoryIssue(owner=owner, repo_name=name, number=number)
    _run(lambda client: client.list_issue_comments(issue))


@app.command()
def reviews(repo: str, number: int) -> None:
    """List the reviews submitted to a pull request."""
    owner, name = _split_repo(repo)
    _run(lambda client: client.list_pull_request_reviews(owner, name, number))


@app.command("rate-limit")
def rate_limit() -> None:
    """Print the remaining core API quota."""
    _run(lambda client: client.get_rate_limit().model_dump(mode="json"))


@app.command()
def config() -> None:
    """Print the effective pipeline settings with the token redacted."""
    _emit(PipelineSettings.from_env().redacted())


if __name__ == "__main__":
    app()
