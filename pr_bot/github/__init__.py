"""Resilient GitHub invocation pipeline: middleware chain, transports and pipeline client."""

from pr_bot.github.client import PipelineClient, build_client_from_env, default_middlewares
from pr_bot.github.contracts import (
    GitHubPipelineError,
    InvocationContext,
    MalformedPayloadError,
    PaginationLimitExceeded,
    QuotaProbeError,
    RemoteFailure,
    RetriesExhaustedError,
    TransportError,
    TransportResponse,
    UnitOfWorkResult,
)
from pr_bot.github.middleware import Middleware, MiddlewareChain
from pr_bot.github.pagination import PaginationMiddleware
from pr_bot.github.quota import QuotaMiddleware
from pr_bot.github.retry import RetryMiddleware

__all__ = [
    "GitHubPipelineError",
    "InvocationContext",
    "MalformedPayloadError",
    "Middleware",
    "MiddlewareChain",
    "PaginationLimitExceeded",
    "PaginationMiddleware",
    "PipelineClient",
    "QuotaMiddleware",
    "QuotaProbeError",
    "RemoteFailure",
    "RetriesExhaustedError",
    "RetryMiddleware",
    "TransportError",
    "TransportResponse",
    "UnitOfWorkResult",
    "build_client_from_env",
    "default_middlewares",
]
