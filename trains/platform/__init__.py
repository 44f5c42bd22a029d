"""Platform abstraction layer."""

from .http import (
    HttpClient,
    HttpError,
    MockHttpClient,
    RealHttpClient,
)
from .process import (
    CompletedCommand,
    ProcessError,
    run,
    run_captured,
)

__all__ = [
    "CompletedCommand",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "ProcessError",
    "RealHttpClient",
    "run",
    "run_captured",
]
