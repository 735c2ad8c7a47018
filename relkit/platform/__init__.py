"""Platform abstraction layer: subprocesses and HTTP."""

from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient
from .process import ProcessError, run

__all__ = [
    # http
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    # process
    "ProcessError",
    "run",
]
