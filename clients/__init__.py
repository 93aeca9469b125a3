"""
HTTP client implementations for the MyWaifuList API.

Provides:
- Request executor with deadline enforcement and error classification
- MyWaifuList client with one coroutine per API endpoint
"""

from clients.base import DEFAULT_USER_AGENT, VERSION, RequestExecutor
from clients.mywaifulist import MyWaifuListClient
from domain.entities import HTTPMethod

__all__ = [
    "DEFAULT_USER_AGENT",
    "HTTPMethod",
    "MyWaifuListClient",
    "RequestExecutor",
    "VERSION",
]
