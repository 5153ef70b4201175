"""Network clients for archive endpoints."""

from .client import Client
from .exceptions import (
    APIError,
    ClientError,
    ConnectionError,
    MethodNotAllowedError,
    NotFoundError,
    RedirectError,
    RequestTimeoutError,
)
from .twic_client import TwicClient, endpoint_chain

__all__ = [
    "Client",
    "TwicClient",
    "endpoint_chain",
    "ClientError",
    "ConnectionError",
    "RequestTimeoutError",
    "APIError",
    "RedirectError",
    "NotFoundError",
    "MethodNotAllowedError",
]
