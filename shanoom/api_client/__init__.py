"""Client library for the shanoom content backend.

This package provides typed access to the user, domain and content endpoints,
a credential store for the bearer token, and the connectivity-aware retry
transport every call goes through.
"""

from .errors import (
    ShanoomError,
    APIError,
    NotLoggedInError,
    UnauthorizedError,
    BadRequestError,
    ServerUnavailableError,
    NoConnectivityError,
    MaxRetriesExceededError,
)

__all__ = [
    "ShanoomError",
    "APIError",
    "NotLoggedInError",
    "UnauthorizedError",
    "BadRequestError",
    "ServerUnavailableError",
    "NoConnectivityError",
    "MaxRetriesExceededError",
]
