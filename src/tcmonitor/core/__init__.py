"""Core primitives shared across tcmonitor modules."""

from tcmonitor.core.errors import (
    APIError,
    AuthenticationFailure,
    ConfigurationError,
    ExitCode,
    MalformedInstanceError,
    PartialListingFailure,
    TcMonitorError,
    TransportFailure,
    main_with_error_handling,
)

__all__ = [
    "APIError",
    "AuthenticationFailure",
    "ConfigurationError",
    "ExitCode",
    "MalformedInstanceError",
    "PartialListingFailure",
    "TcMonitorError",
    "TransportFailure",
    "main_with_error_handling",
]
