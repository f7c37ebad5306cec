"""
Error taxonomy for the tcmonitor connector.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Provider error (Tencent Cloud API failure)
- 12: Authentication failure reported by the API
- 127: Unknown/internal error

Propagation rules differ by path: a bad instance is dropped from its batch,
a lost listing page degrades the listing, and auth/transport failures are
swallowed while querying but reported verbatim by the health probe.
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    AUTH_ERROR = 12
    UNKNOWN_ERROR = 127


class TcMonitorError(Exception):
    """Base exception for tcmonitor errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(TcMonitorError):
    """Raised for configuration-related errors (unknown service, bad settings)."""

    exit_code = ExitCode.CONFIG_ERROR


class APIError(TcMonitorError):
    """The API answered with an error envelope."""

    exit_code = ExitCode.PROVIDER_ERROR

    def __init__(self, code: str, message: str, service: str = ""):
        super().__init__(f"{code}: {message}", {"service": service, "code": code})
        self.code = code
        self.api_message = message
        self.service = service


class AuthenticationFailure(APIError):
    """The error envelope reports rejected credentials."""

    exit_code = ExitCode.AUTH_ERROR


class TransportFailure(TcMonitorError):
    """No usable response: network error or non-2xx HTTP status."""

    exit_code = ExitCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status_text: str = "",
        data: Any = None,
        retryable: bool = False,
    ):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code
        self.status_text = status_text
        self.data = data
        self.retryable = retryable


class PartialListingFailure(TcMonitorError):
    """One page of a parallel listing could not be fetched."""

    exit_code = ExitCode.PROVIDER_ERROR

    def __init__(self, offset: int, limit: int, cause: BaseException):
        super().__init__(
            f"listing page at offset {offset} failed: {cause}",
            {"offset": offset, "limit": limit},
        )
        self.offset = offset
        self.limit = limit
        self.cause = cause


class MalformedInstanceError(TcMonitorError):
    """A resolved instance literal is not a JSON object."""

    exit_code = ExitCode.CONFIG_ERROR

    def __init__(self, literal: str, reason: str):
        super().__init__(f"malformed instance: {reason}", {"literal": literal[:200]})
        self.literal = literal


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI entry points that converts exceptions to exit codes.

    Exit codes:
        - TcMonitorError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except TcMonitorError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator

