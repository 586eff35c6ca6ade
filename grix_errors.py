"""
Error taxonomy for the Grix plugin.

Every failure that leaves a service is one of the classes below. Each carries
an ``ErrorKind`` so callers can switch on ``error.kind`` instead of walking the
class hierarchy.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    INVALID_PARAMETER = "invalid_parameter"
    SERVICE_UNAVAILABLE = "service_unavailable"
    API = "api"
    DOMAIN = "domain"


class GrixError(Exception):
    """Base domain error. Also used directly for workflow conditions."""

    kind = ErrorKind.DOMAIN

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AuthenticationError(GrixError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed. Please check your API credentials."):
        super().__init__(message)


class InvalidParameterError(GrixError):
    kind = ErrorKind.INVALID_PARAMETER


class ServiceUnavailableError(GrixError):
    kind = ErrorKind.SERVICE_UNAVAILABLE

    def __init__(self, message: str = "The Grix service is currently unavailable. Please try again later."):
        super().__init__(message)


class ApiError(GrixError):
    """Remote failure with an HTTP-like status code and the raw response payload."""

    kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        code: int,
        response: Any = None,
        context: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.response = response
        self.context = context


class SignalTimeoutError(GrixError):
    def __init__(self, agent_id: Any = None, attempts: int = 0):
        super().__init__("Timeout waiting for signals")
        self.agent_id = agent_id
        self.attempts = attempts


def normalize_error(error: BaseException, context: Optional[str] = None) -> GrixError:
    """
    Map any raised value into the taxonomy.

    Known domain errors pass through unchanged; everything else becomes an
    ``ApiError`` with code 500 and the stringified error.
    """
    logger.error("Error in %s: %s", context or "unknown context", error)

    if isinstance(error, GrixError):
        return error

    message = str(error) or type(error).__name__
    context_str = f" during {context}" if context else ""
    return ApiError(f"Grix API error{context_str}: {message}", 500, context=context)
