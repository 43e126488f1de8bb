"""Exception hierarchy for the BankID client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import ErrorCode


class BankIDError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(BankIDError, ValueError):
    """Raised when a client is built from an unusable profile."""


class InvalidRequest(BankIDError, ValueError):
    """Raised when call arguments are rejected before anything is sent."""


class InvalidPersonalNumber(InvalidRequest):
    """Raised when text cannot be parsed as a personal identity number."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid personal number: {reason}")
        self.reason = reason


class TransportFailure(BankIDError):
    """No HTTP status was received: connection, TLS or timeout failure.

    The originating ``httpx`` exception is kept both as ``cause`` and as the
    exception's ``__cause__``. Retrying is left to the caller.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Request failed: {cause!r}")
        self.cause = cause


class ServerError(BankIDError):
    """Business error reported by the service in a non-2xx response.

    Branch on ``code``; ``details`` is free text meant for diagnostics only.
    """

    def __init__(
        self, code: "ErrorCode", details: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(f"{code.value}: {details}")
        self.code = code
        self.details = details
        self.status_code = status_code


class UnexpectedResponse(BankIDError):
    """The response body did not have the shape the protocol promises.

    Usually means the client and the service speak different API versions.
    """

    def __init__(
        self, message: str, status_code: Optional[int] = None, body: bytes = b""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


__all__ = [
    "BankIDError",
    "ConfigurationError",
    "InvalidPersonalNumber",
    "InvalidRequest",
    "ServerError",
    "TransportFailure",
    "UnexpectedResponse",
]
