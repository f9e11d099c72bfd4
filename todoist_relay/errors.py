"""
Error taxonomy shared by the client, the operations facade and both front ends.

Every failure that crosses a layer boundary is a RelayError. Front ends
branch on `error.kind` rather than on the exception class.
"""

import json
from enum import Enum
from typing import Any, Optional

import httpx


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    API = "api"
    NETWORK = "network"
    TIMEOUT = "timeout"


class ConfigError(Exception):
    """Startup configuration is missing or invalid."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid configuration: " + "; ".join(problems))


class RelayError(Exception):
    """Base error with a kind discriminator and kind-specific fields."""

    kind: ErrorKind = ErrorKind.API

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        status: Optional[int] = None,
        code: Optional[Any] = None,
        body: Optional[str] = None,
        details: Optional[list[dict]] = None,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.status = status
        self.code = code
        self.body = body
        self.details = details or []

    def to_dict(self) -> dict:
        """In-band error payload (no HTTP semantics)."""
        payload: dict[str, Any] = {
            "success": False,
            "error": self.message,
            "kind": self.kind.value,
        }
        if self.kind is ErrorKind.VALIDATION:
            payload["details"] = self.details
        else:
            if self.status is not None:
                payload["status"] = self.status
            if self.code is not None:
                payload["code"] = self.code
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r}, status={self.status!r})"


class ValidationError(RelayError):
    """Client-supplied input failed strict schema validation. Never reaches the network."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: Optional[list[dict]] = None):
        super().__init__(message, kind=ErrorKind.VALIDATION, details=details)


class ApiError(RelayError):
    """Upstream returned an error status, an unusable body, or could not be reached."""

    kind = ErrorKind.API

    # Friendlier wording for the statuses Todoist commonly returns
    STATUS_MESSAGES = {
        400: "Bad request",
        401: "Unauthorized - check your Todoist API token",
        403: "Forbidden - insufficient permissions",
        404: "Not found",
        429: "Rate limited - too many requests, try again later",
    }

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        """Build from a non-success upstream response, reading the body best-effort."""
        status = response.status_code
        try:
            body = response.text
        except (UnicodeDecodeError, httpx.ResponseNotRead):
            body = None

        code = None
        if body:
            try:
                parsed = json.loads(body)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                code = parsed.get("error_code") or parsed.get("error_tag")

        reason = cls.STATUS_MESSAGES.get(status, response.reason_phrase or "Upstream error")
        return cls(
            f"Todoist API error: {status} {reason}",
            status=status,
            code=code,
            body=body,
        )

    @classmethod
    def network(cls, exc: Exception) -> "ApiError":
        return cls(
            f"Could not connect to Todoist API: {exc}",
            kind=ErrorKind.NETWORK,
            code="network",
        )

    @classmethod
    def timeout(cls, exc: Exception) -> "ApiError":
        return cls(
            f"Todoist API request timed out: {exc}",
            kind=ErrorKind.TIMEOUT,
            code="timeout",
        )

    @classmethod
    def invalid_response(cls, message: str, status: Optional[int] = None, body: Optional[str] = None) -> "ApiError":
        return cls(
            f"Invalid response from Todoist API: {message}",
            status=status,
            code="invalid_response",
            body=body,
        )
