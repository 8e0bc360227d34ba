from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    APP_NOT_FOUND = "APP_NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INVALID_INPUT = "INVALID_INPUT"


class AppInsightError(Exception):
    """Raised for all expected failure conditions.

    Marketplace tool handlers let it propagate to server.py, which serialises
    it into the MCP error response. The revenue batch loop catches it per
    identifier and records the message instead.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class RateLimitedError(AppInsightError):
    """The upstream answered 429. Callers may back off and retry."""

    def __init__(self, message: str = "Rate limit exceeded. Please try again later.") -> None:
        super().__init__(
            code=ErrorCode.RATE_LIMITED,
            message=message,
            suggestion="Wait before retrying; cached results are still served meanwhile.",
            recoverable=True,
        )


class UpstreamError(AppInsightError):
    """Any other upstream or transport failure."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(
            code=ErrorCode.UPSTREAM_ERROR,
            message=message,
            suggestion="The data provider may be temporarily unavailable. Try again later.",
            recoverable=True,
        )
        self.status_code = status_code
