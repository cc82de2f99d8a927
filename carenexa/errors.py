"""Error taxonomy shared by the domain modules and the API layer.

Every error carries the HTTP status it maps to and whether the caller still
received a degraded answer (``fallback``). The FastAPI exception handlers in
``api/server.py`` turn these into ``{"error": ..., "fallback": ...}`` bodies.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from openai import APIStatusError, RateLimitError


class CareNexaError(Exception):
    status_code: int = 500
    fallback: bool = False

    def __init__(self, message: str, *, fallback: Optional[bool] = None) -> None:
        super().__init__(message)
        self.message = message
        if fallback is not None:
            self.fallback = fallback

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message, "fallback": self.fallback}


class ValidationError(CareNexaError):
    """Missing or malformed required field."""

    status_code = 400


class RateLimitExceeded(CareNexaError):
    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Try again in a minute.") -> None:
        super().__init__(message)


class UpstreamUnavailable(CareNexaError):
    """The language-model provider failed, timed out or returned unusable output."""

    status_code = 503
    fallback = True

    def __init__(self, message: str, *, last_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class NotFound(CareNexaError):
    status_code = 404


class ConfigurationError(CareNexaError):
    """A required setting (usually the LLM credential) is missing."""

    status_code = 500

    def __init__(self, message: str, *, expected: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.expected = list(expected or [])

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if self.expected:
            payload["expected"] = self.expected
        return payload


class InternalError(CareNexaError):
    status_code = 500


def is_rate_limit_error(exc: BaseException) -> bool:
    """True if this is a provider rate-limit (429) error."""
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, APIStatusError) and getattr(exc, "status_code", None) == 429:
        return True
    return False


def format_provider_error(exc: BaseException) -> str:
    """Return the most useful message from a provider exception for logs."""
    msg = getattr(exc, "message", None) or getattr(exc, "body", None)
    if isinstance(msg, dict) and "error" in msg:
        err = msg["error"]
        if isinstance(err, dict) and "message" in err:
            return str(err["message"])
        return str(err)
    if msg:
        return str(msg)
    return str(exc) or exc.__class__.__name__
