"""Failure taxonomy for chat requests and mapping from upstream SDK errors."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

import openai


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    BAD_REQUEST = "bad_request"
    MODEL_UNAVAILABLE = "model_unavailable"
    NETWORK = "network"
    UNKNOWN = "unknown"


# User-safe reply text per failure kind. Never includes upstream message text.
REPLIES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_INPUT: "Please provide a valid message.",
    ErrorKind.UNAUTHORIZED: "Sorry, there was an authentication error with our AI provider. Please contact support.",
    ErrorKind.RATE_LIMITED: "Sorry, we're receiving too many requests right now. Please try again later.",
    ErrorKind.BAD_REQUEST: "Sorry, that request was invalid. Please rephrase your message and try again.",
    ErrorKind.MODEL_UNAVAILABLE: "Sorry, the AI model is currently unavailable. Please try again later.",
    ErrorKind.NETWORK: "Sorry, there was a network issue reaching our AI provider. Please try again.",
    ErrorKind.UNKNOWN: "Sorry, something went wrong.",
}

STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.UNAUTHORIZED: 500,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.BAD_REQUEST: 500,
    ErrorKind.MODEL_UNAVAILABLE: 500,
    ErrorKind.NETWORK: 500,
    ErrorKind.UNKNOWN: 500,
}

_MODEL_CODES = {"model_not_found"}
_QUOTA_CODES = {"insufficient_quota", "rate_limit_exceeded"}


class ChatError(Exception):
    """A request failure already translated into a reply and HTTP status."""

    def __init__(
        self,
        kind: ErrorKind,
        *,
        reply: Optional[str] = None,
        model: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.reply = reply or REPLIES[kind]
        self.model = model
        self.upstream_status = upstream_status
        super().__init__(f"{kind.value}: {self.reply}")

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def details(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value}
        if self.model:
            out["model"] = self.model
        if self.upstream_status is not None:
            out["upstreamStatus"] = self.upstream_status
        return out


def _error_code(exc: BaseException) -> str:
    code = getattr(exc, "code", None)
    if code is None:
        body = getattr(exc, "body", None)
        if isinstance(body, dict):
            code = body.get("code") or (body.get("error") or {}).get("code")
    return str(code or "").lower()


def classify_upstream_error(exc: BaseException) -> ErrorKind:
    """Map an exception raised by the completion SDK onto an ErrorKind."""
    if isinstance(exc, ChatError):
        return exc.kind
    if isinstance(exc, openai.APIConnectionError):
        # Includes APITimeoutError
        return ErrorKind.NETWORK

    code = _error_code(exc)
    if code in _MODEL_CODES or isinstance(exc, openai.NotFoundError):
        return ErrorKind.MODEL_UNAVAILABLE
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ErrorKind.UNAUTHORIZED
    if isinstance(exc, openai.RateLimitError) or code in _QUOTA_CODES:
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, (openai.BadRequestError, openai.UnprocessableEntityError)):
        return ErrorKind.BAD_REQUEST
    return ErrorKind.UNKNOWN


def from_upstream(exc: BaseException, model: Optional[str] = None) -> ChatError:
    if isinstance(exc, ChatError):
        return exc
    return ChatError(
        classify_upstream_error(exc),
        model=model,
        upstream_status=getattr(exc, "status_code", None),
    )


def redact(text: str, secret: Optional[str]) -> str:
    """Mask ``secret`` wherever it appears in ``text``."""
    if not secret:
        return text
    return (text or "").replace(secret, "***")
