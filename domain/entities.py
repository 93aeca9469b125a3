"""
Domain entities for the MyWaifuList client.
These are the value objects and errors shared by the executor and the endpoints.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

# === Enumerations ===


class HTTPMethod(StrEnum):
    """HTTP methods used by the MyWaifuList API."""

    GET = "GET"
    POST = "POST"


class Season(StrEnum):
    """Season a show first premiered in."""

    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    FALL = "fall"


class UserWaifuListType(StrEnum):
    """Waifu lists kept for each user."""

    CREATED = "created"
    LIKE = "like"
    TRASH = "trash"


# === Value Objects ===


class ClientConfig(BaseModel):
    """Connection settings fixed when a client is created (immutable value object)."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., min_length=1)
    api_key: SecretStr
    timeout_ms: int = Field(..., gt=0)
    user_agent: str = Field(..., min_length=1)

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ApiRequest(BaseModel):
    """A single outbound call. Lives for the duration of one request."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    path: str = Field(..., min_length=1)
    query: dict[str, str] = Field(default_factory=dict)
    json_body: Any | None = None

    def describe(self) -> str:
        """Short form used in log lines, e.g. ``GET /waifu/rem``."""
        return f"{self.method.value} {self.path}"


# === Exceptions ===


class DomainException(Exception):
    """Base exception for client errors."""

    pass


class ParameterError(DomainException, ValueError):
    """Raised when a required argument is missing or blank. No request is made."""

    pass


class TransportError(DomainException):
    """Raised when the HTTP exchange fails below the API level (DNS, refused, reset)."""

    pass


class RequestTimeoutError(TransportError, TimeoutError):
    """Raised when the configured deadline elapses before the exchange completes."""

    def __init__(self, message: str, timeout_ms: int):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class DecodeError(TransportError):
    """Raised when a successful response body is not valid JSON."""

    def __init__(self, message: str, body: str):
        super().__init__(message)
        self.body = body


class APIError(DomainException):
    """Raised when the API answers with anything other than HTTP 200."""

    def __init__(self, status: int, body: str, raw: bytes = b""):
        super().__init__(f"MyWaifuList API error {status}: {body}")
        self.status = status
        self.body = body
        # Undecoded body, exact even when it is not valid text
        self.raw = raw or body.encode("utf-8")
