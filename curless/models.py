"""Internal data models for curless.

All models use Pydantic v2. RequestSpec is what the builder accumulates,
PreparedRequest is what a transport receives, TransportResult is what it hands
back, and RawTransactionResult is what execute() returns.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


# =============================================================================
# Request Models
# =============================================================================


class HttpMethod(str, Enum):
    """Supported request methods. Anything else is sent as GET."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"

    @classmethod
    def normalize(cls, value: str | HttpMethod) -> HttpMethod:
        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.GET

    @property
    def sends_body(self) -> bool:
        """True for methods that attach the encoded payload."""
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH, HttpMethod.DELETE)


class RequestSpec(BaseModel):
    """Configuration accumulated by a RequestBuilder before execution.

    method and url stay None until set; execute() refuses to run without them.
    Nothing is validated at assignment time.
    """

    method: HttpMethod | None = Field(default=None, description="Normalized HTTP method")
    url: str | None = Field(default=None, description="Absolute target URL")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Request headers, keys as given by the caller"
    )
    query: dict[str, Any] = Field(default_factory=dict, description="Query parameters")
    body: Any = Field(default=None, description="Mapping, sequence, str or bytes payload")
    files: dict[str, str] = Field(
        default_factory=dict, description="Multipart field name -> filesystem path"
    )
    timeout: int = Field(default=10, description="Whole round-trip bound in seconds")
    verify_tls: bool = Field(default=True, description="Verify peer certificate and hostname")
    follow_redirects: bool = Field(default=True, description="Follow 3xx Location hops")


class FilePart(BaseModel):
    """A multipart field backed by a file on disk."""

    model_config = ConfigDict(extra="forbid")

    name: str
    path: str
    filename: str


class MultipartBody(BaseModel):
    """Multipart payload: plain fields plus file attachments, in send order."""

    model_config = ConfigDict(extra="forbid")

    form_fields: list[tuple[str, str]] = Field(default_factory=list)
    attachments: list[FilePart] = Field(default_factory=list)


class PreparedRequest(BaseModel):
    """Everything a transport needs to perform one exchange."""

    model_config = ConfigDict(extra="forbid")

    method: HttpMethod
    url: str = Field(description="Target URL with the query string already appended")
    headers: list[tuple[str, str]] = Field(default_factory=list)
    content: bytes | None = Field(default=None, description="Encoded payload, if any")
    multipart: MultipartBody | None = Field(default=None, description="Multipart payload, if any")
    timeout: int = 10
    verify_tls: bool = True
    follow_redirects: bool = True

    @property
    def header_lines(self) -> list[str]:
        """Headers rendered as "Name: Value" lines."""
        return [f"{name}: {value}" for name, value in self.headers]

    @property
    def has_payload(self) -> bool:
        return self.content is not None or self.multipart is not None


# =============================================================================
# Transaction Result Models
# =============================================================================


class TransportResult(BaseModel):
    """Raw output of one exchange as reported by a transport.

    raw holds the header section immediately followed by the body;
    header_size is the byte length of the header section.
    """

    model_config = ConfigDict(extra="forbid")

    raw: bytes
    header_size: int = Field(ge=0)
    status: int | None = Field(default=None, description="Final status code, if reported")
    info: dict[str, Any] = Field(default_factory=dict, description="Transport metadata bag")

    @field_validator("header_size")
    @classmethod
    def header_size_within_raw(cls, v: int, info: ValidationInfo) -> int:
        raw = info.data.get("raw")
        if raw is not None and v > len(raw):
            raise ValueError("header_size exceeds length of raw response")
        return v


class RawTransactionResult(BaseModel):
    """Normalized outcome of one execute() call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    body: bytes = Field(description="Raw body exactly as received")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Last header block, with Version and Status Code"
    )
    status: int = Field(default=0, description="Final status code, 0 if unreported")
    info: dict[str, Any] = Field(default_factory=dict, description="Transport metadata")
