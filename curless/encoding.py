"""Body Encoding - Turns a request body into bytes according to Content-Type.

Three encodings are recognized: JSON, form-urlencoded, and multipart/form-data.
ContentType is a closed enum over them and encode_body() dispatches on it with
an explicit failure for anything else, so an unknown type can never fall
through to "send nothing".

Form and query strings follow the PHP http_build_query conventions: nested
mappings and sequences flatten to bracketed keys, booleans become 1/0, None
values are dropped, and spaces encode as "+".
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from enum import Enum
from typing import Any
from urllib.parse import quote_plus

from curless.exceptions import (
    AttachmentNotFoundError,
    EncodingError,
    UnsupportedContentTypeError,
)
from curless.models import FilePart, MultipartBody


class ContentType(str, Enum):
    """Content types the builder knows how to encode."""

    JSON = "application/json"
    FORM = "application/x-www-form-urlencoded"
    MULTIPART = "multipart/form-data"

    @classmethod
    def from_header(cls, value: str | None) -> ContentType:
        """Resolve a Content-Type header value, ignoring parameters.

        Raises:
            UnsupportedContentTypeError: If value is None or not recognized.
        """
        if value is None:
            raise UnsupportedContentTypeError(None)
        media_type = value.split(";", 1)[0].strip().lower()
        for member in cls:
            if member.value == media_type:
                return member
        raise UnsupportedContentTypeError(value)


def is_empty_body(body: Any) -> bool:
    """True for None, empty strings/bytes, and empty collections."""
    if body is None:
        return True
    if isinstance(body, (str, bytes, bytearray, Mapping, list, tuple)):
        return len(body) == 0
    return False


def find_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup on a plain mapping."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


# =============================================================================
# Query / form encoding
# =============================================================================


def _scalar_to_str(value: Any) -> str:
    if value is True:
        return "1"
    if value is False:
        return "0"
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def flatten_pairs(data: Mapping[str, Any] | list | tuple, prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested data to (key, value) pairs using bracket notation.

    {"a": {"b": 1}, "c": ["x", "y"]} -> [("a[b]", "1"), ("c[0]", "x"), ("c[1]", "y")]
    """
    if isinstance(data, Mapping):
        items = [(str(key), value) for key, value in data.items()]
    else:
        items = [(str(index), value) for index, value in enumerate(data)]

    pairs: list[tuple[str, str]] = []
    for key, value in items:
        full_key = f"{prefix}[{key}]" if prefix else key
        if value is None:
            continue
        if isinstance(value, (Mapping, list, tuple)):
            pairs.extend(flatten_pairs(value, full_key))
        else:
            pairs.append((full_key, _scalar_to_str(value)))
    return pairs


def encode_form(data: Mapping[str, Any] | list | tuple) -> str:
    """Form-encode data as key=value pairs joined with "&"."""
    return "&".join(
        f"{quote_plus(key)}={quote_plus(value)}" for key, value in flatten_pairs(data)
    )


def encode_query(url: str, query: Mapping[str, Any]) -> str:
    """Append query to url as a "?"-prefixed query string.

    Returns url unchanged when query is empty.
    """
    if not query:
        return url
    return f"{url}?{encode_form(query)}"


# =============================================================================
# Body encoders
# =============================================================================


def encode_json(body: Any) -> bytes:
    """Serialize body as compact JSON with non-ASCII characters and "/" unescaped.

    str and bytes bodies are taken to be JSON text already and pass through.

    Raises:
        EncodingError: If body cannot be serialized (cyclic, unsupported type).
    """
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    try:
        text = json.dumps(body, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"JSON encode error: {e}") from e
    return text.encode("utf-8")


def encode_form_body(body: Any) -> bytes:
    """Form-encode a mapping body. str and bytes bodies pass through."""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if not isinstance(body, (Mapping, list, tuple)):
        raise EncodingError(
            f"Form encode error: expected a mapping, got {type(body).__name__}"
        )
    return encode_form(body).encode("ascii")


def encode_multipart(body: Any, files: Mapping[str, str]) -> MultipartBody:
    """Merge body fields with file attachments into a MultipartBody.

    A mapping body contributes plain fields; any other body contributes none.
    A file field replaces a plain field of the same name.

    Raises:
        AttachmentNotFoundError: If a file path does not exist.
    """
    plain: dict[str, str] = {}
    if isinstance(body, Mapping):
        plain = dict(flatten_pairs(body))

    attachments: list[FilePart] = []
    for field_name, path in files.items():
        if not os.path.exists(path):
            raise AttachmentNotFoundError(field_name, path)
        plain.pop(field_name, None)
        attachments.append(
            FilePart(name=field_name, path=str(path), filename=os.path.basename(path))
        )

    return MultipartBody(form_fields=list(plain.items()), attachments=attachments)


def encode_body(
    body: Any,
    headers: Mapping[str, str],
    files: Mapping[str, str] | None = None,
) -> bytes | MultipartBody | None:
    """Encode body according to the Content-Type found in headers.

    Returns None when there is nothing to send.

    Raises:
        UnsupportedContentTypeError: Content-Type missing or not recognized.
        EncodingError: Serialization failed.
        AttachmentNotFoundError: A multipart file path does not exist.
    """
    if is_empty_body(body):
        return None

    content_type = ContentType.from_header(find_header(headers, "Content-Type"))

    if content_type is ContentType.JSON:
        return encode_json(body)
    if content_type is ContentType.FORM:
        return encode_form_body(body)
    if content_type is ContentType.MULTIPART:
        return encode_multipart(body, files or {})
    raise UnsupportedContentTypeError(content_type.value)
