"""RequestBuilder - Accumulates one request and executes it.

Setters are pure: they store what they are given and return the builder.
All validation happens in execute(), before the transport is touched.

Usage:
    result = (
        RequestBuilder()
        .set_method("POST")
        .set_url("https://api.example.test/items")
        .set_headers({"Content-Type": "application/json"})
        .set_body({"name": "widget"})
        .execute()
    )
    view = ResponseView(result)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from curless.encoding import encode_body, encode_query
from curless.exceptions import ConfigurationError
from curless.headers import last_header_block
from curless.models import (
    HttpMethod,
    MultipartBody,
    PreparedRequest,
    RawTransactionResult,
    RequestSpec,
    TransportResult,
)
from curless.transport import HttpxTransport, Transport

log = logging.getLogger(__name__)


class RequestBuilder:
    """Fluent builder for a single HTTP request.

    A builder describes exactly one request. Construct a fresh one per
    request; instances are not meant to be reused or shared across threads.
    """

    def __init__(self, transport: Transport | None = None) -> None:
        """Initialize the builder.

        Args:
            transport: Transport used by execute(). Defaults to HttpxTransport.
        """
        self._spec = RequestSpec()
        self._transport = transport if transport is not None else HttpxTransport()

    @property
    def spec(self) -> RequestSpec:
        """The accumulated configuration (a copy)."""
        return self._spec.model_copy(deep=True)

    def set_method(self, method: str | HttpMethod) -> RequestBuilder:
        """Set the HTTP method. Unrecognized methods are sent as GET."""
        self._spec.method = HttpMethod.normalize(method)
        return self

    def set_url(self, url: str) -> RequestBuilder:
        self._spec.url = url
        return self

    def set_headers(self, headers: Mapping[str, str]) -> RequestBuilder:
        """Replace the request headers."""
        self._spec.headers = dict(headers)
        return self

    def set_query(self, query: Mapping[str, Any]) -> RequestBuilder:
        """Replace the query parameters appended to the URL."""
        self._spec.query = dict(query)
        return self

    def set_body(self, body: Any) -> RequestBuilder:
        """Set the request body (mapping, sequence, str, or bytes)."""
        self._spec.body = body
        return self

    def set_files(self, files: Mapping[str, str]) -> RequestBuilder:
        """Set multipart file fields as field name -> filesystem path."""
        self._spec.files = {name: str(path) for name, path in files.items()}
        return self

    def set_timeout(self, seconds: int) -> RequestBuilder:
        self._spec.timeout = seconds
        return self

    def set_verify_tls(self, verify: bool) -> RequestBuilder:
        self._spec.verify_tls = verify
        return self

    def set_follow_redirects(self, follow: bool) -> RequestBuilder:
        self._spec.follow_redirects = follow
        return self

    def _validate(self) -> tuple[HttpMethod, str]:
        spec = self._spec
        if spec.method is None or not spec.url:
            raise ConfigurationError(
                "URL and HTTP method must be set before calling execute()"
            )
        if isinstance(spec.timeout, bool) or not isinstance(spec.timeout, int) or spec.timeout <= 0:
            raise ConfigurationError(
                f"Timeout must be a positive number of seconds, got {spec.timeout!r}"
            )
        return spec.method, spec.url

    def prepare(self) -> PreparedRequest:
        """Validate and encode the request without sending it.

        Returns:
            PreparedRequest ready for a transport.

        Raises:
            ConfigurationError: Method or URL missing, or timeout not positive.
            UnsupportedContentTypeError: Body set without a recognized Content-Type.
            EncodingError: Body serialization failed.
            AttachmentNotFoundError: A multipart file path does not exist.
        """
        method, url = self._validate()
        spec = self._spec

        encoded = encode_body(spec.body, spec.headers, spec.files)

        return PreparedRequest(
            method=method,
            url=encode_query(url, spec.query),
            headers=[(str(name), str(value)) for name, value in spec.headers.items()],
            content=encoded if isinstance(encoded, bytes) else None,
            multipart=encoded if isinstance(encoded, MultipartBody) else None,
            timeout=spec.timeout,
            verify_tls=spec.verify_tls,
            follow_redirects=spec.follow_redirects,
        )

    def execute(self) -> RawTransactionResult:
        """Perform the request and return the normalized result.

        Returns:
            RawTransactionResult with body, final header block, status, and
            transport metadata.

        Raises:
            ConfigurationError, UnsupportedContentTypeError, EncodingError,
            AttachmentNotFoundError: Before any network I/O.
            TransportError: If the exchange fails.
        """
        prepared = self.prepare()
        log.debug("Dispatching %s %s", prepared.method.value, prepared.url)
        result = self._transport.perform(prepared)
        return self._convert_result(result)

    @staticmethod
    def _convert_result(result: TransportResult) -> RawTransactionResult:
        """Split raw transport output into headers and body."""
        header_section = result.raw[: result.header_size]
        body = result.raw[result.header_size :]

        headers = last_header_block(header_section)
        status = result.status if result.status is not None else result.info.get("http_code", 0)

        return RawTransactionResult(
            body=body,
            headers=dict(headers.items()),
            status=status or 0,
            info=dict(result.info),
        )
