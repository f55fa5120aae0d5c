"""Transport - Performs the network exchange for a prepared request.

RequestBuilder only depends on the Transport protocol: take a PreparedRequest,
return a TransportResult (raw header section plus body, header length, status,
metadata bag), or raise TransportError. HttpxTransport is the default
implementation.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from typing import Any, Protocol

import httpx

from curless.exceptions import EncodingError, TransportError
from curless.headers import render_header_section
from curless.models import HttpMethod, MultipartBody, PreparedRequest, TransportResult

log = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can perform one HTTP exchange."""

    def perform(self, request: PreparedRequest) -> TransportResult:
        """Perform the exchange.

        Raises:
            TransportError: If the exchange could not complete.
        """
        ...


def _status_line(response: httpx.Response) -> str:
    version = response.http_version or "HTTP/1.1"
    reason = response.reason_phrase
    if reason:
        return f"{version} {response.status_code} {reason}"
    return f"{version} {response.status_code}"


def _raw_header_pairs(response: httpx.Response) -> list[tuple[str, str]]:
    """Header pairs with the casing the server sent."""
    return [
        (name.decode("latin-1"), value.decode("latin-1"))
        for name, value in response.headers.raw
    ]


def build_header_section(response: httpx.Response) -> bytes:
    """Render every hop's headers, redirects first, as one raw header section."""
    section = "".join(
        render_header_section(_status_line(hop), _raw_header_pairs(hop))
        for hop in [*response.history, response]
    )
    return section.encode("latin-1")


def _check_deadline(deadline: float, timeout: int) -> None:
    if time.perf_counter() > deadline:
        raise TransportError(f"Request timeout: exchange took longer than {timeout}s")


class HttpxTransport:
    """Transport backed by httpx.

    One httpx.Client is opened per perform() call and closed before it
    returns or raises. Attachment files are opened inside the same scope.

    Usage:
        transport = HttpxTransport()
        result = transport.perform(prepared)

    For tests, pass an httpx transport such as httpx.MockTransport:
        transport = HttpxTransport(transport=httpx.MockTransport(handler))
    """

    def __init__(self, transport: httpx.BaseTransport | None = None) -> None:
        """Initialize the transport.

        Args:
            transport: Optional httpx transport to mount on each client.
        """
        self._transport = transport

    def _build_client_kwargs(self, request: PreparedRequest) -> dict[str, Any]:
        # Per-phase httpx limits; the overall deadline is enforced in perform()
        kwargs: dict[str, Any] = {
            "verify": request.verify_tls,
            "timeout": float(request.timeout),
            "follow_redirects": request.follow_redirects,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return kwargs

    @staticmethod
    def _build_headers(request: PreparedRequest) -> list[tuple[bytes, bytes]]:
        """Header pairs as bytes: names latin-1, values UTF-8.

        Raises:
            EncodingError: If a header name is not latin-1 or a value not UTF-8 encodable.
        """
        headers = []
        for line in request.header_lines:
            name, _, value = line.partition(":")
            name = name.strip()
            # httpx supplies the boundary-bearing multipart Content-Type itself
            if request.multipart is not None and name.lower() == "content-type":
                continue
            try:
                headers.append((name.encode("latin-1"), value.strip().encode("utf-8")))
            except UnicodeEncodeError as e:
                raise EncodingError(f"Header {name!r} cannot be encoded: {e}") from e
        return headers

    @staticmethod
    def _build_files(multipart: MultipartBody, stack: ExitStack) -> list[tuple[str, Any]]:
        files: list[tuple[str, Any]] = [
            (name, (None, value.encode("utf-8"))) for name, value in multipart.form_fields
        ]
        for part in multipart.attachments:
            handle = stack.enter_context(open(part.path, "rb"))
            files.append((part.name, (part.filename, handle)))
        return files

    @staticmethod
    def _read_body(response: httpx.Response, deadline: float, timeout: int) -> bytes:
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            _check_deadline(deadline, timeout)
        return b"".join(chunks)

    def perform(self, request: PreparedRequest) -> TransportResult:
        """Perform the exchange described by request.

        request.timeout bounds the whole exchange, redirects and body
        download included. The body is streamed so the deadline is checked
        between chunks.

        Args:
            request: The prepared request.

        Returns:
            TransportResult with the raw header section and body.

        Raises:
            TransportError: If the request fails (connection, TLS, timeout, bad URL).
            EncodingError: If a header name cannot be put on the wire.
        """
        send_payload = request.method.sends_body and request.has_payload
        headers = self._build_headers(request)

        with ExitStack() as stack:
            client = stack.enter_context(httpx.Client(**self._build_client_kwargs(request)))

            request_kwargs: dict[str, Any] = {"headers": headers}

            try:
                if send_payload and request.multipart is not None:
                    request_kwargs["files"] = self._build_files(request.multipart, stack)
                elif send_payload:
                    request_kwargs["content"] = request.content

                start_time = time.perf_counter()
                deadline = start_time + request.timeout
                with client.stream(request.method.value, request.url, **request_kwargs) as response:
                    _check_deadline(deadline, request.timeout)
                    body = self._read_body(response, deadline, request.timeout)
                total_time = time.perf_counter() - start_time
            except httpx.TimeoutException as e:
                raise TransportError(f"Request timeout: {e}") from e
            except httpx.ConnectError as e:
                raise TransportError(f"Connection error: {e}") from e
            except httpx.RequestError as e:
                raise TransportError(f"Request error: {e}") from e
            except httpx.InvalidURL as e:
                raise TransportError(f"Invalid URL: {e}") from e
            except OSError as e:
                # Attachment removed between validation and send
                raise TransportError(f"I/O error: {e}") from e

        log.debug(
            '"%s %s" %s %s (%d redirects)',
            request.method.value,
            request.url,
            response.http_version,
            response.status_code,
            len(response.history),
        )
        return self._convert_response(request, response, body, total_time)

    @staticmethod
    def _convert_response(
        request: PreparedRequest,
        response: httpx.Response,
        body: bytes,
        total_time: float,
    ) -> TransportResult:
        header_section = build_header_section(response)
        if request.method is HttpMethod.HEAD:
            body = b""

        info: dict[str, Any] = {
            "url": str(response.url),
            "primary_url": request.url,
            "method": request.method.value,
            "http_code": response.status_code,
            "content_type": response.headers.get("content-type"),
            "header_size": len(header_section),
            "size_download": len(body),
            "redirect_count": len(response.history),
            "total_time": total_time,
            "http_version": response.http_version,
        }

        return TransportResult(
            raw=header_section + body,
            header_size=len(header_section),
            status=response.status_code,
            info=info,
        )
