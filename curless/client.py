"""Client - One object that builds, sends, and reads requests.

Wraps RequestBuilder and ResponseView behind a single chain:

    client = Client()
    view = client.request("GET", "https://api.example.test/items").query({"page": 2}).send()
    items = client.json()

Each request() call starts a fresh RequestBuilder. The response accessors
read whatever was returned by the latest send().
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from curless.exceptions import ConfigurationError
from curless.headers import HeaderBlock
from curless.request import RequestBuilder
from curless.response import ResponseView
from curless.transport import HttpxTransport, Transport


class Client:
    """Fluent facade over RequestBuilder and ResponseView."""

    def __init__(self, transport: Transport | None = None) -> None:
        """Initialize the client.

        Args:
            transport: Transport shared by every request. Defaults to HttpxTransport.
        """
        self._transport = transport if transport is not None else HttpxTransport()
        self._builder: RequestBuilder | None = None
        self.response: ResponseView | None = None

    def _require_builder(self) -> RequestBuilder:
        if self._builder is None:
            raise ConfigurationError("Call request(method, url) before configuring a request")
        return self._builder

    def _require_response(self) -> ResponseView:
        if self.response is None:
            raise ConfigurationError("No response available; call send() first")
        return self.response

    def request(self, method: str, url: str) -> Client:
        """Start a new request."""
        self._builder = RequestBuilder(self._transport).set_url(url).set_method(method)
        return self

    def headers(self, headers: Mapping[str, str]) -> Client:
        self._require_builder().set_headers(headers)
        return self

    def query(self, query: Mapping[str, Any]) -> Client:
        self._require_builder().set_query(query)
        return self

    def body(self, body: Any) -> Client:
        self._require_builder().set_body(body)
        return self

    def files(self, files: Mapping[str, str]) -> Client:
        self._require_builder().set_files(files)
        return self

    def timeout(self, seconds: int) -> Client:
        self._require_builder().set_timeout(seconds)
        return self

    def verify_tls(self, verify: bool) -> Client:
        self._require_builder().set_verify_tls(verify)
        return self

    def follow_redirects(self, follow: bool) -> Client:
        self._require_builder().set_follow_redirects(follow)
        return self

    def send(self) -> ResponseView:
        """Execute the pending request and keep its response."""
        self.response = ResponseView(self._require_builder().execute())
        return self.response

    def get_body(self) -> bytes:
        return self._require_response().body()

    def get_headers(self) -> HeaderBlock:
        return self._require_response().headers()

    def get_status(self) -> int:
        return self._require_response().status()

    def get_info(self) -> dict[str, Any]:
        return self._require_response().info()

    def json(self) -> Any:
        return self._require_response().json()

    # Convenience verbs

    def _send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        files: Mapping[str, str] | None = None,
        timeout: int | None = None,
    ) -> ResponseView:
        self.request(method, url)
        if headers:
            self.headers(headers)
        if query:
            self.query(query)
        if body is not None:
            self.body(body)
        if files:
            self.files(files)
        if timeout is not None:
            self.timeout(timeout)
        return self.send()

    def get(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a GET request."""
        return self._send("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a POST request."""
        return self._send("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a PUT request."""
        return self._send("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a PATCH request."""
        return self._send("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a DELETE request."""
        return self._send("DELETE", url, **kwargs)

    def head(self, url: str, **kwargs: Any) -> ResponseView:
        """Make a HEAD request."""
        return self._send("HEAD", url, **kwargs)
