"""ResponseView - Read-only accessors over one RawTransactionResult."""

from __future__ import annotations

import json
from typing import Any

from curless.exceptions import JsonDecodeError
from curless.headers import HeaderBlock
from curless.models import RawTransactionResult

# Bytes of body included in a JSON decode error message
JSON_ERROR_PREVIEW_BYTES = 200


class ResponseView:
    """Typed view of a completed transaction.

    Usage:
        view = ResponseView(builder.execute())
        if view.status() == 200:
            data = view.json()
    """

    __slots__ = ("_result",)

    def __init__(self, result: RawTransactionResult) -> None:
        self._result = result

    def __repr__(self) -> str:
        return f"<ResponseView [{self.status()}]>"

    def body(self) -> bytes:
        """Raw body exactly as received."""
        return self._result.body

    def headers(self) -> HeaderBlock:
        """Final response headers, looked up case-insensitively."""
        return HeaderBlock(self._result.headers.items())

    def status(self) -> int:
        """Numeric status code, 0 if the transport did not report one."""
        return self._result.status or 0

    def info(self) -> dict[str, Any]:
        """Body, headers, status, and transport metadata as one mapping."""
        return self._result.model_dump()

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            JsonDecodeError: With the decode diagnostic, the status code, and
                the first 200 bytes of the body.
        """
        body = self._result.body
        try:
            return json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            preview = body[:JSON_ERROR_PREVIEW_BYTES].decode("utf-8", errors="replace")
            raise JsonDecodeError(str(e), self.status(), preview) from e
