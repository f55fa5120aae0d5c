"""curless - a fluent builder for single HTTP requests."""

from __future__ import annotations

import logging
from logging import NullHandler

from curless.client import Client
from curless.encoding import ContentType
from curless.exceptions import (
    AttachmentNotFoundError,
    ConfigurationError,
    CurlessError,
    EncodingError,
    JsonDecodeError,
    TransportError,
    UnsupportedContentTypeError,
)
from curless.headers import HeaderBlock, parse_header_blocks
from curless.models import HttpMethod, RawTransactionResult, RequestSpec
from curless.request import RequestBuilder
from curless.response import ResponseView
from curless.transport import HttpxTransport, Transport

__version__ = "0.1.0"

__all__ = (
    "AttachmentNotFoundError",
    "Client",
    "ConfigurationError",
    "ContentType",
    "CurlessError",
    "EncodingError",
    "HeaderBlock",
    "HttpMethod",
    "HttpxTransport",
    "JsonDecodeError",
    "RawTransactionResult",
    "RequestBuilder",
    "RequestSpec",
    "ResponseView",
    "Transport",
    "TransportError",
    "UnsupportedContentTypeError",
    "add_stderr_logger",
    "parse_header_blocks",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(level: int = logging.DEBUG) -> logging.StreamHandler:
    """Attach a StreamHandler to the curless logger, for debugging.

    Returns the handler after adding it.
    """
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


del NullHandler
