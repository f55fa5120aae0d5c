"""Header Block Parser - Splits a raw response header section into blocks.

One exchange can carry several header blocks: a provisional "100 Continue",
or one block per redirect hop, followed by the final response. Each block
starts at a status line ("HTTP/...") and ends at a blank line. Only the last
block describes the final response.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any

STATUS_LINE_PREFIX = "HTTP/"
VERSION_KEY = "Version"
STATUS_CODE_KEY = "Status Code"


class HeaderBlock(MutableMapping):
    """A dict-like container for one block of HTTP headers.

    Names are compared case-insensitively; iteration yields the casing that
    was first seen for each name. Setting an existing name replaces its value,
    so a header repeated within one block keeps its last value.

    >>> block = HeaderBlock({"Content-Type": "text/plain"})
    >>> block["content-type"]
    'text/plain'
    >>> list(block)
    ['Content-Type']
    """

    def __init__(self, headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        self._container: dict[str, tuple[str, str]] = {}
        if headers is not None:
            self.update(headers)

    def __setitem__(self, key: str, value: str) -> None:
        lowered = key.lower()
        if lowered in self._container:
            key = self._container[lowered][0]
        self._container[lowered] = (key, value)

    def __getitem__(self, key: str) -> str:
        return self._container[key.lower()][1]

    def __delitem__(self, key: str) -> None:
        del self._container[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._container

    def __iter__(self) -> Iterator[str]:
        for key, _ in self._container.values():
            yield key

    def __len__(self) -> int:
        return len(self._container)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Mapping):
            return False
        return {k.lower(): v for k, v in self.items()} == {
            str(k).lower(): v for k, v in other.items()
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    def copy(self) -> HeaderBlock:
        return type(self)(self.items())

    @property
    def version(self) -> str | None:
        """HTTP version token from the block's status line."""
        return self.get(VERSION_KEY)

    @property
    def status_code(self) -> int | None:
        """Numeric status from the block's status line, if parseable."""
        raw = self.get(STATUS_CODE_KEY)
        if not raw:
            return None
        code = raw.split(" ", 1)[0]
        return int(code) if code.isdigit() else None


def parse_header_blocks(raw: str | bytes) -> list[HeaderBlock]:
    """Parse a raw header section into an ordered list of header blocks.

    Lines are CRLF-separated. A status line opens a new block seeded with
    Version and Status Code; a blank line closes the open block; any other
    line is split on its first colon. Lines without a colon are ignored, as
    are header lines that appear before any status line.

    Returns an empty list for an empty header section.
    """
    if isinstance(raw, bytes):
        # Header bytes are ISO-8859-1 on the wire
        raw = raw.decode("iso-8859-1")

    blocks: list[HeaderBlock] = []
    current: HeaderBlock | None = None

    for line in raw.split("\r\n"):
        line = line.strip()
        if not line:
            if current is not None:
                blocks.append(current)
                current = None
            continue

        if line.startswith(STATUS_LINE_PREFIX):
            if current is not None:
                blocks.append(current)
            version, _, status = line.partition(" ")
            current = HeaderBlock()
            current[VERSION_KEY] = version.strip()
            current[STATUS_CODE_KEY] = status.strip()
            continue

        name, sep, value = line.partition(":")
        if sep and current is not None:
            current[name.strip()] = value.strip()

    if current is not None:
        blocks.append(current)

    return blocks


def last_header_block(raw: str | bytes) -> HeaderBlock:
    """Return the final response's header block, or an empty block if none."""
    blocks = parse_header_blocks(raw)
    return blocks[-1] if blocks else HeaderBlock()


def render_header_section(status_line: str, headers: Iterable[tuple[str, str]]) -> str:
    """Render one header block the way it appears on the wire, blank line included."""
    lines = [status_line]
    lines.extend(f"{name}: {value}" for name, value in headers)
    return "\r\n".join(lines) + "\r\n\r\n"
