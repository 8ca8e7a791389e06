"""Reading and parsing of HTTP request heads."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import BinaryIO

HEADER_SIZE = 10240
_MAX_LINE = HEADER_SIZE - 3
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class Method(enum.Enum):
    """Request methods the server understands."""

    GET = "GET"
    POST = "POST"
    HEAD = "HEAD"


class BadRequest(Exception):
    """The request was malformed; answered with 400."""

    status = "400 Bad Request"

    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message)
        self.message = message


class UnsupportedMethod(Exception):
    """The request method is not understood; answered with 501."""

    status = "501 Not Implemented"

    def __init__(
        self,
        message: str = "Not implemented: The request type sent is not understood by the server.",
    ) -> None:
        super().__init__(message)
        self.message = message


@dataclass
class Request:
    """A parsed request head."""

    method: Method
    filename: str
    http_version: str
    query_string: str | None = None
    host: str | None = None
    content_length: int = 0
    content_type: str | None = None
    cookie: str | None = None
    user_agent: str | None = None
    referer: str | None = None


def _hex_value(ch: str) -> int:
    if ch.isdigit() and ch.isascii():
        return ord(ch) - ord("0")
    return ord(ch.lower()) - ord("a") + 10


def url_decode(text: str) -> str:
    """Decode %XX escapes and '+' signs; text without '%' is returned as is."""
    if "%" not in text:
        return text
    raw = text.encode(_ENCODING, _ERRORS).decode("latin-1")
    out = bytearray()
    chars = iter(enumerate(raw))
    for pos, ch in chars:
        if ch == "%":
            if pos + 2 < len(raw) + 0 and pos + 2 <= len(raw) - 1:
                value = (_hex_value(raw[pos + 1]) << 4) | _hex_value(raw[pos + 2])
                out.append(value & 0xFF)
                next(chars)
                next(chars)
        elif ch == "+":
            out.append(ord(" "))
        else:
            out.append(ord(ch))
    return out.decode(_ENCODING, _ERRORS)


def read_head(stream: BinaryIO) -> list[str] | None:
    """Read request lines up to the blank line.

    Returns None when the client closed the connection before a complete
    head arrived.
    """
    lines: list[str] = []
    while True:
        raw = stream.readline(_MAX_LINE)
        if not raw:
            return None
        line = raw.decode(_ENCODING, _ERRORS)
        if line in ("\r\n", "\n"):
            return lines
        if "\n" not in line:
            raise BadRequest("Bad request: Request line was too long.")
        lines.append(line)


def _atol(text: str) -> int:
    text = text.lstrip(" \t\n\r\v\f")
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for ch in text:
        if not ("0" <= ch <= "9"):
            break
        digits += ch
    return sign * int(digits) if digits else 0


_REQUEST_PREFIXES = (
    ("GET ", Method.GET),
    ("POST ", Method.POST),
    ("HEAD ", Method.HEAD),
)

_HEADER_FIELDS = {
    "Host": "host",
    "Content-Type": "content_type",
    "Cookie": "cookie",
    "User-Agent": "user_agent",
    "Referer": "referer",
}


def _parse_request_line(line: str) -> tuple[Method, str, str, str | None]:
    for prefix, method in _REQUEST_PREFIXES:
        if line.startswith(prefix):
            break
    else:
        raise UnsupportedMethod()
    rest = line[len(prefix):]
    if not rest or rest[0] in " \r\n":
        raise BadRequest("Bad request: No filename.")
    version_at = rest.find("HTTP/")
    if version_at < 0:
        raise BadRequest("Bad request: No HTTP version supplied.")
    filename = rest[: max(version_at - 1, 0)]
    version = rest[version_at:].split("\r\n", 1)[0].split("\n", 1)[0]
    query: str | None = None
    if "?" in filename:
        filename, query = filename.split("?", 1)
    return method, filename, version, query


def parse_request(lines: list[str]) -> Request:
    """Build a Request from the lines returned by read_head."""
    request: Request | None = None
    fields: dict[str, object] = {}
    for index, line in enumerate(lines):
        colon = line.find(": ")
        if colon < 0:
            if index > 0:
                raise BadRequest("Bad request: A header line was missing colon.")
            method, filename, version, query = _parse_request_line(line)
            request = Request(
                method=method,
                filename=filename,
                http_version=version,
                query_string=query,
            )
            continue
        if index == 0:
            raise BadRequest("Bad request: First line was not a request.")
        name = line[:colon]
        value = line[colon + 2:]
        if "\r" in value:
            value = value.split("\r", 1)[0]
        else:
            value = value.split("\n", 1)[0]
        if name == "Content-Length":
            fields["content_length"] = max(_atol(value), 0)
        elif name in _HEADER_FIELDS:
            fields[_HEADER_FIELDS[name]] = value

    if request is None:
        raise UnsupportedMethod()
    for key, value in fields.items():
        setattr(request, key, value)

    query = request.query_string
    if (
        not request.filename
        or "'" in request.filename
        or " " in request.filename
        or (query is not None and " " in query)
    ):
        raise BadRequest("Bad request: No filename provided.")
    return request


def resolve_path(filename: str, root: str = "www") -> str:
    """Map a requested filename to a local path under root.

    Raises BadRequest for paths that try to climb out with '..'.
    """
    local = url_decode(str(root) + filename)
    if "/../" in local or local.endswith("/.."):
        raise BadRequest("Bad request")
    return local