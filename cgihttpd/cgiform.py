"""Form input for CGI programs: query strings and url-encoded POST bodies."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from typing import BinaryIO, Mapping
from urllib.parse import parse_qsl

_INTEGER = re.compile(r"[+-]?\d+")


@dataclass
class Form:
    """Submitted form fields, each name mapped to its values in order."""

    fields: dict[str, list[str]] = field(default_factory=dict)

    def get(self, name: str) -> str | None:
        """The first value of a field, or None when it was not sent."""
        values = self.fields.get(name)
        return values[0] if values else None

    def string(self, name: str, max_length: int | None = None) -> str:
        """A field's value with line breaks normalised to '\\n'.

        Missing fields give ''. At most max_length characters are kept.
        """
        value = self.get(name) or ""
        value = value.replace("\r\n", "\n").replace("\r", "\n")
        return value if max_length is None else value[:max_length]

    def string_no_newlines(self, name: str, max_length: int | None = None) -> str:
        """A field's value with carriage returns and line feeds removed."""
        value = (self.get(name) or "").replace("\r", "").replace("\n", "")
        return value if max_length is None else value[:max_length]

    def integer(self, name: str, default: int = 0) -> int:
        """A field read as a leading integer, or default when absent or not a number."""
        value = self.get(name)
        if value is None:
            return default
        match = _INTEGER.match(value.lstrip())
        return int(match.group()) if match else default

    def submitted(self, name: str) -> bool:
        """True when a field of that name (such as a submit button) was sent."""
        return name in self.fields


def _content_length(environ: Mapping[str, str]) -> int:
    try:
        return max(int(environ.get("CONTENT_LENGTH", "0") or "0"), 0)
    except ValueError:
        return 0


def parse_form(
    environ: Mapping[str, str] | None = None, stdin: BinaryIO | None = None
) -> Form:
    """Read the form from the CGI environment and standard input.

    POST requests with a url-encoded body are read from stdin; other
    requests take their fields from QUERY_STRING.
    """
    env = os.environ if environ is None else environ
    method = env.get("REQUEST_METHOD", "GET").upper()
    content_type = env.get("CONTENT_TYPE", "")
    if method == "POST" and content_type.lower().startswith(
        "application/x-www-form-urlencoded"
    ):
        source = sys.stdin.buffer if stdin is None else stdin
        data = source.read(_content_length(env)).decode("utf-8", "replace")
    elif method == "POST":
        data = ""
    else:
        data = env.get("QUERY_STRING", "")
    form = Form()
    for key, value in parse_qsl(data, keep_blank_values=True):
        form.fields.setdefault(key, []).append(value)
    return form