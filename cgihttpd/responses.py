"""Building of fixed HTTP responses, content types and directory listings."""

from __future__ import annotations

import os
import stat

VERSION_STRING = "klange/0.5"
PAGES_DIRECTORY = "www"

# Default index files, in the order they are tried, with whether each
# must be executable by others to be chosen.
INDEX_DEFAULTS: tuple[tuple[str, bool], ...] = (
    ("index.cgi", True),
    ("index.php", True),
    ("index.pl", True),
    ("index.py", True),
    ("index.htm", False),
    ("index.html", False),
)

_CONTENT_TYPES = {
    ".htm": "text/html",
    ".html": "text/html",
    ".css": "text/css",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".manifest": "text/cache-manifest",
}
_UNKNOWN_TYPE = "text/unknown"

_LISTING_HEAD = (
    "<!doctype html><html><head><title>Directory Listing</title></head><body>"
)
_LISTING_TAIL = "</body></html>"


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def generic_response(status: str, message: str) -> bytes:
    """A plain-text response with the given status line and message."""
    body = _encode(message)
    head = (
        f"HTTP/1.1 {status}\r\n"
        f"Server: {VERSION_STRING}\r\n"
        "Content-Type: text/plain\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    )
    return _encode(head) + body + b"\r\n"


def redirect_response(filename: str) -> bytes:
    """A 301 redirect to the same path with a trailing slash."""
    return _encode(
        "HTTP/1.1 301 Moved Permanently\r\n"
        f"Server: {VERSION_STRING}\r\n"
        f"Location: {filename}/\r\n"
        "Content-Length: 0\r\n\r\n"
    )


def extension_of(filename: str) -> str | None:
    """The extension of a requested filename, from its last dot.

    A dot right after the leading slash marks a hidden file, not an
    extension, so it yields None, as does a name without a dot.
    """
    dot = filename.rfind(".", 2)
    return filename[dot:] if dot >= 2 else None


def content_type_for(ext: str | None) -> str:
    """The MIME type served for an extension."""
    if ext is None:
        return _UNKNOWN_TYPE
    return _CONTENT_TYPES.get(ext, _UNKNOWN_TYPE)


def find_index(directory: str) -> str | None:
    """Path of the first default index file present in directory.

    Script indexes count only when executable by others, page indexes only
    when they are not.
    """
    for name, executable in INDEX_DEFAULTS:
        candidate = os.path.join(directory, name)
        try:
            info = os.stat(candidate)
        except OSError:
            continue
        if bool(info.st_mode & stat.S_IXOTH) == executable:
            return candidate
    return None


def render_listing(directory: str) -> str:
    """HTML listing of the non-directory entries of directory, sorted by name."""
    try:
        names = sorted(os.listdir(directory), key=_encode)
    except OSError:
        names = []
    parts = [_LISTING_HEAD]
    for name in names:
        if os.path.isdir(os.path.join(directory, name)):
            continue
        parts.append(f'<a href="{name}">{name}</a><br>\n')
    parts.append(_LISTING_TAIL)
    return "".join(parts)


def listing_response(directory: str) -> bytes:
    """A complete 200 response carrying the listing of directory."""
    body = _encode(render_listing(directory))
    head = (
        "HTTP/1.1 200 OK\r\n"
        f"Server: {VERSION_STRING}\r\n"
        "Content-Type: text/html\r\n"
        f"Content-Length: {len(body)}\r\n"
        "\r\n"
    )
    return _encode(head) + body