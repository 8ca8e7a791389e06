"""A minimal guestbook CGI program that appends comments to an HTML file."""

from __future__ import annotations

import os
import sys
import time

from .cgiform import Form, parse_form

GBOOK = "libcgi_gbook.html"
ADD_COMMENTS = "table_add_comments.html"


def now() -> str:
    """The current local time in asctime form, ending with a newline."""
    return time.asctime(time.localtime()) + "\n"


def description() -> str:
    """The introductory text printed at the top of the page."""
    return (
        " LibCGI Examples - Extreme simple GuestBook<br> "
        "This example shows how to use cgi_include() function to show the<br>"
        "user some HTML data contained in another file. <br><br>\n"
    )


def _include(path: str) -> str:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            return handle.read()
    except OSError:
        return ""


def append_comment(path: str, form: Form, timestamp: str | None = None) -> None:
    """Append the submitted name, e-mail and message to the guestbook file."""
    stamp = now() if timestamp is None else timestamp
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"<b>Date:</b> {stamp}<br>")
        handle.write(f"<b>Name:</b> {form.get('name') or ''}<br>")
        handle.write(f"<b>E-Mail: </b>{form.get('email') or ''}<br>")
        handle.write(f"<b>Message: </b>{form.get('msg') or ''}<br><br>")


def render_page(form: Form, gbook_path: str = GBOOK, include_dir: str = ".") -> str:
    """Record a submitted comment, if any, and return the page body.

    Raises OSError when the guestbook file cannot be opened for appending.
    """
    parts = [description()]
    if form.get("action") is not None:
        append_comment(gbook_path, form)
    parts.append("<html><head><title>LibCGI examples - GuestBook</title></head><body>\n")
    parts.append(_include(os.path.join(include_dir, ADD_COMMENTS)))
    parts.append("<table width='70%' align='center' border='0'><tr><td>\n")
    parts.append(_include(gbook_path))
    parts.append("</td></tr></table></body></html>\n")
    return "".join(parts)


def main(argv: list[str] | None = None) -> int:
    """Serve the guestbook page as a CGI program."""
    form = parse_form()
    out = sys.stdout
    out.write("Content-type: text/html\r\n\r\n")
    try:
        page = render_page(form)
    except OSError:
        out.write(description())
        out.write("Failed to open guestbook file for appending\n")
        out.flush()
        return 1
    out.write(page)
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())