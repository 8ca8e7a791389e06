"""A single-page guestbook CGI program showing every entry, newest first."""

from __future__ import annotations

import argparse
import sqlite3
import sys
from contextlib import closing
from datetime import datetime

from .cgiform import Form, parse_form

GUESTBOOK_DB = "guestbook.db"
NAME_SIZE = 32
MESSAGE_SIZE = 1024

_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#39;",
}

_FORM = (
    "<section class='post'>"
    "<div class='title'>Sign Guestbook</div>"
    "<hr>"
    "<form action='' method='post'>"
    "<table width='100%'>"
    "<tr>"
    "<td><div class='title'>Name</div></td>"
    "<td><input style='width:100%;' name='name' type='text' size='16' "
    "maxlength='32' required></td>"
    "</tr>"
    "<tr>"
    "<td><div class='title'>Message</div></td>"
    "<td><textarea style='width:100%;resize:none;' name='message' cols='16' "
    "rows='8' maxlength='1024' required></textarea></td>"
    "</tr>"
    "<tr>"
    "<td align='right' colspan='2'>"
    "<input class='button' type='reset' value='Clear'>&nbsp;"
    "<input class='button' name='sign' type='submit' value='Sign'>"
    "</td>"
    "</tr>"
    "</table>"
    "</form>"
    "</section>"
)

_PAGE_HEAD = (
    "<html>"
    "<head>"
    "<meta name='viewport' content='width=device-width, initial-scale=1.0' />"
    "<title>POCS - Guestbook</title>"
    "<link rel='stylesheet' href='style.css'>"
    "</head>"
    "<body>"
    "<div id='container'>"
)

_PAGE_TAIL = (
    "</main>"
    "<footer>"
    "<h4>Since 2022-09-01</h4>"
    "</footer>"
    "</div>"
    "</body>"
    "</html>"
)


def escape_html(text: str | None) -> str | None:
    """Escape <, >, &, double and single quotes; None stays None."""
    if text is None:
        return None
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def render_form() -> str:
    """The HTML form used to sign the guestbook."""
    return _FORM


def _format_posted(raw: object) -> str | None:
    if raw is None:
        return None
    try:
        stamp = datetime.fromisoformat(str(raw))
    except ValueError:
        return None
    hour = stamp.hour % 12 or 12
    meridiem = "AM" if stamp.hour < 12 else "PM"
    return f"{stamp:%Y-%m-%d} {hour:>2}:{stamp:%M:%S} {meridiem}"


def _shown(value: str | None) -> str:
    return "NULL" if value is None else escape_html(value)


def _render_entry(name: str | None, message: str | None, posted: str | None) -> str:
    return (
        "<section class='post'>"
        f"<div class='datetime'>{_shown(posted)}</div>"
        "<div class='clear'></div>"
        f"<div class='name'>{_shown(name)}</div>"
        "<hr>"
        f"<p>{_shown(message)}</p>"
        "</section>"
    )


def render_entries(db_path: str = GUESTBOOK_DB) -> str:
    """HTML for every entry, newest first.

    Raises sqlite3.Error when the guestbook table cannot be read.
    """
    with closing(sqlite3.connect(str(db_path))) as db:
        rows = db.execute(
            "SELECT name, message, datetime FROM guestbook ORDER BY id DESC"
        ).fetchall()
    return "".join(
        _render_entry(name, message, _format_posted(posted))
        for name, message, posted in rows
    )


def sign(db_path: str, form: Form) -> bool:
    """Store the submitted name and message.

    Returns False without storing anything when either field is empty.
    Raises sqlite3.Error when the entry cannot be written.
    """
    name = form.string_no_newlines("name", NAME_SIZE)
    message = form.string("message", MESSAGE_SIZE)
    if not name or not message:
        return False
    with closing(sqlite3.connect(str(db_path))) as db, db:
        db.execute("INSERT INTO guestbook(name,message) VALUES(?,?);", (name, message))
    return True


def render_page(form: Form, db_path: str = GUESTBOOK_DB) -> str:
    """Sign the guestbook if asked to, and return the page HTML.

    Database failures are reported on stderr; the page is still produced.
    """
    parts = [_PAGE_HEAD]
    if form.submitted("sign"):
        try:
            sign(db_path, form)
        except sqlite3.Error as exc:
            print(f"ERROR executing stmt: {exc}", file=sys.stderr)
    parts.append("<header><h1>Guestbook</h1></header>")
    parts.append("<main>")
    parts.append(render_form())
    try:
        parts.append(render_entries(db_path))
    except sqlite3.Error as exc:
        print("Failed to select data", file=sys.stderr)
        print(f"SQL error: {exc}", file=sys.stderr)
    parts.append(_PAGE_TAIL)
    return "".join(parts)


def main(argv: list[str] | None = None) -> int:
    """Serve the guestbook page as a CGI program."""
    parser = argparse.ArgumentParser(prog="guestbook-classic")
    parser.add_argument("--db", default=GUESTBOOK_DB)
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    form = parse_form()
    out = sys.stdout
    out.write("Content-type: text/html\r\n\r\n")
    out.write(render_page(form, args.db))
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())