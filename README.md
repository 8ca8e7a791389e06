# cgihttpd

A small, threaded HTTP/1.1 web server that serves static files, lists
directories and runs CGI programs, together with two ready-made CGI
guestbook programs.

## Installing

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Running the server

```
cgihttpd [PORT]
```

The server listens on `PORT` (80 when omitted) and serves files out of the
`www` directory below the current working directory. Press Ctrl-C to stop it.

What it does with a request:

- `GET`, `POST` and `HEAD` are understood; any other method gets
  `501 Not Implemented`. Malformed request lines, header lines without a
  colon, lines that are too long and paths that climb out of the document
  root with `..` get `400 Bad Request`, after which the connection is closed.
- A directory requested without a trailing slash is answered with a
  `301 Moved Permanently` redirect to the same path with the slash.
- For a directory, the first of `index.cgi`, `index.php`, `index.pl`,
  `index.py` (when executable by others) or `index.htm`, `index.html` (when
  not executable by others) is served. Without one, an HTML listing of the
  files in the directory (subdirectories left out) is returned.
- A file that is executable by others is run as a CGI program with the usual
  CGI environment (`REQUEST_METHOD`, `QUERY_STRING`, `CONTENT_LENGTH`,
  `SCRIPT_NAME`, `REMOTE_ADDR` and so on), in the directory that holds it.
  `POST` bodies are passed on its standard input. Its output is sent chunked
  to HTTP/1.1 clients, and with `Connection: close` to older ones.
- Other files are sent as they are, with a content type chosen from the
  extension (`.htm`, `.html`, `.css`, `.png`, `.jpg`, `.gif`, `.pdf`,
  `.manifest`; anything else is `text/unknown`). Missing files are answered
  with `www/404.htm` when it exists, and with a plain-text 404 otherwise.

The server can also be embedded:

```python
from cgihttpd.server import Server

server = Server(8080, "www")
try:
    server.serve_forever()
finally:
    server.shutdown()
```

`cgihttpd.server.handle_connection` answers the requests on a single
binary stream, which is handy for driving the server without a socket.

## Listing a directory

```
cgihttpd-dirlist [PATH]
```

Prints the entries of `PATH` (the current directory when omitted), skipping
hidden ones, with directories shown in angle brackets.

## Guestbook CGI programs

Each of these is meant to be started by the server (or any CGI-capable web
server) as a CGI program; it reads the request from the CGI environment and
writes an HTML page to standard output.

- `cgihttpd-guestbook-classic [--db PATH]` – shows every entry of the
  `guestbook` table in a SQLite database (`guestbook.db` by default), newest
  first, below a signing form. The table must already exist with `id`,
  `name`, `message` and `datetime` columns; database errors are reported on
  standard error and the page is still produced.
- `cgihttpd-gbook` – a minimal guestbook that appends each submitted name,
  e-mail and message to `libcgi_gbook.html` in the working directory and
  includes that file, after `table_add_comments.html`, in the page.

The building blocks are available from Python as well, for example
`cgihttpd.cgiform.parse_form` for reading form fields and
`cgihttpd.guestbook_classic.escape_html` for escaping text for HTML.

## What is not included

- There is no paginated guestbook: the SQLite guestbook shows all entries on
  one page.
- No guestbook program creates its database table; the `guestbook` table
  has to be set up before `cgihttpd-guestbook-classic` can store or show
  entries.