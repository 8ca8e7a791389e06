"""Running CGI programs and relaying their output as HTTP responses."""

from __future__ import annotations

import os
import socket
import subprocess
import sys
import threading
from typing import BinaryIO

from .request import Method, Request
from .responses import PAGES_DIRECTORY, VERSION_STRING, generic_response

CGI_POST = 10240
CGI_BUFFER = 10240
_HEADER_LIMIT = CGI_BUFFER - 3


def _warn(message: str) -> None:
    print(f"[warn] {message}", file=sys.stderr)


def _script_location(script_path: str) -> tuple[str, str, str]:
    """Directory, base name and resolved full path of a script."""
    directory = os.path.dirname(script_path) or "."
    name = os.path.basename(script_path)
    full_path = os.path.join(os.path.realpath(directory), name)
    return directory, name, full_path


def _client_ip(client_address: tuple | str | None) -> str | None:
    if client_address is None:
        return None
    if isinstance(client_address, (tuple, list)):
        return str(client_address[0])
    return str(client_address)


def build_environment(
    request: Request,
    script_path: str,
    docroot: str,
    port: int = 80,
    client_address: tuple | str | None = None,
) -> dict[str, str]:
    """The CGI/1.1 variables describing a request to the script."""
    _, _, full_path = _script_location(script_path)
    host = request.host if request.host is not None else socket.gethostname()

    env: dict[str, str] = {
        "SERVER_SOFTWARE": VERSION_STRING,
        "SERVER_NAME": host,
        "HTTP_HOST": host,
        "DOCUMENT_ROOT": str(docroot),
        "GATEWAY_INTERFACE": "CGI/1.1",
        "SERVER_PROTOCOL": request.http_version,
        "SERVER_PORT": str(port),
        "REQUEST_METHOD": request.method.value,
    }
    if request.query_string is not None:
        env["QUERY_STRING"] = request.query_string
    env["PATH_TRANSLATED"] = full_path
    env["SCRIPT_NAME"] = request.filename
    env["SCRIPT_FILENAME"] = full_path
    env["REDIRECT_STATUS"] = "200"
    env["CONTENT_LENGTH"] = str(request.content_length)
    if request.content_type is not None:
        env["CONTENT_TYPE"] = request.content_type

    address = _client_ip(client_address)
    if address is not None:
        try:
            env["REMOTE_HOST"] = socket.gethostbyaddr(address)[0]
        except (OSError, UnicodeError):
            pass
        env["REMOTE_ADDR"] = address

    if request.cookie is not None:
        env["HTTP_COOKIE"] = request.cookie
    if request.user_agent is not None:
        env["HTTP_USER_AGENT"] = request.user_agent
    if request.referer is not None:
        env["HTTP_REFERER"] = request.referer
    return env


def relay_cgi_output(request: Request, stdout: BinaryIO, out: BinaryIO) -> bool:
    """Turn a CGI program's output into an HTTP response written to out.

    HTTP/1.1 responses are sent chunked; others end with the connection.
    Returns True when the connection may carry further requests.
    """
    out.write(
        b"HTTP/1.1 200 OK\r\n"
        + f"Server: {VERSION_STRING}\r\n".encode()
        + b"Expires: -1\r\n"
    )

    leftover = b""
    header_count = 0
    closed = False
    while True:
        line = stdout.readline(_HEADER_LIMIT)
        if not line:
            _warn("Read nothing while reading CGI headers.")
            closed = True
            break
        if line in (b"\r\n", b"\n"):
            break
        if b": " not in line and b"\r\n" not in line:
            _warn(f"Garbage trying to read header line from CGI [{len(line)}]")
            leftover = line
            break
        out.write(line)
        header_count += 1

    if header_count < 1:
        _warn("CGI script did not give us headers.")
    if closed:
        _warn("Pipe closed during headers.")

    if request.method is Method.HEAD:
        out.write(b"\r\n")
        return True

    chunked = request.http_version == "HTTP/1.1"
    if chunked:
        out.write(b"Transfer-Encoding: chunked\r\n")
    else:
        out.write(b"Connection: close\r\n\r\n")

    if leftover:
        _warn("Trying to dump remaining content.")
        out.write(f"\r\n{len(leftover):X}\r\n".encode() + leftover)

    if not closed:
        while True:
            data = stdout.read(CGI_BUFFER - 1)
            if not data:
                break
            if chunked:
                out.write(f"\r\n{len(data):X}\r\n".encode())
            out.write(data)

    if chunked:
        out.write(b"\r\n0\r\n\r\n")
    return chunked


def _feed_body(request: Request, body_stream: BinaryIO, stdin: BinaryIO) -> None:
    remaining = request.content_length
    while remaining > 0:
        data = body_stream.read(min(remaining, CGI_POST))
        if not data:
            break
        remaining -= len(data)
        try:
            stdin.write(data)
        except BrokenPipeError:
            # The script stopped reading; the body is still drained from
            # the client so the connection stays in step.
            pass
    try:
        stdin.close()
    except BrokenPipeError:
        pass


def run_cgi(
    request: Request,
    script_path: str,
    body_stream: BinaryIO,
    out: BinaryIO,
    port: int = 80,
    client_address: tuple | str | None = None,
    docroot: str | None = None,
) -> bool:
    """Run a CGI script for request and write its response to out.

    The request body, if any, is read from body_stream and passed to the
    script. Returns True when the connection may carry further requests.
    """
    if docroot is None:
        docroot = os.path.join(os.getcwd(), PAGES_DIRECTORY)
    directory, name, full_path = _script_location(script_path)
    env = dict(os.environ)
    env.update(build_environment(request, script_path, docroot, port, client_address))

    try:
        process = subprocess.Popen(
            [f"./{name}"],
            executable=os.path.abspath(script_path),
            cwd=directory,
            env=env,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
        )
    except OSError:
        _warn(f"Failed to execute CGI script: {full_path}?{request.query_string}.")
        out.write(
            generic_response("500 Internal Server Error", "Failed to execute CGI script.")
        )
        return True

    _feed_body(request, body_stream, process.stdin)
    try:
        keep_alive = relay_cgi_output(request, process.stdout, out)
    finally:
        process.stdout.close()
        threading.Thread(target=process.wait, daemon=True).start()
    return keep_alive