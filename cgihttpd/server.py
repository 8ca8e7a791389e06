"""A threaded HTTP/1.1 server for flat files, directory listings and CGI."""

from __future__ import annotations

import os
import re
import shutil
import socket
import stat
import sys
import threading
from typing import BinaryIO

from .cgi import run_cgi
from .request import (
    BadRequest,
    Method,
    Request,
    UnsupportedMethod,
    parse_request,
    read_head,
    resolve_path,
)
from .responses import (
    PAGES_DIRECTORY,
    VERSION_STRING,
    content_type_for,
    extension_of,
    find_index,
    generic_response,
    listing_response,
    redirect_response,
)

PORT = 80
FLAT_BUFFER = 10240
_BACKLOG = 50
_ACCEPT_POLL = 0.5
_NOT_FOUND_PAGE = "404.htm"


def _executable_by_others(path: str) -> bool:
    try:
        return bool(os.stat(path).st_mode & stat.S_IXOTH)
    except OSError:
        return False


def _send_file(
    stream: BinaryIO,
    request: Request,
    local: str,
    ext: str | None,
    client_address,
    root: str,
    port: int,
) -> bool:
    try:
        content = open(local, "rb")
    except OSError:
        try:
            content = open(f"{root}/{_NOT_FOUND_PAGE}", "rb")
        except OSError:
            stream.write(
                generic_response(
                    "404 File Not Found", "The requested file could not be found."
                )
            )
            return True
        status = "404 File Not Found"
        ext = extension_of("/" + _NOT_FOUND_PAGE)
    else:
        if _executable_by_others(local):
            content.close()
            return run_cgi(
                request,
                local,
                stream,
                stream,
                port,
                client_address,
                docroot=os.path.abspath(root),
            )
        status = "200 OK"

    with content:
        head = (
            f"HTTP/1.1 {status}\r\n"
            f"Server: {VERSION_STRING}\r\n"
            f"Content-Type: {content_type_for(ext)}\r\n"
        )
        if request.method is Method.HEAD:
            stream.write(head.encode() + b"\r\n")
            return True
        size = os.fstat(content.fileno()).st_size
        stream.write(f"{head}Content-Length: {size}\r\n\r\n".encode())
        shutil.copyfileobj(content, stream, FLAT_BUFFER)
        stream.write(b"\r\n")
    return True


def _respond(
    stream: BinaryIO, lines: list[str], client_address, root: str, port: int
) -> bool:
    request = parse_request(lines)
    local = resolve_path(request.filename, root)
    ext = extension_of(request.filename)

    if os.path.isdir(local):
        if not local.endswith("/"):
            stream.write(redirect_response(request.filename))
            return True
        index = find_index(local)
        if index is None:
            stream.write(listing_response(local))
            return True
        local = index
        ext = local[local.rfind("."):]

    return _send_file(stream, request, local, ext, client_address, root, port)


def handle_connection(
    stream: BinaryIO,
    client_address=None,
    root: str = PAGES_DIRECTORY,
    port: int = PORT,
) -> None:
    """Answer requests read from stream until the client disconnects.

    Malformed or unsupported requests are answered and end the connection,
    as does a CGI response that is not sent chunked.
    """
    while True:
        try:
            lines = read_head(stream)
            if lines is None:
                return
            keep_alive = _respond(stream, lines, client_address, str(root), port)
        except (BadRequest, UnsupportedMethod) as exc:
            stream.write(generic_response(exc.status, exc.message))
            stream.flush()
            return
        stream.flush()
        if not keep_alive:
            return


class Server:
    """A listening socket that hands each connection to its own thread."""

    def __init__(self, port: int = PORT, root: str = PAGES_DIRECTORY) -> None:
        self.root = str(root)
        self._closed = threading.Event()
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._socket.bind(("", port))
            self._socket.listen(_BACKLOG)
        except OSError:
            self._socket.close()
            raise
        self._socket.settimeout(_ACCEPT_POLL)
        self.port = self._socket.getsockname()[1]

    def _serve_client(self, conn: socket.socket, address) -> None:
        with conn:
            try:
                with conn.makefile("rwb") as stream:
                    handle_connection(stream, address, self.root, self.port)
            except OSError:
                pass
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass

    def serve_forever(self) -> None:
        """Accept connections until shutdown is called."""
        while not self._closed.is_set():
            try:
                conn, address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._closed.is_set():
                    return
                raise
            conn.settimeout(None)
            threading.Thread(
                target=self._serve_client, args=(conn, address), daemon=True
            ).start()

    def shutdown(self) -> None:
        """Stop accepting connections and close the listening socket."""
        self._closed.set()
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._socket.close()


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def main(argv: list[str] | None = None) -> int:
    """Run the server on the port given as the first argument (80 by default)."""
    args = sys.argv[1:] if argv is None else argv
    port = _atoi(args[0]) if args else PORT
    try:
        server = Server(port, PAGES_DIRECTORY)
    except OSError:
        print(f"Failed to bind socket to port {port}!", file=sys.stderr)
        return 1
    print(f"[info] Listening on port {port}.")
    print(f"[info] Serving out of '{PAGES_DIRECTORY}'.")
    print(f"[info] Server version string is {VERSION_STRING}.")
    print("[extn] CGI support is enabled.")
    print("[extn] Default indexes are enabled.")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\n[info] Shutting down.")
    finally:
        server.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())