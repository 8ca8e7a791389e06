import os

import pytest

from cgihttpd.responses import (
    content_type_for,
    extension_of,
    find_index,
    generic_response,
    listing_response,
    redirect_response,
    render_listing,
)


def _split(response: bytes) -> tuple[list[str], bytes]:
    head, _, body = response.partition(b"\r\n\r\n")
    return head.decode().split("\r\n"), body


def test_generic_response_status_and_server():
    lines, _ = _split(generic_response("404 File Not Found", "gone"))
    assert lines[0] == "HTTP/1.1 404 File Not Found"
    assert lines[1] == "Server: klange/0.5"
    assert "Content-Type: text/plain" in lines


def test_generic_response_body_and_length():
    message = "Bad request: No filename."
    lines, body = _split(generic_response("400 Bad Request", message))
    assert body == message.encode() + b"\r\n"
    assert f"Content-Length: {len(message)}" in lines


def test_redirect_response_location():
    lines, body = _split(redirect_response("/docs"))
    assert lines[0] == "HTTP/1.1 301 Moved Permanently"
    assert "Location: /docs/" in lines
    assert "Content-Length: 0" in lines
    assert body == b""


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("/index.html", ".html"),
        ("/a.tar.gz", ".gz"),
        ("/README", None),
        ("/.hidden", None),
        ("/", None),
    ],
)
def test_extension_of(filename, expected):
    assert extension_of(filename) == expected


@pytest.mark.parametrize(
    "ext, expected",
    [
        (".htm", "text/html"),
        (".html", "text/html"),
        (".css", "text/css"),
        (".png", "image/png"),
        (".jpg", "image/jpeg"),
        (".pdf", "application/pdf"),
        (".manifest", "text/cache-manifest"),
        (".exe", "text/unknown"),
        (None, "text/unknown"),
    ],
)
def test_content_type_for(ext, expected):
    assert content_type_for(ext) == expected


def test_find_index_prefers_page_when_script_not_executable(tmp_path):
    script = tmp_path / "index.cgi"
    script.write_text("x")
    os.chmod(script, 0o644)
    page = tmp_path / "index.html"
    page.write_text("<p>")
    os.chmod(page, 0o644)
    assert find_index(str(tmp_path) + "/") == str(tmp_path / "index.html")


def test_find_index_picks_executable_script(tmp_path):
    script = tmp_path / "index.py"
    script.write_text("x")
    os.chmod(script, 0o755)
    (tmp_path / "index.htm").write_text("<p>")
    assert find_index(str(tmp_path)) == str(tmp_path / "index.py")


def test_find_index_skips_executable_page(tmp_path):
    page = tmp_path / "index.htm"
    page.write_text("<p>")
    os.chmod(page, 0o755)
    assert find_index(str(tmp_path)) is None


def test_render_listing_sorted_without_directories(tmp_path):
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "sub").mkdir()
    listing = render_listing(str(tmp_path))
    assert listing.startswith("<!doctype html>")
    assert listing.endswith("</body></html>")
    assert listing.index('href="a.txt"') < listing.index('href="b.txt"')
    assert "sub" not in listing


def test_render_listing_missing_directory(tmp_path):
    listing = render_listing(str(tmp_path / "nope"))
    assert "<a " not in listing
    assert listing.endswith("</body></html>")


def test_listing_response_length_matches_body(tmp_path):
    (tmp_path / "file.txt").write_text("x")
    lines, body = _split(listing_response(str(tmp_path)))
    assert lines[0] == "HTTP/1.1 200 OK"
    assert "Content-Type: text/html" in lines
    assert f"Content-Length: {len(body)}" in lines
    assert body.decode() == render_listing(str(tmp_path))