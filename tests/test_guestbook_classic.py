import sqlite3
from contextlib import closing

import pytest

from cgihttpd.cgiform import Form
from cgihttpd.guestbook_classic import (
    escape_html,
    main,
    render_entries,
    render_form,
    render_page,
    sign,
)


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "guestbook.db"
    with closing(sqlite3.connect(path)) as db, db:
        db.execute(
            "CREATE TABLE guestbook (id INTEGER PRIMARY KEY AUTOINCREMENT, "
            "name TEXT, message TEXT, datetime TEXT DEFAULT CURRENT_TIMESTAMP)"
        )
    return str(path)


def _rows(path):
    with closing(sqlite3.connect(path)) as db:
        return db.execute("SELECT name, message FROM guestbook ORDER BY id").fetchall()


def _form(**fields):
    return Form({key: [value] for key, value in fields.items()})


def test_escape_html_special_characters():
    assert escape_html("<") == "&lt;"
    assert escape_html(">") == "&gt;"
    assert escape_html("&") == "&amp;"
    assert escape_html('"') == "&quot;"
    assert escape_html("'") == "&#39;"


def test_escape_html_plain_text_and_none():
    assert escape_html("hello world") == "hello world"
    assert escape_html("") == ""
    assert escape_html(None) is None


def test_render_form_has_fields():
    html = render_form()
    assert "name='name'" in html
    assert "name='message'" in html
    assert "name='sign'" in html
    assert "width='100%'" in html


def test_sign_stores_entry(db_path):
    assert sign(db_path, _form(name="Ann", message="Hi")) is True
    assert _rows(db_path) == [("Ann", "Hi")]


def test_sign_rejects_empty_fields(db_path):
    assert sign(db_path, _form(name="", message="Hi")) is False
    assert sign(db_path, _form(name="Ann")) is False
    assert _rows(db_path) == []


def test_sign_strips_newlines_from_name_and_limits_length(db_path):
    sign(db_path, _form(name="A\r\nnn" + "x" * 50, message="m" * 2000))
    [(name, message)] = _rows(db_path)
    assert "\n" not in name
    assert len(name) == 32
    assert len(message) == 1024


def test_sign_missing_table_raises(tmp_path):
    with pytest.raises(sqlite3.Error):
        sign(str(tmp_path / "empty.db"), _form(name="Ann", message="Hi"))


def test_render_entries_newest_first_and_escaped(db_path):
    sign(db_path, _form(name="first", message="one"))
    sign(db_path, _form(name="<b>", message="two & more"))
    html = render_entries(db_path)
    assert html.index("&lt;b&gt;") < html.index("first")
    assert "two &amp; more" in html
    assert html.count("<section class='post'>") == 2


def test_render_entries_formats_datetime_and_nulls(db_path):
    with closing(sqlite3.connect(db_path)) as db, db:
        db.execute(
            "INSERT INTO guestbook(name, message, datetime) VALUES (?, NULL, ?)",
            ("Ann", "2022-09-01 13:05:09"),
        )
    html = render_entries(db_path)
    assert "<div class='datetime'>2022-09-01  1:05:09 PM</div>" in html
    assert "<p>NULL</p>" in html


def test_render_entries_missing_table_raises(tmp_path):
    with pytest.raises(sqlite3.Error):
        render_entries(str(tmp_path / "none.db"))


def test_render_page_signs_when_submitted(db_path):
    page = render_page(_form(name="Ann", message="Hello", sign="Sign"), db_path)
    assert "<div class='name'>Ann</div>" in page
    assert _rows(db_path) == [("Ann", "Hello")]
    assert page.startswith("<html>")
    assert page.endswith("</html>")


def test_render_page_does_not_sign_without_button(db_path):
    render_page(_form(name="Ann", message="Hello"), db_path)
    assert _rows(db_path) == []


def test_render_page_survives_missing_table(tmp_path, capsys):
    page = render_page(Form(), str(tmp_path / "none.db"))
    assert "<footer>" in page
    assert "SQL error" in capsys.readouterr().err


def test_main_writes_header_and_page(db_path, monkeypatch, capsys):
    monkeypatch.setenv("REQUEST_METHOD", "GET")
    monkeypatch.setenv("QUERY_STRING", "name=Bob&message=Yo&sign=Sign")
    assert main(["--db", db_path]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Content-type: text/html\r\n\r\n")
    assert "<div class='name'>Bob</div>" in out