import os

import pytest

from cgihttpd.dirlist import is_hidden, list_entries, main


@pytest.fixture
def sample_dir(tmp_path):
    (tmp_path / "a.txt").write_text("a")
    (tmp_path / "b.html").write_text("b")
    (tmp_path / ".hidden").write_text("h")
    (tmp_path / "sub").mkdir()
    (tmp_path / ".git").mkdir()
    return tmp_path


@pytest.mark.parametrize("name, expected", [(".x", True), (".", True), ("x", False), ("x.y", False), ("", False)])
def test_is_hidden(name, expected):
    assert is_hidden(name) is expected


def test_list_entries_marks_dirs_and_skips_hidden(sample_dir):
    assert sorted(list_entries(str(sample_dir))) == ["<sub>", "a.txt", "b.html"]


def test_list_entries_empty_dir(tmp_path):
    assert list(list_entries(str(tmp_path))) == []


def test_list_entries_missing_dir(tmp_path):
    with pytest.raises(OSError):
        list(list_entries(str(tmp_path / "missing")))


def test_broken_symlink_is_reported(tmp_path, capsys):
    (tmp_path / "ok.txt").write_text("x")
    os.symlink(tmp_path / "nowhere", tmp_path / "dangling")
    assert list(list_entries(str(tmp_path))) == ["ok.txt"]
    assert "Error getting file stats" in capsys.readouterr().err


def test_main_prints_listing(sample_dir, capsys):
    assert main([str(sample_dir)]) == 0
    out = capsys.readouterr().out
    assert sorted(out.splitlines()) == ["<sub>", "a.txt", "b.html"]


def test_main_defaults_to_current_directory(sample_dir, capsys, monkeypatch):
    monkeypatch.chdir(sample_dir)
    assert main([]) == 0
    assert sorted(capsys.readouterr().out.splitlines()) == ["<sub>", "a.txt", "b.html"]


def test_main_missing_directory(tmp_path, capsys):
    assert main([str(tmp_path / "missing")]) == 1
    assert "Error opening directory" in capsys.readouterr().err