"""Tests for the file helpers."""

from __future__ import annotations

import pytest

from amzscraper.utils.io import (
    ensure_output_directory,
    make_filename_safe,
    read_json_file,
    safe_write_text_with_backup,
    write_json_file,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("amazon", "amazon"),
        ("my exports: v2/final", "my_exports__v2_final"),
        ("  ..hidden  ", "hidden"),
        ("", "unnamed"),
        ("???", "unnamed"),
    ],
)
def test_make_filename_safe(text, expected) -> None:
    assert make_filename_safe(text) == expected


def test_json_round_trip_creates_parents(tmp_path) -> None:
    path = tmp_path / "nested" / "state.json"

    write_json_file({"name": "Bouteille é"}, path)

    assert read_json_file(path) == {"name": "Bouteille é"}


def test_read_json_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        read_json_file(tmp_path / "absent.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{nope", encoding="utf-8")
    with pytest.raises(ValueError):
        read_json_file(broken)


def test_backup_write_replaces_and_cleans_up(tmp_path) -> None:
    path = tmp_path / "out.csv"
    path.write_text("old", encoding="utf-8")

    assert safe_write_text_with_backup("a\r\nb\r\n", path) is True

    assert path.read_bytes() == b"a\r\nb\r\n"
    assert not (tmp_path / "out.csv.bak").exists()


def test_ensure_output_directory(tmp_path) -> None:
    target = ensure_output_directory(tmp_path / "a" / "b")

    assert target.is_dir()
