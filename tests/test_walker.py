from __future__ import annotations

from pathlib import Path

import pytest

from errors import InvalidPathError
from walker import iter_image_files


def test_iter_image_files_basic(tmp_path: Path) -> None:
    (tmp_path / "a.png").write_bytes(b"x")
    (tmp_path / "b.JPG").write_bytes(b"x")
    (tmp_path / "notes.txt").write_bytes(b"x")
    (tmp_path / ".c.png").write_bytes(b"x")
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "d.png").write_bytes(b"x")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "e.png").write_bytes(b"x")

    names = [
        p.name.lower()
        for p in iter_image_files(tmp_path, include_ext=[".png", ".jpg"])
    ]
    assert names == ["a.png", "b.jpg", "e.png"]


def test_iter_image_files_with_hidden(tmp_path: Path) -> None:
    (tmp_path / ".hidden").mkdir()
    (tmp_path / ".hidden" / "d.png").write_bytes(b"x")
    found = list(iter_image_files(tmp_path, include_ext=[".png"], ignore_hidden=False))
    assert [p.name for p in found] == ["d.png"]


def test_iter_image_files_invalid(tmp_path: Path) -> None:
    with pytest.raises(InvalidPathError):
        list(iter_image_files(tmp_path / "missing", include_ext=[".png"]))
    f = tmp_path / "file.png"
    f.write_bytes(b"x")
    with pytest.raises(InvalidPathError):
        list(iter_image_files(f, include_ext=[".png"]))
