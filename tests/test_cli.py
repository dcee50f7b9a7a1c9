"""
CLI smoke tests:

- help/version work.
- hash/compare/multi-compare print what the library computes.
- distance works on stored hashes without images.
- scan hashes images under a folder and skips hidden directories.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from cli import app
from hasher import ImageHash

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("IMGHASH_MODE", raising=False)
    monkeypatch.delenv("IMGHASH_ALGORITHM", raising=False)
    monkeypatch.chdir(tmp_path)


def test_help() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "imghash" in result.stdout


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "imghash v" in result.stdout


def test_hash(make_image) -> None:
    p = make_image("a.png")
    result = runner.invoke(app, ["hash", str(p)])
    assert result.exit_code == 0
    assert f"{ImageHash().hash(p)}  {p}" in result.stdout


def test_hash_decimal_mode(make_image) -> None:
    p = make_image("a.png")
    result = runner.invoke(app, ["hash", str(p), "--mode", "dec"])
    assert result.exit_code == 0
    assert f"{ImageHash(mode='dec').hash(p)}  {p}" in result.stdout


def test_compare_identical(make_image) -> None:
    a = make_image("a.png", seed=3)
    b = make_image("b.png", seed=3)
    result = runner.invoke(app, ["compare", str(a), str(b)])
    assert result.exit_code == 0
    assert "0" in result.stdout.split()


def test_multi_compare_json(make_image) -> None:
    a = make_image("a.png", seed=3)
    b = make_image("b.png", seed=3)
    result = runner.invoke(app, ["multi-compare", str(a), str(b), "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout[result.stdout.index("{") :])
    assert payload == {
        "full_distance": 0,
        "left_part_distance": 0,
        "right_part_distance": 0,
    }


def test_distance_command() -> None:
    result = runner.invoke(app, ["distance", "0", "ffffffffffffffff"])
    assert result.exit_code == 0
    assert "64" in result.stdout.split()

    result = runner.invoke(app, ["distance", "--mode", "dec", "--", "-1", "0"])
    assert result.exit_code == 0
    assert "64" in result.stdout.split()


def test_distance_malformed() -> None:
    result = runner.invoke(app, ["distance", "xyz", "0"])
    assert result.exit_code == 1


def test_missing_image(tmp_path: Path) -> None:
    result = runner.invoke(app, ["hash", str(tmp_path / "missing.png")])
    assert result.exit_code == 1


def test_scan(make_image, tmp_path: Path) -> None:
    make_image("a.png")
    (tmp_path / "broken.png").write_bytes(b"xx")
    (tmp_path / ".hidden").mkdir()
    make_image(".hidden/c.png")
    result = runner.invoke(app, ["scan", str(tmp_path)])
    assert result.exit_code == 0
    out = result.stdout
    assert "a.png" in out
    assert "c.png" not in out


def test_distance_uses_config_file(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.toml"
    cfg.write_text('[hash]\nmode = "dec"\ndistance = "bitwise"\n', encoding="utf-8")
    result = runner.invoke(app, ["distance", "--config", str(cfg), "--", "-1", "0"])
    assert result.exit_code == 0
    assert "64" in result.stdout.split()

    cfg.write_text('[hash]\ndistance = "gmp"\n', encoding="utf-8")
    result = runner.invoke(app, ["distance", "--config", str(cfg), "0", "1"])
    assert result.exit_code == 1
