from __future__ import annotations

from pathlib import Path

import pytest

from config import AppConfig
from encoding import Mode
from errors import ConfigLoadError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("IMGHASH_MODE", raising=False)
    monkeypatch.delenv("IMGHASH_ALGORITHM", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file() -> None:
    cfg = AppConfig.load()
    assert cfg.hash.mode is Mode.HEX
    assert cfg.hash.algorithm == "difference"
    assert cfg.hash.distance == "auto"
    assert cfg.hash.strict is False
    assert ".png" in cfg.hash.include_ext


def test_load_from_cwd_toml(tmp_path: Path) -> None:
    (tmp_path / "imghash.toml").write_text(
        '[hash]\nmode = "dec"\nalgorithm = "Perceptual"\ninclude_ext = ["JPG", " png", ""]\n',
        encoding="utf-8",
    )
    cfg = AppConfig.load()
    assert cfg.hash.mode is Mode.DECIMAL
    assert cfg.hash.algorithm == "perceptual"
    assert cfg.hash.include_ext == [".jpg", ".png"]


def test_invalid_toml(tmp_path: Path) -> None:
    p = tmp_path / "bad.toml"
    p.write_text("[hash\nmode=", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        AppConfig.load(p)


@pytest.mark.parametrize(
    "body",
    ['mode = "base64"', 'algorithm = "blockhash"', 'distance = "gmp"'],
)
def test_invalid_values(tmp_path: Path, body: str) -> None:
    p = tmp_path / "cfg.toml"
    p.write_text(f"[hash]\n{body}\n", encoding="utf-8")
    with pytest.raises(ConfigLoadError):
        AppConfig.load(p)


def test_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError):
        AppConfig.load(tmp_path / "nope.toml")


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IMGHASH_MODE", "dec")
    monkeypatch.setenv("IMGHASH_ALGORITHM", "average")
    cfg = AppConfig.load()
    assert cfg.hash.mode is Mode.DECIMAL
    assert cfg.hash.algorithm == "average"

    monkeypatch.setenv("IMGHASH_MODE", "octal")
    with pytest.raises(ConfigLoadError):
        AppConfig.load()


def test_with_overrides_ignores_none() -> None:
    base = AppConfig()
    cfg = base.with_overrides(mode=None, algorithm="average")
    assert cfg.hash.mode is Mode.HEX
    assert cfg.hash.algorithm == "average"
    assert base.hash.algorithm == "difference"
    with pytest.raises(ConfigLoadError):
        base.with_overrides(algorithm="nope")
