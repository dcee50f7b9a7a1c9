# src/config.py
"""
Configuration loader with validation and safe error handling.

- Reads optional imghash.toml (or a provided path).
- Provides defaults if file is absent.
- Validates hash mode, algorithm and distance strategy names.
- Exposes a typed configuration object used by the CLI and the hasher.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from distance import STRATEGIES
from encoding import Mode
from errors import ConfigLoadError
from fingerprint import ALGORITHMS

_ENV_OVERRIDES = {
    "IMGHASH_MODE": "mode",
    "IMGHASH_ALGORITHM": "algorithm",
}


class HashConfig(BaseModel):
    """Settings governing how hashes are computed, encoded and compared."""

    mode: Mode = Mode.HEX
    algorithm: str = Field(
        default="difference", description="average | difference | perceptual"
    )
    distance: str = Field(default="auto", description="auto | popcount | bitwise")
    strict: bool = Field(
        default=False,
        description="Raise instead of returning False for invalid composite input.",
    )
    include_ext: List[str] = Field(
        default_factory=lambda: [
            ".jpg",
            ".jpeg",
            ".png",
            ".gif",
            ".bmp",
            ".webp",
            ".tif",
            ".tiff",
        ],
        description="File extensions (lowercase) considered images by scan.",
    )

    @field_validator("algorithm", mode="after")
    @classmethod
    def _known_algorithm(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ALGORITHMS:
            raise ValueError(f"unknown algorithm {v!r}")
        return v

    @field_validator("distance", mode="after")
    @classmethod
    def _known_distance(cls, v: str) -> str:
        v = v.strip().lower()
        if v != "auto" and v not in STRATEGIES:
            raise ValueError(f"unknown distance strategy {v!r}")
        return v

    @field_validator("include_ext", mode="after")
    @classmethod
    def _normalize_exts(cls, v: List[str]) -> List[str]:
        """Normalize extensions to lowercase and ensure they begin with a dot."""
        normed: List[str] = []
        for e in v:
            e = e.strip().lower()
            if not e:
                continue
            if not e.startswith("."):
                e = "." + e
            normed.append(e)
        return normed


class AppConfig(BaseModel):
    """Root application configuration object."""

    hash: HashConfig = HashConfig()

    @staticmethod
    def load(path: Optional[Path] = None) -> "AppConfig":
        """
        Load config from TOML if present; otherwise return defaults.

        Load order:
          1) Provided path (if any).
          2) ./imghash.toml in the current working directory.
        Env overrides:
          - IMGHASH_MODE: overrides hash.mode
          - IMGHASH_ALGORITHM: overrides hash.algorithm

        Raises:
            ConfigLoadError: if a TOML file exists but cannot be read or
            validated, if an explicit path is missing, or if an env override
            is invalid.
        """
        toml_path = path or (Path.cwd() / "imghash.toml")
        if path is not None and not path.exists():
            raise ConfigLoadError(f"Config file not found: {path}")

        data: Dict[str, Any] = {}
        if toml_path.exists():
            try:
                raw_text = toml_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigLoadError(
                    f"Failed to read config file: {toml_path}"
                ) from exc

            try:
                parsed = tomllib.loads(raw_text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigLoadError(
                    f"Invalid TOML in config file: {toml_path}"
                ) from exc
            data = dict(parsed.get("hash", parsed))

        for env_name, key in _ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                data[key] = value

        try:
            return AppConfig(hash=HashConfig(**data))
        except ValidationError as exc:
            source = toml_path if toml_path.exists() else "environment"
            raise ConfigLoadError(f"Invalid configuration values in {source}") from exc

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """
        Return a copy with the given hash settings replaced (None values are ignored).

        Raises:
            ConfigLoadError: if an override is invalid.
        """
        data = self.hash.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return AppConfig(hash=HashConfig(**data))
        except ValidationError as exc:
            raise ConfigLoadError(f"Invalid override: {exc.errors()[0]['msg']}") from exc
