"""
CLI entrypoint:
- hash: hash one or more image files
- multi-hash: full/left/right composite hash of one image
- compare / multi-compare: Hamming distance between two images
- distance: Hamming distance between two previously stored hashes
- scan: hash every image under a folder
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer

from config import AppConfig
from encoding import Mode
from errors import ImghashError, InternalError
from hasher import ImageHash
from logs import get_logger, init_logging
from walker import iter_image_files

VERSION = "0.3.0"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="imghash: perceptual image hashes and Hamming distances",
)

log = get_logger("imghash")

ConfigOpt = typer.Option(None, "--config", "-c", help="Path to imghash.toml")
ModeOpt = typer.Option(None, "--mode", "-m", help="Hash encoding (hex or dec)")
AlgorithmOpt = typer.Option(
    None, "--algorithm", "-a", help="average | difference | perceptual"
)
JsonOpt = typer.Option(False, "--json", help="Emit JSON")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose (DEBUG) logging"
    ),
) -> None:
    init_logging(level="DEBUG" if verbose else "INFO")
    global log
    log = get_logger("imghash.cli")
    if verbose:
        log.debug("Verbose logging enabled")


def _load_config(
    config_file: Optional[Path], mode: Optional[Mode], algorithm: Optional[str]
) -> AppConfig:
    return AppConfig.load(config_file).with_overrides(mode=mode, algorithm=algorithm)


def _fail(exc: Exception) -> typer.Exit:
    if isinstance(exc, ImghashError):
        log.error(f"[red]Error:[/] {exc}")
        return typer.Exit(code=1)
    log.exception("Unexpected failure. Re-run with -v for details.")
    return typer.Exit(code=1)


@app.command("version")
def version_cmd() -> None:
    typer.echo(f"imghash v{VERSION}")


# -------------------------------- hash ----------------------------------------


@app.command("hash")
def hash_cmd(
    paths: List[Path] = typer.Argument(..., help="Image files to hash"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
    algorithm: Optional[str] = AlgorithmOpt,
) -> None:
    """Print '<hash>  <path>' for each image."""
    try:
        hasher = ImageHash.from_config(_load_config(config_file, mode, algorithm))
        for p in paths:
            typer.echo(f"{hasher.hash(p)}  {p}")
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("multi-hash")
def multi_hash_cmd(
    path: Path = typer.Argument(..., help="Image file"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
    algorithm: Optional[str] = AlgorithmOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Hash the whole image and its left and right halves."""
    try:
        hasher = ImageHash.from_config(_load_config(config_file, mode, algorithm))
        composite = hasher.multiple_hash(path)
        if composite is False:
            raise InternalError(f"Cannot build composite hash for {path}")
        if json_out:
            typer.echo(json.dumps(composite.as_dict(), indent=2))
            return
        for part, value in composite.as_dict().items():
            typer.echo(f"{part:5} {value}")
    except Exception as exc:
        raise _fail(exc) from exc


# ------------------------------- compare --------------------------------------


@app.command("compare")
def compare_cmd(
    image1: Path = typer.Argument(..., help="First image"),
    image2: Path = typer.Argument(..., help="Second image"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
    algorithm: Optional[str] = AlgorithmOpt,
) -> None:
    """Print the Hamming distance between two images (0..64)."""
    try:
        hasher = ImageHash.from_config(_load_config(config_file, mode, algorithm))
        typer.echo(str(hasher.compare(image1, image2)))
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("multi-compare")
def multi_compare_cmd(
    image1: Path = typer.Argument(..., help="First image"),
    image2: Path = typer.Argument(..., help="Second image"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
    algorithm: Optional[str] = AlgorithmOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Print full, left-half and right-half distances between two images."""
    try:
        hasher = ImageHash.from_config(_load_config(config_file, mode, algorithm))
        result = hasher.multiple_compare(image1, image2).as_dict()
        if json_out:
            typer.echo(json.dumps(result, indent=2))
            return
        for name, value in result.items():
            typer.echo(f"{name:20} {value}")
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("distance")
def distance_cmd(
    hash1: str = typer.Argument(..., help="First stored hash"),
    hash2: str = typer.Argument(..., help="Second stored hash"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
) -> None:
    """
    Hamming distance between two stored hashes, without touching images.
    Pass negative decimal hashes after '--'.
    """
    try:
        hasher = ImageHash.from_config(_load_config(config_file, mode, None))
        typer.echo(str(hasher.distance(hash1, hash2)))
    except Exception as exc:
        raise _fail(exc) from exc


# --------------------------------- scan ---------------------------------------


@app.command("scan")
def scan_cmd(
    folder: Path = typer.Argument(..., help="Folder to scan"),
    config_file: Optional[Path] = ConfigOpt,
    mode: Optional[Mode] = ModeOpt,
    algorithm: Optional[str] = AlgorithmOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Hash every image under a folder; unreadable files are skipped."""
    try:
        cfg = _load_config(config_file, mode, algorithm)
        hasher = ImageHash.from_config(cfg)
        rows = []
        skipped = 0
        for p in iter_image_files(folder, include_ext=cfg.hash.include_ext):
            try:
                value = hasher.hash(p)
            except ImghashError as exc:
                skipped += 1
                log.debug(f"skip (cannot hash): {p}: {exc}")
                continue
            rows.append({"path": str(p), "hash": value})
            if not json_out:
                typer.echo(f"{value}  {p}")
        if json_out:
            typer.echo(json.dumps(rows, ensure_ascii=False, indent=2))
        log.info(f"[green]Scan complete[/]: {len(rows)} hashed, {skipped} skipped")
    except Exception as exc:
        raise _fail(exc) from exc


if __name__ == "__main__":
    app()
