"""
Streaming image discovery for batch hashing.

- Iterates folders without loading everything in memory.
- Skips hidden files and directories unless asked not to.
- Yields paths in a stable (sorted) order per directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator, Iterable

from errors import InvalidPathError


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def iter_image_files(
    root: Path,
    *,
    include_ext: Iterable[str],
    ignore_hidden: bool = True,
) -> Generator[Path, None, None]:
    """
    Yield files under root whose lower-cased extension is in include_ext.

    Raises:
        InvalidPathError: if root is missing or not a directory.
    """
    rp = root.expanduser().resolve()
    if not rp.exists():
        raise InvalidPathError(f"Folder not found: {rp}")
    if not rp.is_dir():
        raise InvalidPathError(f"Not a directory: {rp}")

    include = {ext.lower() for ext in include_ext}

    for dirpath, dirnames, filenames in os.walk(rp):
        if ignore_hidden:
            dirnames[:] = [d for d in dirnames if not _is_hidden(d)]
        dirnames.sort()
        for name in sorted(filenames):
            if ignore_hidden and _is_hidden(name):
                continue
            if Path(name).suffix.lower() in include:
                yield Path(dirpath) / name
