from __future__ import annotations

from pathlib import Path
from typing import Callable

import numpy as np
import pytest
from PIL import Image

MakeImage = Callable[..., Path]


@pytest.fixture
def make_image(tmp_path: Path) -> MakeImage:
    """Write a seeded random grayscale PNG and return its path."""

    def _make(name: str, width: int = 64, height: int = 64, seed: int = 123) -> Path:
        rng = np.random.default_rng(seed)
        arr = (rng.random((height, width)) * 255).astype("uint8")
        p = tmp_path / name
        Image.fromarray(arr).convert("L").save(p)
        return p

    return _make
