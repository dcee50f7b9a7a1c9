"""
Perceptual fingerprint algorithms.

Each algorithm maps a decoded Pillow image to a 64-bit unsigned int:
- average: 8x8 grayscale, threshold at the mean
- difference (dHash, default): 9x8 grayscale, compare each pixel to its right neighbour
- perceptual (pHash): 32x32 grayscale -> DCT (cv2.dct) -> top-left 8x8 block, threshold at the median
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, Type, cast

import cv2  # type: ignore[import-untyped]
import numpy as np
from numpy.typing import NDArray
from PIL import Image

from errors import ConfigLoadError


class Fingerprinter(Protocol):
    name: str

    def fingerprint(self, image: Image.Image) -> int: ...


def _grayscale(image: Image.Image, *, size: Tuple[int, int]) -> NDArray[np.float32]:
    """
    Convert to grayscale, resize to `size` (width, height),
    and return a float32 array normalized to [0, 1].
    """
    im = image.convert("L").resize(size, Image.Resampling.LANCZOS)
    arr = np.asarray(im, dtype=np.float32) / np.float32(255.0)
    return cast(NDArray[np.float32], arr)


def _pack_bits(bits: NDArray[np.bool_]) -> int:
    """Pack a boolean array into an int, first element as the most significant bit."""
    acc = 0
    for b in bits.astype(np.uint8).ravel():
        acc = (acc << 1) | int(b)
    return acc


class AverageHash:
    """aHash: 8x8 grayscale, one bit per pixel brighter than the mean."""

    name = "average"

    def fingerprint(self, image: Image.Image) -> int:
        arr = _grayscale(image, size=(8, 8))
        mean = float(arr.mean())
        return _pack_bits(arr > mean)


class DifferenceHash:
    """dHash: 9x8 grayscale, one bit per pixel brighter than its right neighbour."""

    name = "difference"

    def fingerprint(self, image: Image.Image) -> int:
        arr = _grayscale(image, size=(9, 8))
        return _pack_bits(arr[:, :-1] > arr[:, 1:])


class PerceptualHash:
    """pHash: low-frequency 8x8 DCT block of a 32x32 grayscale image."""

    name = "perceptual"

    def fingerprint(self, image: Image.Image) -> int:
        arr = _grayscale(image, size=(32, 32))

        # cv2.dct has no stubs; cast its result to NDArray[float32]
        dct_out = cv2.dct(arr)  # type: ignore[no-untyped-call]
        dct_arr: NDArray[np.float32] = cast(
            NDArray[np.float32], np.asarray(dct_out, dtype=np.float32)
        )

        low: NDArray[np.float32] = dct_arr[:8, :8]
        med = float(np.median(low))  # type: ignore[call-overload]
        return _pack_bits(low > med)


ALGORITHMS: Dict[str, Type[Fingerprinter]] = {
    AverageHash.name: AverageHash,
    DifferenceHash.name: DifferenceHash,
    PerceptualHash.name: PerceptualHash,
}


def get_fingerprinter(name: str) -> Fingerprinter:
    """
    Instantiate a fingerprint algorithm by name.

    Raises:
        ConfigLoadError: for an unknown algorithm name.
    """
    key = name.strip().lower()
    try:
        return ALGORITHMS[key]()
    except KeyError:
        choices = ", ".join(ALGORITHMS)
        raise ConfigLoadError(
            f"Unknown hash algorithm: {name!r} (expected one of: {choices})"
        ) from None
