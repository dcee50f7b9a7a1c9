"""
Hash orchestration and comparison.

ImageHash ties the pieces together: it loads images through an image
processor, runs a fingerprint algorithm, encodes the raw 64-bit value in the
instance's mode and compares encoded hashes by Hamming distance.

Every image handle the hasher acquires is registered on an ExitStack right
after acquisition, so it is released exactly once on every exit path.
Images passed in by the caller are never released.

Instances hold no mutable state after construction and can be shared
between threads.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional, Union

from config import AppConfig
from distance import distance as hamming_distance
from distance import select_strategy
from encoding import EncodedHash, Mode, encode
from errors import InvalidCompositeInputError
from fingerprint import DifferenceHash, Fingerprinter, get_fingerprinter
from imaging import ImageProcessor, PillowProcessor
from logs import get_logger

log = get_logger("imghash.hasher")


@dataclass(frozen=True)
class CompositeHash:
    """Hashes of the whole image and of its left and right halves."""

    full: EncodedHash
    left: EncodedHash
    right: EncodedHash

    def as_dict(self) -> Dict[str, EncodedHash]:
        return asdict(self)


@dataclass(frozen=True)
class CompositeDistance:
    full_distance: int
    left_part_distance: int
    right_part_distance: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


class ImageHash:
    """
    Perceptual hashing front end.

    Args:
        fingerprinter: algorithm producing a 64-bit int per image
            (defaults to DifferenceHash).
        mode: encoding of every hash produced and consumed by this instance.
        processor: image-processing backend (defaults to PillowProcessor).
        strategy: Hamming strategy name ("auto", "popcount", "bitwise").
        strict: raise InvalidCompositeInputError from multiple_hash instead of
            returning False for an already-decoded image.
    """

    def __init__(
        self,
        fingerprinter: Optional[Fingerprinter] = None,
        mode: Mode = Mode.HEX,
        *,
        processor: Optional[ImageProcessor] = None,
        strategy: str = "auto",
        strict: bool = False,
    ) -> None:
        self._fingerprinter = fingerprinter or DifferenceHash()
        self._mode = Mode(mode)
        self._processor = processor or PillowProcessor()
        self._strategy = select_strategy(strategy)
        self._strict = strict

    @classmethod
    def from_config(
        cls, cfg: AppConfig, *, processor: Optional[ImageProcessor] = None
    ) -> "ImageHash":
        return cls(
            get_fingerprinter(cfg.hash.algorithm),
            cfg.hash.mode,
            processor=processor,
            strategy=cfg.hash.distance,
            strict=cfg.hash.strict,
        )

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def fingerprinter(self) -> Fingerprinter:
        return self._fingerprinter

    # ------------------------------ hashing ------------------------------------

    def hash(self, source: Any) -> EncodedHash:
        """
        Hash an image file path or an already-decoded image. Encoded image
        bytes go through hash_from_bytes instead.

        Raises:
            UnreadableImageError: if a path cannot be loaded, or if source is
                raw bytes.
        """
        with ExitStack() as stack:
            if self._processor.is_image(source):
                image = source
            else:
                image = self._acquire(stack, self._processor.load(source))
            raw = self._fingerprinter.fingerprint(image)
        encoded = encode(raw, self._mode)
        log.debug(f"{self._fingerprinter.name} hash of {source!r}: {encoded}")
        return encoded

    def hash_from_bytes(self, data: bytes) -> EncodedHash:
        """
        Hash encoded image bytes (PNG, JPEG, ...).

        Raises:
            UnreadableImageError: if the bytes cannot be decoded.
        """
        with ExitStack() as stack:
            image = self._acquire(stack, self._processor.decode(data))
            raw = self._fingerprinter.fingerprint(image)
        return encode(raw, self._mode)

    def multiple_hash(self, source: Any) -> Union[CompositeHash, Literal[False]]:
        """
        Hash an image file and its left and right halves.

        The image is split at column width // 2: the left half covers
        [0, midpoint) and the right half [midpoint, width).

        Returns False when given an already-decoded image (unless the
        instance is strict).

        Raises:
            InvalidCompositeInputError: in strict mode for decoded images,
                and for images narrower than two pixels.
            UnreadableImageError: if the file cannot be loaded.
        """
        if self._processor.is_image(source):
            if self._strict:
                raise InvalidCompositeInputError(
                    "multiple_hash needs an image file, not a decoded image"
                )
            log.warning("multiple_hash called with a decoded image; returning False")
            return False

        proc = self._processor
        fp = self._fingerprinter
        with ExitStack() as stack:
            image = self._acquire(stack, proc.load(source))
            width, height = proc.dimensions(image)
            if width < 2:
                raise InvalidCompositeInputError(
                    f"Image too narrow to split: {width}x{height} ({source})"
                )
            midpoint = width // 2
            left = self._acquire(stack, proc.crop(image, 0, 0, midpoint, height))
            right = self._acquire(
                stack, proc.crop(image, midpoint, 0, width - midpoint, height)
            )

            full_raw = fp.fingerprint(image)
            left_raw = fp.fingerprint(left)
            right_raw = fp.fingerprint(right)

        return CompositeHash(
            full=encode(full_raw, self._mode),
            left=encode(left_raw, self._mode),
            right=encode(right_raw, self._mode),
        )

    # ----------------------------- comparison ----------------------------------

    def compare(self, source1: Any, source2: Any) -> int:
        """Hamming distance between the hashes of two images."""
        return self.distance(self.hash(source1), self.hash(source2))

    def multiple_compare(self, source1: Any, source2: Any) -> CompositeDistance:
        """
        Pairwise distances between the composite hashes of two image files.

        Raises:
            InvalidCompositeInputError: if either side is not an image file.
        """
        hash1 = self.multiple_hash(source1)
        hash2 = self.multiple_hash(source2)
        if hash1 is False or hash2 is False:
            raise InvalidCompositeInputError(
                "multiple_compare needs two image files, not decoded images"
            )

        return CompositeDistance(
            full_distance=self.distance(hash1.full, hash2.full),
            left_part_distance=self.distance(hash1.left, hash2.left),
            right_part_distance=self.distance(hash1.right, hash2.right),
        )

    def distance(self, hash1: EncodedHash, hash2: EncodedHash) -> int:
        """
        Hamming distance between two hashes encoded in this instance's mode.

        Raises:
            MalformedHashError: if either hash is not valid for the mode.
        """
        return hamming_distance(hash1, hash2, self._mode, self._strategy)

    def _acquire(self, stack: ExitStack, image: Any) -> Any:
        stack.callback(self._processor.release, image)
        return image
