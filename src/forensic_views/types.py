"""Shared data types for the forensic pipeline."""

from enum import Enum
from typing import NamedTuple, Optional, Tuple

import numpy as np

from forensic_views.errors import InvalidInputError
from forensic_views.parameters import ProcessingParameters

__all__ = [
    'RawImage',
    'ConditionedImage',
    'DisplayTargets',
    'ForensicViews',
    'StatusKind',
    'PassStatus',
    'CoordinatorState',
]


class RawImage(NamedTuple):
    """Decoded source image: interleaved RGBA, 8 bits per channel, shape (H, W, 4)."""

    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RawImage":
        """
        Wrap a grayscale, RGB or RGBA uint8 array as a RawImage.

        Args:
            array: Image array (H, W), (H, W, 3) or (H, W, 4)

        Returns:
            RawImage with an RGBA pixel buffer

        Raises:
            InvalidInputError: If the array cannot be interpreted as an image
        """
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise InvalidInputError(f"Expected uint8 pixels, got {array.dtype}")

        if array.ndim == 2:
            array = np.dstack([array, array, array, np.full_like(array, 255)])
        elif array.ndim == 3 and array.shape[2] == 3:
            alpha = np.full(array.shape[:2] + (1,), 255, dtype=np.uint8)
            array = np.concatenate([array, alpha], axis=2)
        elif not (array.ndim == 3 and array.shape[2] == 4):
            raise InvalidInputError(f"Unsupported pixel layout with shape {array.shape}")

        return cls(width=array.shape[1], height=array.shape[0], pixels=np.ascontiguousarray(array))


class ConditionedImage(NamedTuple):
    """Source image after the dimension and pixel-count bounds were enforced."""

    width: int
    height: int
    pixels: np.ndarray
    was_resized: bool
    source_width: int
    source_height: int

    @property
    def megabytes(self) -> float:
        """RGBA footprint in MiB."""
        return self.width * self.height * 4 / (1024 * 1024)

    def describe(self) -> str:
        info = f"{self.width}×{self.height}px ({self.megabytes:.2f}MB)"
        if self.was_resized:
            info += " [resized]"
        return info


class DisplayTargets(NamedTuple):
    """Presentation sizes requested by the caller. None keeps the native size."""

    residual_size: Optional[Tuple[int, int]] = None  # (width, height)
    spectrum_size: Optional[int] = None  # square side


class ForensicViews(NamedTuple):
    """Output of one processing pass."""

    residual_view: np.ndarray  # uint8 (H, W)
    spectrum_view: np.ndarray  # uint8, square when a spectrum size is requested
    source_size: Tuple[int, int]  # (width, height) before conditioning
    conditioned_size: Tuple[int, int]
    padded_size: Tuple[int, int]  # FFT-efficient (width, height)
    was_resized: bool
    parameters: ProcessingParameters


class StatusKind(str, Enum):
    """Outcome reported on the status channel after each pass."""

    OK = "ok"
    INVALID_INPUT = "invalid_input"
    ENGINE_UNAVAILABLE = "engine_unavailable"
    PROCESSING_ERROR = "processing_error"


class PassStatus(NamedTuple):
    """Status notification emitted once per pass."""

    kind: StatusKind
    elapsed_ms: float
    parameters: ProcessingParameters
    message: str = ""
    release_failures: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is StatusKind.OK


class CoordinatorState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
