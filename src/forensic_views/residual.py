"""Spatial noise residual extraction.

The residual is the absolute difference between the luminance and a lightly
blurred copy of it. Camera sensor noise, recompression and synthesis leave
different textures in this high-pass band, which the display form makes
visible with a fixed gain followed by CLAHE.
"""

import logging
from typing import NamedTuple, Optional, Tuple

import cv2
import numpy as np

from forensic_views.constants import (
    DEFAULT_BLUR_KERNEL_SIZE,
    DEFAULT_CLIP_LIMIT,
    DEFAULT_RESIDUAL_GAIN,
    DEFAULT_TILE_GRID,
)
from forensic_views.errors import InvalidInputError
from forensic_views.resources import PassArena, track
from forensic_views.types import ConditionedImage

logger = logging.getLogger(__name__)

__all__ = [
    'ResidualPair',
    'to_luminance',
    'compute_raw_residual',
    'enhance_residual',
    'extract_residual',
]


class ResidualPair(NamedTuple):
    raw: np.ndarray  # float32, unscaled |gray - blur(gray)|, feeds the spectrum
    display: np.ndarray  # uint8, gained and contrast-enhanced


def to_luminance(pixels: np.ndarray) -> np.ndarray:
    """
    Convert an RGBA uint8 buffer to float32 luminance in [0, 255].

    Conversion happens in floating point so no rounding enters the residual.
    """
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise InvalidInputError(f"Expected (H, W, 4) RGBA buffer, got shape {pixels.shape}")
    return cv2.cvtColor(pixels.astype(np.float32), cv2.COLOR_RGBA2GRAY)


def compute_raw_residual(
    gray: np.ndarray,
    blur_kernel_size: int = DEFAULT_BLUR_KERNEL_SIZE,
    arena: Optional[PassArena] = None,
) -> np.ndarray:
    """
    Compute |gray - GaussianBlur(gray)| at float32 precision.

    Args:
        gray: Luminance plane (H, W), float32
        blur_kernel_size: Odd Gaussian kernel size
        arena: Optional pass arena that owns the intermediates

    Returns:
        Raw residual (H, W), float32, never rescaled
    """
    if gray.size == 0:
        raise InvalidInputError("Luminance array is empty")
    if gray.ndim != 2:
        raise InvalidInputError(f"Expected 2D array, got {gray.ndim}D array with shape {gray.shape}")
    if blur_kernel_size < 1 or blur_kernel_size % 2 == 0:
        raise ValueError(f"blur_kernel_size must be a positive odd integer, got {blur_kernel_size}")

    gray = gray.astype(np.float32, copy=False)
    kernel = (blur_kernel_size, blur_kernel_size)
    blurred = track(arena, "blurred", cv2.GaussianBlur(gray, kernel, 0))
    residual = cv2.absdiff(gray, blurred)

    logger.debug(
        f"Residual {residual.shape}: mean={float(residual.mean()):.4f}, "
        f"max={float(residual.max()):.4f} (kernel {blur_kernel_size}x{blur_kernel_size})"
    )
    return residual


def enhance_residual(
    residual: np.ndarray,
    residual_gain: float = DEFAULT_RESIDUAL_GAIN,
    clip_limit: float = DEFAULT_CLIP_LIMIT,
    tile_grid: Tuple[int, int] = DEFAULT_TILE_GRID,
    arena: Optional[PassArena] = None,
) -> np.ndarray:
    """
    Scale the residual for visibility and apply CLAHE.

    Args:
        residual: Raw residual (H, W), float32
        residual_gain: Multiplier applied before saturating to uint8
        clip_limit: CLAHE contrast clip limit
        tile_grid: CLAHE tile grid as (columns, rows)
        arena: Optional pass arena that owns the intermediates

    Returns:
        Display residual (H, W), uint8
    """
    scaled = track(arena, "scaled_residual", cv2.convertScaleAbs(residual, alpha=residual_gain))

    clahe = track(
        arena,
        "clahe",
        cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=tuple(tile_grid)),
        release=lambda c: c.collectGarbage(),
    )
    return clahe.apply(scaled)


def extract_residual(
    image: ConditionedImage,
    blur_kernel_size: int = DEFAULT_BLUR_KERNEL_SIZE,
    clip_limit: float = DEFAULT_CLIP_LIMIT,
    tile_grid: Tuple[int, int] = DEFAULT_TILE_GRID,
    residual_gain: float = DEFAULT_RESIDUAL_GAIN,
    arena: Optional[PassArena] = None,
) -> ResidualPair:
    """
    Derive the raw and display residuals of a conditioned image.

    Args:
        image: Conditioned RGBA image
        blur_kernel_size: Odd Gaussian kernel size for the smoothed reference
        clip_limit: CLAHE clip limit for the display form
        tile_grid: CLAHE tile grid (columns, rows) for the display form
        residual_gain: Visibility gain for the display form
        arena: Optional pass arena that owns every buffer allocated here

    Returns:
        ResidualPair with both planes at the conditioned image's dimensions
    """
    gray = track(arena, "gray", to_luminance(image.pixels))
    raw = track(arena, "raw_residual", compute_raw_residual(gray, blur_kernel_size, arena))
    if arena is not None:
        arena.release("gray")

    display = track(
        arena,
        "display_residual",
        enhance_residual(raw, residual_gain, clip_limit, tile_grid, arena),
    )
    return ResidualPair(raw=raw, display=display)
