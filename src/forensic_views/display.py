"""Sizing of display buffers for the presentation layer."""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from forensic_views.parameters import InterpolationPolicy

logger = logging.getLogger(__name__)

__all__ = ['render_to_target', 'scale_to_width', 'fit_within']


def render_to_target(
    buffer: np.ndarray,
    size: Optional[Tuple[int, int]],
    interpolation: InterpolationPolicy = InterpolationPolicy.AREA,
) -> np.ndarray:
    """
    Resize a display buffer to a (width, height) target.

    Returns ``buffer`` itself when no size is given or the size already matches.
    """
    if size is None:
        return buffer

    width = max(1, int(round(size[0])))
    height = max(1, int(round(size[1])))
    if buffer.shape[1] == width and buffer.shape[0] == height:
        return buffer

    logger.debug(
        f"Rendering {buffer.shape[1]}x{buffer.shape[0]} to {width}x{height} "
        f"({interpolation.value})"
    )
    return cv2.resize(buffer, (width, height), interpolation=interpolation.cv2_flag)


def scale_to_width(width: int, height: int, target_width: int) -> Tuple[int, int]:
    """Size that fills ``target_width`` and keeps the aspect ratio."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Source size must be positive, got {width}x{height}")
    target_width = max(1, int(target_width))
    return target_width, max(1, round(target_width / width * height))


def fit_within(width: int, height: int, max_width: float, max_height: float) -> Tuple[int, int]:
    """Largest aspect-preserving size that fits inside ``max_width`` x ``max_height``."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Source size must be positive, got {width}x{height}")

    aspect = width / height
    if max_width / max_height > aspect:
        new_height = max_height
        new_width = new_height * aspect
    else:
        new_width = max_width
        new_height = new_width / aspect
    return max(1, round(new_width)), max(1, round(new_height))
