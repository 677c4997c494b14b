"""Validated configuration for the forensic transform pipeline."""

import dataclasses
from enum import Enum
from typing import Tuple

import cv2
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass

from forensic_views.constants import (
    DEFAULT_BLUR_KERNEL_SIZE,
    DEFAULT_CLIP_LIMIT,
    DEFAULT_GAIN,
    DEFAULT_GAMMA,
    DEFAULT_OFFSET,
    DEFAULT_RESIDUAL_GAIN,
    DEFAULT_TILE_GRID,
    MAX_IMAGE_DIMENSION,
    MAX_PIXELS,
)


__all__ = ['InterpolationPolicy', 'TransformBackend', 'ProcessingParameters']


class InterpolationPolicy(str, Enum):
    """Resampling filter used whenever a buffer changes size."""

    AREA = "area"
    LINEAR = "linear"
    CUBIC = "cubic"
    LANCZOS = "lanczos"
    NEAREST = "nearest"

    @property
    def cv2_flag(self) -> int:
        return {
            InterpolationPolicy.AREA: cv2.INTER_AREA,
            InterpolationPolicy.LINEAR: cv2.INTER_LINEAR,
            InterpolationPolicy.CUBIC: cv2.INTER_CUBIC,
            InterpolationPolicy.LANCZOS: cv2.INTER_LANCZOS4,
            InterpolationPolicy.NEAREST: cv2.INTER_NEAREST,
        }[self]


class TransformBackend(str, Enum):
    """Library that backs the 2-D Fourier transform."""

    OPENCV = "opencv"
    SCIPY = "scipy"

    @property
    def module_name(self) -> str:
        return {TransformBackend.OPENCV: "cv2", TransformBackend.SCIPY: "scipy.fft"}[self]


@dataclass(frozen=True)
class ProcessingParameters:
    """
    Parameter set for one processing pass.

    Tone controls (gamma, gain, offset) shape the spectrum view; the residual
    controls (blur kernel, residual gain, CLAHE clip limit and tile grid) shape
    the residual view; the bounds (max_dimension, max_pixels, interpolation)
    apply when a new source image is conditioned.
    """

    gamma: float = Field(default=DEFAULT_GAMMA, gt=0.0, allow_inf_nan=False)
    gain: float = Field(default=DEFAULT_GAIN, gt=0.0, allow_inf_nan=False)
    offset: float = Field(default=DEFAULT_OFFSET, allow_inf_nan=False)
    blur_kernel_size: int = Field(default=DEFAULT_BLUR_KERNEL_SIZE, ge=1)
    residual_gain: float = Field(default=DEFAULT_RESIDUAL_GAIN, gt=0.0, allow_inf_nan=False)
    clip_limit: float = Field(default=DEFAULT_CLIP_LIMIT, gt=0.0, allow_inf_nan=False)
    tile_grid: Tuple[int, int] = Field(default=DEFAULT_TILE_GRID)
    max_dimension: int = Field(default=MAX_IMAGE_DIMENSION, ge=1)
    max_pixels: int = Field(default=MAX_PIXELS, ge=1)
    interpolation: InterpolationPolicy = Field(default=InterpolationPolicy.AREA)

    @field_validator("blur_kernel_size")
    @classmethod
    def validate_blur_kernel_size(cls, v: int) -> int:
        """Gaussian kernels must have an odd size."""
        if v % 2 == 0:
            raise ValueError(f"blur_kernel_size must be odd, got {v}")
        return v

    @field_validator("tile_grid")
    @classmethod
    def validate_tile_grid(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        """Ensure both tile grid dimensions are positive."""
        if v[0] < 1 or v[1] < 1:
            raise ValueError(f"tile_grid dimensions must be positive, got {v}")
        return v

    def with_changes(self, **changes) -> "ProcessingParameters":
        """Return a validated copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)
