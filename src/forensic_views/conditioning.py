"""Input conditioning: bound the source image before forensic analysis."""

import functools
import logging
import math
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image
from pydantic import Field, field_validator
from pydantic.dataclasses import dataclass

from forensic_views.constants import (
    MAX_FILE_BYTES,
    MAX_IMAGE_DIMENSION,
    MAX_PIXELS,
    SUPPORTED_SUFFIXES,
)
from forensic_views.errors import InvalidInputError
from forensic_views.parameters import InterpolationPolicy
from forensic_views.types import ConditionedImage, RawImage

logger = logging.getLogger(__name__)

__all__ = ['InputConditioner', 'condition', 'conditioner_for', 'load_raw_image']


@dataclass(frozen=True)
class InputConditioner:
    """Enforces dimension and pixel-count ceilings with an aspect-preserving downscale."""

    max_dimension: int = Field(default=MAX_IMAGE_DIMENSION, ge=1)
    max_pixels: int = Field(default=MAX_PIXELS, ge=1)
    interpolation: InterpolationPolicy = Field(default=InterpolationPolicy.AREA)

    @field_validator("interpolation")
    @classmethod
    def validate_interpolation(cls, v: InterpolationPolicy) -> InterpolationPolicy:
        """Warn about filters that alias when shrinking."""
        if v is InterpolationPolicy.NEAREST:
            logger.warning("Nearest-neighbour downscaling aliases and will distort the spectrum")
        return v

    def within_bounds(self, width: int, height: int) -> bool:
        return (
            width <= self.max_dimension
            and height <= self.max_dimension
            and width * height <= self.max_pixels
        )

    def target_size(self, width: int, height: int) -> Tuple[int, int]:
        """
        Compute the conditioned size for a source of the given dimensions.

        The longer side is scaled down to ``max_dimension``; if the result still
        exceeds ``max_pixels``, both sides are scaled by sqrt(max_pixels / (w * h)).

        Args:
            width: Source width in pixels
            height: Source height in pixels

        Returns:
            (width, height), each at least 1
        """
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Image has zero size: {width}x{height}")

        if self.within_bounds(width, height):
            return width, height

        new_width, new_height = float(width), float(height)
        if width > height:
            if width > self.max_dimension:
                new_width = self.max_dimension
                new_height = round(height / width * self.max_dimension)
        elif height > self.max_dimension:
            new_height = self.max_dimension
            new_width = round(width / height * self.max_dimension)

        new_width = max(1, int(new_width))
        new_height = max(1, int(new_height))

        if new_width * new_height > self.max_pixels:
            scale = math.sqrt(self.max_pixels / (new_width * new_height))
            new_width = max(1, round(new_width * scale))
            new_height = max(1, round(new_height * scale))

            # Rounding both sides up can overshoot the ceiling
            aspect = width / height
            while new_width * new_height > self.max_pixels:
                if new_width >= new_height:
                    new_width -= 1
                    new_height = max(1, round(new_width / aspect))
                else:
                    new_height -= 1
                    new_width = max(1, round(new_height * aspect))

        return new_width, new_height

    def condition(self, image: RawImage) -> ConditionedImage:
        """
        Bound an image for processing.

        Images already inside the bounds are passed through without a copy.

        Args:
            image: Decoded RGBA source image

        Returns:
            ConditionedImage with ``was_resized`` set when a resample happened

        Raises:
            InvalidInputError: If the image is empty or its buffer is malformed
        """
        _validate_raw_image(image)

        new_width, new_height = self.target_size(image.width, image.height)
        if (new_width, new_height) == (image.width, image.height):
            logger.debug(f"Image {image.width}x{image.height} within bounds, no resize")
            return ConditionedImage(
                width=image.width,
                height=image.height,
                pixels=image.pixels,
                was_resized=False,
                source_width=image.width,
                source_height=image.height,
            )

        resized = cv2.resize(
            image.pixels,
            (new_width, new_height),
            interpolation=self.interpolation.cv2_flag,
        )

        logger.info(
            f"Resized image from {image.width}x{image.height} to {new_width}x{new_height} "
            f"({self.interpolation.value} interpolation)"
        )

        return ConditionedImage(
            width=new_width,
            height=new_height,
            pixels=resized,
            was_resized=True,
            source_width=image.width,
            source_height=image.height,
        )


@functools.lru_cache(maxsize=16)
def conditioner_for(
    max_dimension: int = MAX_IMAGE_DIMENSION,
    max_pixels: int = MAX_PIXELS,
    interpolation: InterpolationPolicy = InterpolationPolicy.AREA,
) -> InputConditioner:
    """Shared conditioner for a set of bounds, validated once per distinct set."""
    return InputConditioner(
        max_dimension=max_dimension, max_pixels=max_pixels, interpolation=interpolation
    )


def condition(
    image: RawImage,
    max_dimension: int = MAX_IMAGE_DIMENSION,
    max_pixels: int = MAX_PIXELS,
    interpolation: InterpolationPolicy = InterpolationPolicy.AREA,
) -> ConditionedImage:
    """Condition ``image`` with the given bounds."""
    return conditioner_for(max_dimension, max_pixels, interpolation).condition(image)


def _validate_raw_image(image: RawImage) -> None:
    if image.width <= 0 or image.height <= 0:
        raise InvalidInputError(f"Image has zero size: {image.width}x{image.height}")

    pixels = image.pixels
    if not isinstance(pixels, np.ndarray):
        raise InvalidInputError(f"Pixel buffer must be a numpy array, got {type(pixels).__name__}")
    if pixels.dtype != np.uint8 or pixels.shape != (image.height, image.width, 4):
        raise InvalidInputError(
            f"Pixel buffer {pixels.shape} {pixels.dtype} does not match "
            f"{image.width}x{image.height} RGBA8"
        )


def load_raw_image(
    image_path: Union[str, Path], max_file_bytes: int = MAX_FILE_BYTES
) -> RawImage:
    """
    Decode an image file into an RGBA RawImage.

    Args:
        image_path: Path to the image file
        max_file_bytes: Largest file size accepted

    Returns:
        RawImage with an (H, W, 4) uint8 buffer

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputError: If the file is unsupported, too large or unreadable
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise InvalidInputError(f"Unsupported image format: {path.suffix}")

    file_size = path.stat().st_size
    if file_size > max_file_bytes:
        raise InvalidInputError(
            f"Image file is {file_size / (1024 * 1024):.1f}MB, "
            f"limit is {max_file_bytes / (1024 * 1024):.0f}MB"
        )

    logger.debug(f"Loading image: {image_path}")
    try:
        img = Image.open(path)
        img.verify()
        # verify() leaves the image unusable, reopen for decoding
        img = Image.open(path)
        img = img.convert("RGBA")
        pixels = np.array(img, dtype=np.uint8)
    except Exception as e:
        raise InvalidInputError(f"Failed to load or verify image {image_path}: {e}") from e

    return RawImage.from_array(pixels)
