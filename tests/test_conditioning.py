"""Tests for input conditioning."""

import logging

import numpy as np
import pytest
from PIL import Image

from forensic_views.conditioning import (
    InputConditioner,
    condition,
    conditioner_for,
    load_raw_image,
)
from forensic_views.errors import InvalidInputError
from forensic_views.parameters import InterpolationPolicy
from forensic_views.types import RawImage


def make_raw_image(width, height, value=128):
    """Create a uniform RGBA RawImage."""
    pixels = np.full((height, width, 4), value, dtype=np.uint8)
    return RawImage(width=width, height=height, pixels=pixels)


def test_input_conditioner_initialization():
    """Test InputConditioner defaults."""
    conditioner = InputConditioner()
    assert conditioner.max_dimension == 2048
    assert conditioner.max_pixels == 4194304


def test_condition_within_bounds_is_identity():
    """Test images inside the bounds pass through without a copy."""
    image = make_raw_image(100, 80)

    conditioned = condition(image, max_dimension=2048, max_pixels=4194304)

    assert (conditioned.width, conditioned.height) == (100, 80)
    assert conditioned.was_resized is False
    assert conditioned.pixels is image.pixels


def test_condition_large_image():
    """Test a 4000x3000 image is reduced to 2048x1536."""
    image = make_raw_image(4000, 3000)

    conditioned = condition(image, max_dimension=2048, max_pixels=4194304)

    assert (conditioned.width, conditioned.height) == (2048, 1536)
    assert conditioned.width * conditioned.height <= 4194304
    assert conditioned.pixels.shape == (1536, 2048, 4)
    assert conditioned.was_resized is True
    assert (conditioned.source_width, conditioned.source_height) == (4000, 3000)


def test_condition_resamples_pixels():
    """Test resized buffers keep their content."""
    image = make_raw_image(200, 100, value=77)

    conditioned = condition(image, max_dimension=64)

    assert conditioned.pixels.shape == (32, 64, 4)
    assert conditioned.pixels.dtype == np.uint8
    assert np.all(conditioned.pixels == 77)


def test_target_size_preserves_aspect_ratio():
    """Test aspect ratio is kept within rounding tolerance."""
    conditioner = InputConditioner(max_dimension=2048, max_pixels=4194304)

    for width, height in [(4000, 3000), (3000, 4000), (3840, 2160), (6000, 4000), (2100, 2100)]:
        new_width, new_height = conditioner.target_size(width, height)
        assert max(new_width, new_height) <= 2048
        assert new_width * new_height <= 4194304
        tolerance = 1.0 / min(new_width, new_height)
        assert abs(new_width / new_height - width / height) < tolerance


def test_target_size_pixel_ceiling():
    """Test the pixel-count ceiling applies after the dimension ceiling."""
    conditioner = InputConditioner(max_dimension=1000, max_pixels=250000)

    new_width, new_height = conditioner.target_size(1200, 900)

    assert (new_width, new_height) == (577, 433)
    assert new_width * new_height <= 250000


def test_target_size_pixel_ceiling_after_rounding():
    """Test rounding never pushes the result over the pixel ceiling."""
    conditioner = InputConditioner(max_dimension=4096, max_pixels=4194304)

    new_width, new_height = conditioner.target_size(4195, 3146)

    assert new_width * new_height <= 4194304
    assert (new_width, new_height) == (2364, 1773)

    for width, height in [(4195, 3146), (4100, 4099), (5000, 1234), (1234, 5000), (4097, 3)]:
        new_width, new_height = conditioner.target_size(width, height)
        assert max(new_width, new_height) <= 4096
        assert new_width * new_height <= 4194304


def test_conditioner_for_warns_once(caplog):
    """Test the nearest-neighbour warning is logged once per set of bounds."""
    image = RawImage.from_array(np.zeros((40, 80, 3), dtype=np.uint8))

    with caplog.at_level(logging.WARNING, logger="forensic_views.conditioning"):
        for _ in range(3):
            condition(image, max_dimension=17, max_pixels=17 * 17,
                      interpolation=InterpolationPolicy.NEAREST)

    assert caplog.text.count("Nearest-neighbour") == 1
    assert conditioner_for(17, 17 * 17, InterpolationPolicy.NEAREST) is conditioner_for(
        17, 17 * 17, InterpolationPolicy.NEAREST
    )


def test_target_size_within_bounds():
    """Test target size is unchanged for images inside the bounds."""
    conditioner = InputConditioner(max_dimension=512, max_pixels=512 * 512)
    assert conditioner.target_size(512, 300) == (512, 300)


def test_condition_zero_size_image():
    """Test zero-size images fail fast."""
    image = RawImage(width=0, height=10, pixels=np.zeros((10, 0, 4), dtype=np.uint8))

    with pytest.raises(InvalidInputError, match="zero size"):
        condition(image)


def test_condition_malformed_buffer():
    """Test buffers that do not match the declared RGBA8 layout are rejected."""
    image = RawImage(width=10, height=10, pixels=np.zeros((10, 10, 3), dtype=np.uint8))

    with pytest.raises(InvalidInputError, match="does not match"):
        condition(image)


def test_raw_image_from_array():
    """Test grayscale and RGB arrays are promoted to RGBA."""
    gray = RawImage.from_array(np.zeros((20, 30), dtype=np.uint8))
    rgb = RawImage.from_array(np.zeros((20, 30, 3), dtype=np.uint8))

    for image in (gray, rgb):
        assert (image.width, image.height) == (30, 20)
        assert image.pixels.shape == (20, 30, 4)
        assert np.all(image.pixels[..., 3] == 255)

    with pytest.raises(InvalidInputError):
        RawImage.from_array(np.zeros((20, 30), dtype=np.float32))


def test_describe_conditioned_image():
    """Test the image info line."""
    conditioned = condition(make_raw_image(100, 80))
    assert conditioned.describe() == "100×80px (0.03MB)"

    resized = condition(make_raw_image(200, 100), max_dimension=64)
    assert resized.describe().endswith("[resized]")


def test_load_raw_image(tmp_path):
    """Test decoding an image file into RGBA."""
    img = Image.new("RGB", (120, 90), color=(255, 128, 64))
    img_path = tmp_path / "test.png"
    img.save(img_path)

    raw = load_raw_image(img_path)

    assert (raw.width, raw.height) == (120, 90)
    assert raw.pixels.shape == (90, 120, 4)
    assert tuple(raw.pixels[0, 0]) == (255, 128, 64, 255)


def test_load_raw_image_not_found():
    """Test error handling for missing files."""
    with pytest.raises(FileNotFoundError):
        load_raw_image("nonexistent.png")


def test_load_raw_image_unsupported_format(tmp_path):
    """Test error handling for unsupported formats."""
    invalid_path = tmp_path / "test.txt"
    invalid_path.write_text("not an image")

    with pytest.raises(InvalidInputError, match="Unsupported image format"):
        load_raw_image(invalid_path)


def test_load_raw_image_too_large(tmp_path):
    """Test the file size ceiling."""
    img_path = tmp_path / "test.png"
    Image.new("RGB", (50, 50)).save(img_path)

    with pytest.raises(InvalidInputError, match="limit"):
        load_raw_image(img_path, max_file_bytes=10)


def test_load_raw_image_corrupted(tmp_path):
    """Test unreadable files surface as InvalidInputError."""
    img_path = tmp_path / "broken.png"
    img_path.write_bytes(b"not really a png")

    with pytest.raises(InvalidInputError, match="Failed to load"):
        load_raw_image(img_path)
