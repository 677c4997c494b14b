"""Tests for spectrum tone mapping."""

import numpy as np
import pytest

from forensic_views.tone import map_tone


def test_map_tone_identity():
    """Test gamma=1, gain=1, offset=0 is a plain 8-bit quantization."""
    values = np.linspace(-0.5, 1.5, 201).reshape(3, 67)

    display = map_tone(values, gamma=1.0, gain=1.0, offset=0.0)

    expected = np.rint(np.clip(values, 0.0, 1.0) * 255.0).astype(np.uint8)
    assert display.dtype == np.uint8
    assert display.shape == values.shape
    assert np.array_equal(display, expected)


def test_map_tone_gamma():
    """Test the power-law curve."""
    display = map_tone(np.array([[0.0, 0.5, 1.0]]), gamma=2.0, gain=1.0, offset=0.0)
    assert display.tolist() == [[0, 64, 255]]


def test_map_tone_gain_and_offset_clamp():
    """Test results are clamped to [0, 255]."""
    ones = np.ones((4, 4))
    assert np.all(map_tone(ones, gamma=1.0, gain=1.0, offset=100.0) == 255)
    assert np.all(map_tone(ones, gamma=1.0, gain=1.0, offset=-300.0) == 0)
    assert map_tone(np.array([[0.75]]), gamma=1.0, gain=2.0, offset=0.0)[0, 0] == 255
    assert map_tone(np.array([[0.0]]), gamma=1.0, gain=1.0, offset=12.0)[0, 0] == 12


def test_map_tone_is_deterministic():
    """Test the mapping is a pure function of its inputs."""
    spectrum = np.random.rand(16, 16).astype(np.float32)
    original = spectrum.copy()

    first = map_tone(spectrum, gamma=1.2, gain=1.0, offset=5.0)
    second = map_tone(spectrum, gamma=1.2, gain=1.0, offset=5.0)

    assert np.array_equal(first, second)
    assert np.array_equal(spectrum, original)


def test_map_tone_handles_nan():
    """Test NaN values map to black."""
    assert map_tone(np.array([[np.nan]]), gamma=1.0, gain=1.0, offset=0.0)[0, 0] == 0


def test_map_tone_input_validation():
    """Test gamma and gain must be positive."""
    with pytest.raises(ValueError, match="gamma"):
        map_tone(np.zeros((2, 2)), gamma=0.0)
    with pytest.raises(ValueError, match="gain"):
        map_tone(np.zeros((2, 2)), gain=-1.0)
