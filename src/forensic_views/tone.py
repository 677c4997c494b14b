"""Parametric tone mapping of the normalized spectrum for 8-bit display."""

import numpy as np

from forensic_views.constants import DEFAULT_GAIN, DEFAULT_GAMMA, DEFAULT_OFFSET

__all__ = ['map_tone']


def map_tone(
    spectrum: np.ndarray,
    gamma: float = DEFAULT_GAMMA,
    gain: float = DEFAULT_GAIN,
    offset: float = DEFAULT_OFFSET,
) -> np.ndarray:
    """
    Map a [0, 1] spectrum to uint8 through a power-law curve.

    display = clamp(round(clamp(x, 0, 1) ** gamma * gain * 255 + offset), 0, 255)

    Args:
        spectrum: Normalized spectrum
        gamma: Power-law exponent (> 0), 1.0 is the identity
        gain: Multiplier (> 0) applied after the power law
        offset: Additive offset in display levels

    Returns:
        uint8 array with the same shape as ``spectrum``
    """
    if gamma <= 0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    if gain <= 0:
        raise ValueError(f"gain must be positive, got {gain}")

    values = np.clip(np.nan_to_num(spectrum.astype(np.float64)), 0.0, 1.0)
    values = np.power(values, gamma)
    display = np.rint(values * gain * 255.0 + offset)
    return np.clip(display, 0, 255).astype(np.uint8)
