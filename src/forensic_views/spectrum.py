"""2D Discrete Fourier Transform of the noise residual."""

import logging
from typing import Optional, Tuple

import numpy as np

from forensic_views.engine import ComputeEngine
from forensic_views.errors import ProcessingError
from forensic_views.resources import PassArena, track

logger = logging.getLogger(__name__)

__all__ = ['SpectralAnalyzer', 'swap_quadrants', 'normalize_min_max']


def swap_quadrants(plane: np.ndarray) -> np.ndarray:
    """
    Exchange diagonally opposite quadrants so the DC term moves to the center.

    Quadrants are ``floor(H/2) x floor(W/2)`` blocks; on odd sizes the last
    row and column stay in place. Each block is copied independently into a
    fresh plane, so the operation is its own inverse.

    Args:
        plane: Real-valued 2D plane

    Returns:
        New plane with the quadrants swapped
    """
    if plane.ndim != 2:
        raise ValueError(f"Expected 2D array, got {plane.ndim}D array with shape {plane.shape}")

    h, w = plane.shape
    cy, cx = h // 2, w // 2
    shifted = plane.copy()

    top_left = plane[0:cy, 0:cx].copy()
    top_right = plane[0:cy, cx:2 * cx].copy()
    bottom_left = plane[cy:2 * cy, 0:cx].copy()
    bottom_right = plane[cy:2 * cy, cx:2 * cx].copy()

    shifted[cy:2 * cy, cx:2 * cx] = top_left
    shifted[cy:2 * cy, 0:cx] = top_right
    shifted[0:cy, cx:2 * cx] = bottom_left
    shifted[0:cy, 0:cx] = bottom_right

    return shifted


def normalize_min_max(plane: np.ndarray) -> np.ndarray:
    """
    Min-max normalize a plane to [0, 1] as float32.

    A flat plane (max == min) maps to all zeros.
    """
    low = float(plane.min())
    high = float(plane.max())
    span = high - low
    if not np.isfinite(span) or span <= 0.0:
        logger.debug("Degenerate spectrum (max == min), returning zeros")
        return np.zeros(plane.shape, dtype=np.float32)
    return ((plane.astype(np.float64) - low) / span).astype(np.float32)


class SpectralAnalyzer:
    """Computes the centered, log-compressed, normalized magnitude spectrum."""

    def __init__(self, engine: ComputeEngine):
        self.engine = engine

    def padded_shape(self, shape: Tuple[int, int]) -> Tuple[int, int]:
        """FFT-efficient (rows, cols), each axis padded independently."""
        rows, cols = shape
        return self.engine.optimal_dft_size(rows), self.engine.optimal_dft_size(cols)

    def pad(self, residual: np.ndarray, arena: Optional[PassArena] = None) -> np.ndarray:
        """
        Zero-pad the residual at the bottom and right to an FFT-efficient size.

        Args:
            residual: Raw residual (H, W)
            arena: Optional pass arena that owns the padded signal

        Returns:
            Padded float32 signal (H', W') with H' >= H and W' >= W
        """
        if residual.size == 0:
            raise ProcessingError("Residual array is empty")
        if residual.ndim != 2:
            raise ProcessingError(
                f"Expected 2D array, got {residual.ndim}D array with shape {residual.shape}"
            )

        rows, cols = residual.shape
        padded_rows, padded_cols = self.padded_shape((rows, cols))
        if arena is not None:
            padded = arena.zeros("padded", (padded_rows, padded_cols), np.float32)
        else:
            padded = np.zeros((padded_rows, padded_cols), dtype=np.float32)
        padded[:rows, :cols] = residual

        logger.debug(f"Padded residual from {residual.shape} to {padded.shape}")
        return padded

    def compute_dft(
        self, padded: np.ndarray, arena: Optional[PassArena] = None
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Compute the DFT of the padded signal as (real, imaginary) planes."""
        logger.debug(f"Computing 2D DFT for signal shape: {padded.shape}")
        try:
            real, imag = self.engine.forward_dft(padded)
        except ProcessingError:
            raise
        except Exception as e:
            raise ProcessingError(f"Fourier transform failed: {e}") from e

        return track(arena, "dft_real", real), track(arena, "dft_imag", imag)

    @staticmethod
    def compute_magnitude(real: np.ndarray, imag: np.ndarray, log_scale: bool = True) -> np.ndarray:
        """
        Compute sqrt(re^2 + im^2), optionally compressed with log(1 + m).

        Args:
            real: Real plane
            imag: Imaginary plane
            log_scale: If True, apply log1p compression

        Returns:
            Magnitude plane, float32
        """
        if real.shape != imag.shape:
            raise ProcessingError(f"Plane shapes differ: {real.shape} vs {imag.shape}")

        magnitude = np.sqrt(np.square(real, dtype=np.float32) + np.square(imag, dtype=np.float32))
        if log_scale:
            magnitude = np.log1p(magnitude)
        return magnitude.astype(np.float32, copy=False)

    def analyze(self, raw_residual: np.ndarray, arena: Optional[PassArena] = None) -> np.ndarray:
        """
        Full spectral pipeline: pad, DFT, magnitude, log, center, normalize.

        Args:
            raw_residual: Unscaled residual (H, W)
            arena: Optional pass arena that owns every intermediate plane

        Returns:
            Normalized spectrum in [0, 1], shape equal to the padded signal

        Raises:
            ProcessingError: If the transform engine is unavailable or fails
        """
        padded = self.pad(raw_residual, arena)
        real, imag = self.compute_dft(padded, arena)

        magnitude = track(arena, "magnitude", self.compute_magnitude(real, imag))
        if arena is not None:
            arena.release("dft_real")
            arena.release("dft_imag")

        centered = track(arena, "centered", swap_quadrants(magnitude))
        normalized = track(arena, "normalized_spectrum", normalize_min_max(centered))

        logger.debug(f"Spectrum ready: shape={normalized.shape}")
        return normalized
