"""Numeric engine that backs the Fourier transform."""

import importlib
import logging
from typing import Callable, List, Tuple

import numpy as np

from forensic_views.errors import EngineUnavailableError, ProcessingError
from forensic_views.parameters import TransformBackend

logger = logging.getLogger(__name__)

__all__ = ['ComputeEngine']


class ComputeEngine:
    """
    Wraps the transform backend and its readiness signal.

    The engine starts unavailable. ``initialize()`` loads the backend module,
    after which ``is_ready`` is True and every ``on_ready`` listener has been
    called exactly once.
    """

    def __init__(self, backend: TransformBackend = TransformBackend.OPENCV):
        self.backend = TransformBackend(backend)
        self.version = None
        self._module = None
        self._listeners: List[Callable[[], None]] = []

        logger.debug(f"Created ComputeEngine with backend={self.backend.value}")

    @property
    def is_ready(self) -> bool:
        return self._module is not None

    def on_ready(self, callback: Callable[[], None]) -> None:
        """Register a readiness listener; called immediately if already ready."""
        if self.is_ready:
            callback()
        else:
            self._listeners.append(callback)

    def initialize(self) -> "ComputeEngine":
        """
        Load the backend module and signal readiness.

        Returns:
            self, for chaining

        Raises:
            EngineUnavailableError: If the backend cannot be loaded
        """
        if self.is_ready:
            return self

        try:
            module = importlib.import_module(self.backend.module_name)
        except ImportError as e:
            raise EngineUnavailableError(
                f"Transform backend '{self.backend.value}' could not be loaded: {e}"
            ) from e

        if self.backend is TransformBackend.OPENCV:
            self.version = module.__version__
        else:
            self.version = importlib.import_module("scipy").__version__
        self._module = module

        logger.info(f"Compute engine ready: {self.backend.value} {self.version}")

        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            callback()
        return self

    def _require(self):
        if self._module is None:
            raise ProcessingError(
                f"Transform engine '{self.backend.value}' is not initialized"
            )
        return self._module

    def optimal_dft_size(self, n: int) -> int:
        """Smallest FFT-efficient length (2^p * 3^q * 5^r) that is >= n."""
        module = self._require()
        if n < 1:
            raise ValueError(f"Signal length must be positive, got {n}")

        if self.backend is TransformBackend.OPENCV:
            size = module.getOptimalDFTSize(n)
        else:
            size = module.next_fast_len(n, real=True)

        if size < n:
            raise ProcessingError(f"Engine returned padded size {size} smaller than {n}")
        return int(size)

    def forward_dft(self, plane: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute the 2-D DFT of a real plane.

        Args:
            plane: Real-valued signal (H, W), float32

        Returns:
            (real, imaginary) planes, float32, same shape as ``plane``
        """
        module = self._require()

        if self.backend is TransformBackend.OPENCV:
            planes = [plane, np.zeros_like(plane)]
            complex_plane = module.merge(planes)
            complex_plane = module.dft(complex_plane)
            real, imag = module.split(complex_plane)
        else:
            spectrum = module.fft2(plane)
            real = spectrum.real.astype(np.float32)
            imag = spectrum.imag.astype(np.float32)

        return real, imag
