"""Forensic pipeline - one pass from conditioned image to display buffers."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from forensic_views.conditioning import conditioner_for, load_raw_image
from forensic_views.display import render_to_target
from forensic_views.engine import ComputeEngine
from forensic_views.parameters import InterpolationPolicy, ProcessingParameters
from forensic_views.resources import PassArena, track
from forensic_views.residual import extract_residual
from forensic_views.spectrum import SpectralAnalyzer
from forensic_views.tone import map_tone
from forensic_views.types import ConditionedImage, DisplayTargets, ForensicViews, RawImage

logger = logging.getLogger(__name__)

__all__ = ['ForensicPipeline']


class ForensicPipeline:
    """
    Residual view + spectrum view of a still image.

    Chains the residual extractor, the spectral analyzer and the tone mapper,
    then sizes both outputs for the caller's display targets.
    """

    def __init__(self, engine: Optional[ComputeEngine] = None):
        """
        Args:
            engine: Transform engine; a ready OpenCV engine is created when omitted
        """
        self.engine = engine if engine is not None else ComputeEngine().initialize()
        self.analyzer = SpectralAnalyzer(self.engine)

    def run(
        self,
        image: ConditionedImage,
        parameters: ProcessingParameters,
        targets: Optional[DisplayTargets] = None,
        arena: Optional[PassArena] = None,
    ) -> ForensicViews:
        """
        Execute one pass over an already-conditioned image.

        Args:
            image: Conditioned source image
            parameters: Parameter set for this pass
            targets: Presentation sizes; native sizes when omitted
            arena: Pass arena that owns every intermediate buffer

        Returns:
            ForensicViews with the two uint8 display buffers
        """
        targets = targets or DisplayTargets()

        residuals = extract_residual(
            image,
            blur_kernel_size=parameters.blur_kernel_size,
            clip_limit=parameters.clip_limit,
            tile_grid=parameters.tile_grid,
            residual_gain=parameters.residual_gain,
            arena=arena,
        )
        spectrum = self.analyzer.analyze(residuals.raw, arena=arena)
        toned = track(
            arena,
            "toned_spectrum",
            map_tone(spectrum, parameters.gamma, parameters.gain, parameters.offset),
        )

        residual_view = track(
            arena,
            "residual_view",
            render_to_target(residuals.display, targets.residual_size, InterpolationPolicy.AREA),
        )
        spectrum_size = None
        if targets.spectrum_size is not None:
            spectrum_size = (targets.spectrum_size, targets.spectrum_size)
        spectrum_view = track(
            arena,
            "spectrum_view",
            render_to_target(toned, spectrum_size, InterpolationPolicy.NEAREST),
        )

        return ForensicViews(
            residual_view=residual_view,
            spectrum_view=spectrum_view,
            source_size=(image.source_width, image.source_height),
            conditioned_size=(image.width, image.height),
            padded_size=(spectrum.shape[1], spectrum.shape[0]),
            was_resized=image.was_resized,
            parameters=parameters,
        )

    def analyze(
        self,
        image: RawImage,
        parameters: Optional[ProcessingParameters] = None,
        targets: Optional[DisplayTargets] = None,
    ) -> ForensicViews:
        """
        Condition and process a raw image in a single call.

        Args:
            image: Decoded RGBA source image
            parameters: Parameter set; defaults when omitted
            targets: Presentation sizes; native sizes when omitted

        Returns:
            ForensicViews for the image
        """
        parameters = parameters or ProcessingParameters()
        conditioner = conditioner_for(
            parameters.max_dimension, parameters.max_pixels, parameters.interpolation
        )
        conditioned = conditioner.condition(image)

        logger.info(f"Analyzing image: {conditioned.describe()}")
        with PassArena(label="analyze") as arena:
            views = self.run(conditioned, parameters, targets, arena)

        logger.info(
            f"Analysis complete: residual={views.residual_view.shape}, "
            f"spectrum={views.spectrum_view.shape}, padded={views.padded_size}"
        )
        return views

    def analyze_path(
        self,
        image_path: Union[str, Path],
        parameters: Optional[ProcessingParameters] = None,
        targets: Optional[DisplayTargets] = None,
    ) -> ForensicViews:
        """Decode an image file and analyze it."""
        return self.analyze(load_raw_image(image_path), parameters, targets)

    def batch_analyze(
        self,
        image_paths: List[Union[str, Path]],
        parameters: Optional[ProcessingParameters] = None,
        targets: Optional[DisplayTargets] = None,
    ) -> List[ForensicViews]:
        """
        Analyze multiple image files in batch.

        Args:
            image_paths: List of paths to image files
            parameters: Parameter set shared by every image
            targets: Presentation sizes shared by every image

        Returns:
            List of ForensicViews, in input order
        """
        logger.info(f"Batch analyzing {len(image_paths)} images")
        return [self.analyze_path(path, parameters, targets) for path in image_paths]
