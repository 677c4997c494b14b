"""Tests for the ForensicPipeline facade."""

import numpy as np
import pytest
from PIL import Image

from forensic_views.conditioning import condition
from forensic_views.engine import ComputeEngine
from forensic_views.errors import InvalidInputError, ProcessingError
from forensic_views.parameters import ProcessingParameters, TransformBackend
from forensic_views.pipeline import ForensicPipeline
from forensic_views.resources import PassArena
from forensic_views.types import DisplayTargets, RawImage


def random_image(width, height, seed=0):
    rng = np.random.default_rng(seed)
    return RawImage.from_array(rng.integers(0, 256, (height, width, 3), dtype=np.uint8))


def test_pipeline_initialization():
    """Test the default pipeline owns a ready OpenCV engine."""
    pipeline = ForensicPipeline()
    assert pipeline.engine.is_ready
    assert pipeline.engine.backend is TransformBackend.OPENCV


def test_analyze_image():
    """Test analyzing a single image at native sizes."""
    pipeline = ForensicPipeline()

    views = pipeline.analyze(random_image(120, 90))

    assert views.residual_view.shape == (90, 120)
    assert views.residual_view.dtype == np.uint8
    assert views.spectrum_view.dtype == np.uint8
    assert views.conditioned_size == (120, 90)
    assert views.padded_size[0] >= 120 and views.padded_size[1] >= 90
    assert views.spectrum_view.shape == (views.padded_size[1], views.padded_size[0])
    assert views.was_resized is False


def test_analyze_with_display_targets():
    """Test both views are sized for the presentation targets."""
    pipeline = ForensicPipeline()
    targets = DisplayTargets(residual_size=(60, 45), spectrum_size=64)

    views = pipeline.analyze(random_image(120, 90), targets=targets)

    assert views.residual_view.shape == (45, 60)
    assert views.spectrum_view.shape == (64, 64)


def test_analyze_oversized_image():
    """Test the parameter bounds condition the source first."""
    pipeline = ForensicPipeline()
    params = ProcessingParameters(max_dimension=64, max_pixels=64 * 64)

    views = pipeline.analyze(random_image(200, 100), parameters=params)

    assert views.was_resized is True
    assert views.source_size == (200, 100)
    assert views.conditioned_size == (64, 32)
    assert views.residual_view.shape == (32, 64)
    assert views.parameters is params


def test_uniform_image_views():
    """Test a uniform image gives a dark, flat spectrum view."""
    pipeline = ForensicPipeline()
    image = RawImage.from_array(np.full((100, 100, 3), 128, dtype=np.uint8))

    views = pipeline.analyze(image, parameters=ProcessingParameters(gamma=1.0, offset=0.0))

    assert views.residual_view.shape == (100, 100)
    assert views.spectrum_view.shape == (100, 100)
    # Flat input has a zero residual, so the normalized spectrum is all zeros
    assert np.all(views.spectrum_view == 0)
    assert np.unique(views.residual_view).size == 1


def test_tone_parameters_change_spectrum_view():
    """Test tone controls affect only the spectrum view."""
    pipeline = ForensicPipeline()
    image = random_image(64, 64)

    base = pipeline.analyze(image, parameters=ProcessingParameters(gamma=1.0))
    darker = pipeline.analyze(image, parameters=ProcessingParameters(gamma=3.0))

    assert np.array_equal(base.residual_view, darker.residual_view)
    assert darker.spectrum_view.mean() < base.spectrum_view.mean()


def test_run_releases_pass_buffers():
    """Test every buffer of a pass is released when its arena closes."""
    pipeline = ForensicPipeline()
    conditioned = condition(random_image(48, 40))

    with PassArena(label="pass") as arena:
        views = pipeline.run(conditioned, ProcessingParameters(), arena=arena)

    assert arena.live_names == ()
    assert {"residual_view", "spectrum_view", "toned_spectrum"} <= set(arena.released_names)
    # Released from the arena, still owned by the caller
    assert views.residual_view.shape == (40, 48)


def test_run_without_ready_engine():
    """Test a pipeline on an uninitialized engine fails with ProcessingError."""
    pipeline = ForensicPipeline(engine=ComputeEngine())
    conditioned = condition(random_image(32, 32))

    with pytest.raises(ProcessingError):
        pipeline.run(conditioned, ProcessingParameters())


def test_analyze_path(tmp_path):
    """Test analyzing an image file."""
    img_path = tmp_path / "test.png"
    Image.new("RGB", (150, 200), color=(128, 128, 128)).save(img_path)

    views = ForensicPipeline().analyze_path(img_path)

    assert views.conditioned_size == (150, 200)
    assert views.residual_view.shape == (200, 150)


def test_batch_analyze(tmp_path):
    """Test batch analysis of multiple images."""
    image_paths = []
    for i in range(3):
        img = Image.new("RGB", (100, 100), color=(i * 50, i * 50, i * 50))
        img_path = tmp_path / f"test_{i}.png"
        img.save(img_path)
        image_paths.append(img_path)

    results = ForensicPipeline().batch_analyze(image_paths)

    assert len(results) == 3
    for views in results:
        assert views.residual_view.shape == (100, 100)


def test_analyze_zero_size_image():
    """Test invalid input fails before any processing."""
    image = RawImage(width=0, height=0, pixels=np.zeros((0, 0, 4), dtype=np.uint8))

    with pytest.raises(InvalidInputError):
        ForensicPipeline().analyze(image)
