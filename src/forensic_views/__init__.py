"""Forensic Views - noise residual and frequency spectrum views of still images"""

__version__ = "0.1.0"

from .conditioning import InputConditioner, condition, conditioner_for, load_raw_image
from .coordinator import ProcessingCoordinator
from .engine import ComputeEngine
from .errors import (
    EngineUnavailableError,
    ForensicError,
    InvalidInputError,
    ProcessingError,
    ResourceReleaseError,
)
from .parameters import InterpolationPolicy, ProcessingParameters, TransformBackend
from .pipeline import ForensicPipeline
from .types import ConditionedImage, DisplayTargets, ForensicViews, PassStatus, RawImage, StatusKind

__all__ = [
    "ComputeEngine",
    "ConditionedImage",
    "DisplayTargets",
    "EngineUnavailableError",
    "ForensicError",
    "ForensicPipeline",
    "ForensicViews",
    "InputConditioner",
    "InterpolationPolicy",
    "InvalidInputError",
    "PassStatus",
    "ProcessingCoordinator",
    "ProcessingError",
    "ProcessingParameters",
    "RawImage",
    "ResourceReleaseError",
    "StatusKind",
    "TransformBackend",
    "condition",
    "conditioner_for",
    "load_raw_image",
]
