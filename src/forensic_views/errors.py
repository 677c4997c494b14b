"""Error taxonomy for the forensic pipeline."""

__all__ = [
    'ForensicError',
    'InvalidInputError',
    'EngineUnavailableError',
    'ProcessingError',
    'ResourceReleaseError',
]


class ForensicError(Exception):
    """Base class for every error raised by forensic_views."""


class InvalidInputError(ForensicError, ValueError):
    """Source image is empty, malformed or could not be read."""


class EngineUnavailableError(ForensicError, RuntimeError):
    """The numeric/transform engine has not signalled readiness."""


class ProcessingError(ForensicError, RuntimeError):
    """A pipeline stage failed while a pass was running."""


class ResourceReleaseError(ForensicError):
    """Releasing an intermediate buffer failed. Logged, never raised to callers."""

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Failed to release '{name}': {cause}")
        self.name = name
        self.cause = cause
