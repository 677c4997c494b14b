"""Single-flight processing coordinator.

The coordinator owns the Idle/Processing latch and one "latest parameters"
slot. Requests that arrive while Idle are debounced; requests that arrive
while a pass is running only set the pending flag, so any number of them
collapse into a single follow-up pass with the newest parameters. Passes run
synchronously inside ``poll()``; the caller drives time with its own loop or
with ``run_until_idle()``.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

from forensic_views.conditioning import conditioner_for
from forensic_views.constants import PROCESSING_DEBOUNCE_MS, SETTLE_DELAY_MS
from forensic_views.engine import ComputeEngine
from forensic_views.errors import (
    EngineUnavailableError,
    ForensicError,
    InvalidInputError,
    ProcessingError,
)
from forensic_views.parameters import ProcessingParameters
from forensic_views.pipeline import ForensicPipeline
from forensic_views.resources import PassArena
from forensic_views.types import (
    ConditionedImage,
    CoordinatorState,
    DisplayTargets,
    ForensicViews,
    PassStatus,
    RawImage,
    StatusKind,
)

logger = logging.getLogger(__name__)

__all__ = ['ProcessingCoordinator']

_STATUS_KINDS = {
    InvalidInputError: StatusKind.INVALID_INPUT,
    EngineUnavailableError: StatusKind.ENGINE_UNAVAILABLE,
    ProcessingError: StatusKind.PROCESSING_ERROR,
}


class ProcessingCoordinator:
    """
    Debounces, serializes and coalesces recomputation requests.

    Args:
        engine: Transform engine; its readiness gates every request
        parameters: Initial parameter set
        on_result: Rendering sink, receives the views of each successful pass
        on_status: Status channel, receives exactly one PassStatus per pass
        debounce_ms: Quiet interval before a requested pass starts
        settle_ms: Delay before a coalesced follow-up pass starts
        clock: Monotonic clock in seconds
    """

    def __init__(
        self,
        engine: Optional[ComputeEngine] = None,
        parameters: Optional[ProcessingParameters] = None,
        on_result: Optional[Callable[[ForensicViews], None]] = None,
        on_status: Optional[Callable[[PassStatus], None]] = None,
        debounce_ms: float = PROCESSING_DEBOUNCE_MS,
        settle_ms: float = SETTLE_DELAY_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if debounce_ms < 0 or settle_ms < 0:
            raise ValueError("debounce_ms and settle_ms must be non-negative")

        self.engine = engine if engine is not None else ComputeEngine()
        self.pipeline = ForensicPipeline(self.engine)
        self.on_result = on_result
        self.on_status = on_status
        self.debounce_s = debounce_ms / 1000.0
        self.settle_s = settle_ms / 1000.0
        self.clock = clock

        self._parameters = parameters or ProcessingParameters()
        self._targets = DisplayTargets()
        self._image: Optional[ConditionedImage] = None
        self._engine_ready = False
        self._state = CoordinatorState.IDLE
        self._pending = False
        self._due: Optional[float] = None
        self._passes_run = 0

        self.engine.on_ready(self.mark_engine_ready)

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def next_due(self) -> Optional[float]:
        """Clock time at which the next pass may start, or None if none is scheduled."""
        return self._due

    @property
    def passes_run(self) -> int:
        return self._passes_run

    @property
    def engine_ready(self) -> bool:
        return self._engine_ready

    @property
    def parameters(self) -> ProcessingParameters:
        """Most recently requested parameter set."""
        return self._parameters

    @property
    def image(self) -> Optional[ConditionedImage]:
        return self._image

    def mark_engine_ready(self) -> None:
        """Initialization event from the engine collaborator."""
        if not self._engine_ready:
            self._engine_ready = True
            logger.info("Coordinator accepting processing requests")

    def set_targets(
        self,
        residual_size: Optional[Tuple[int, int]] = None,
        spectrum_size: Optional[int] = None,
    ) -> None:
        """Set presentation sizes used by subsequent passes."""
        self._targets = DisplayTargets(residual_size=residual_size, spectrum_size=spectrum_size)

    def set_image(self, image: RawImage) -> ConditionedImage:
        """
        Condition a new source image and request a pass for it.

        Args:
            image: Decoded RGBA source image

        Returns:
            The conditioned image now held by the coordinator

        Raises:
            InvalidInputError: If the image is empty or malformed; nothing changes
            EngineUnavailableError: If the engine is not ready; the image is kept
        """
        conditioner = conditioner_for(
            self._parameters.max_dimension,
            self._parameters.max_pixels,
            self._parameters.interpolation,
        )
        self._image = conditioner.condition(image)
        logger.info(f"Source image set: {self._image.describe()}")
        self.request()
        return self._image

    def request(self, parameters: Optional[ProcessingParameters] = None, **changes) -> None:
        """
        Request a pass with new parameters.

        Args:
            parameters: Complete replacement parameter set
            **changes: Individual fields to change on the latest parameters

        Raises:
            EngineUnavailableError: If the engine has not signalled readiness
        """
        if not self._engine_ready:
            raise EngineUnavailableError("Compute engine is not ready; request rejected")

        latest = parameters or self._parameters
        if changes:
            latest = latest.with_changes(**changes)
        self._parameters = latest

        if self._image is None:
            logger.warning("No source image yet; parameters recorded, no pass scheduled")
            return

        if self._state is CoordinatorState.PROCESSING:
            if not self._pending:
                logger.debug("Pass in flight; request coalesced into pending follow-up")
            self._pending = True
            return

        self._due = self.clock() + self.debounce_s

    def poll(self) -> Optional[PassStatus]:
        """
        Start the scheduled pass if it is due.

        Returns:
            Status of the pass that ran, or None if nothing was due
        """
        if self._state is CoordinatorState.PROCESSING:
            return None
        if self._due is None or self.clock() < self._due:
            return None

        self._due = None
        return self._run_pass()

    def run_until_idle(
        self, sleep: Callable[[float], None] = time.sleep, max_passes: Optional[int] = None
    ) -> List[PassStatus]:
        """
        Drive the coordinator until nothing is scheduled.

        Args:
            sleep: Called with the number of seconds to wait for the next deadline
            max_passes: Optional cap on the number of passes to run

        Returns:
            Statuses of the passes that ran, in order
        """
        statuses = []
        while self._due is not None:
            if max_passes is not None and len(statuses) >= max_passes:
                break
            wait = self._due - self.clock()
            if wait > 0:
                sleep(wait)
            status = self.poll()
            if status is not None:
                statuses.append(status)
        return statuses

    def _run_pass(self) -> PassStatus:
        parameters = self._parameters
        targets = self._targets
        image = self._image

        self._state = CoordinatorState.PROCESSING
        self._passes_run += 1
        label = f"pass-{self._passes_run}"
        start = time.perf_counter()
        kind = StatusKind.OK
        message = ""
        arena = PassArena(label=label)

        logger.info(f"Starting {label}: {image.width}x{image.height}px")
        try:
            with arena:
                views = self.pipeline.run(image, parameters, targets, arena)
                if self.on_result is not None:
                    self.on_result(views)
        except ForensicError as e:
            kind = _status_kind(e)
            message = str(e)
            logger.exception(f"{label} failed")
        except Exception as e:
            kind = StatusKind.PROCESSING_ERROR
            message = str(ProcessingError(f"Unexpected failure in {label}: {e}"))
            logger.exception(f"{label} failed")
        finally:
            self._state = CoordinatorState.IDLE
            if self._pending:
                self._pending = False
                self._due = self.clock() + self.settle_s
                logger.debug(f"Follow-up pass scheduled in {self.settle_s * 1000:.0f}ms")

        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.info(f"{label} completed in {elapsed_ms:.2f}ms ({kind.value})")

        status = PassStatus(
            kind=kind,
            elapsed_ms=elapsed_ms,
            parameters=parameters,
            message=message,
            release_failures=len(arena.release_failures),
        )
        if self.on_status is not None:
            self.on_status(status)
        return status


def _status_kind(error: ForensicError) -> StatusKind:
    for error_type, kind in _STATUS_KINDS.items():
        if isinstance(error, error_type):
            return kind
    return StatusKind.PROCESSING_ERROR
