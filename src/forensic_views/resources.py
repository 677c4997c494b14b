"""Pass-scoped ownership of intermediate buffers.

Every buffer a processing pass allocates is adopted by a ``PassArena``.
Leaving the arena's ``with`` block releases each live entry exactly once,
whether the pass returned normally or raised.
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

import numpy as np

from forensic_views.errors import ResourceReleaseError

logger = logging.getLogger(__name__)

__all__ = ['PassArena', 'track']

ReleaseHook = Callable[[Any], None]


class _Allocation:
    __slots__ = ("name", "obj", "release_hook", "released")

    def __init__(self, name: str, obj: Any, release_hook: Optional[ReleaseHook]):
        self.name = name
        self.obj = obj
        self.release_hook = release_hook
        self.released = False


class PassArena:
    """Registry of the buffers owned by one processing pass."""

    def __init__(self, label: str = "pass"):
        self.label = label
        self._entries: List[_Allocation] = []
        self._closed = False
        self.release_failures: List[ResourceReleaseError] = []

    def __enter__(self) -> "PassArena":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def live_names(self) -> Tuple[str, ...]:
        return tuple(e.name for e in self._entries if not e.released)

    @property
    def released_names(self) -> Tuple[str, ...]:
        return tuple(e.name for e in self._entries if e.released)

    def adopt(self, name: str, obj: Any, release: Optional[ReleaseHook] = None) -> Any:
        """
        Register an object so it is released when the arena closes.

        Args:
            name: Label used in logs and for early release
            obj: Buffer or engine object to own
            release: Optional hook called with ``obj`` on release

        Returns:
            ``obj`` unchanged, so allocation and registration read as one step
        """
        if self._closed:
            raise RuntimeError(f"Arena '{self.label}' is closed; cannot adopt '{name}'")
        self._entries.append(_Allocation(name, obj, release))
        return obj

    def zeros(self, name: str, shape: Tuple[int, ...], dtype=np.float32) -> np.ndarray:
        return self.adopt(name, np.zeros(shape, dtype=dtype))

    def release(self, name: str) -> None:
        """Release the most recent live entry called ``name`` ahead of ``close()``."""
        for entry in reversed(self._entries):
            if entry.name == name and not entry.released:
                self._release_entry(entry)
                return
        logger.debug(f"Arena '{self.label}': nothing live named '{name}' to release")

    def close(self) -> None:
        """Release every live entry, newest first. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for entry in reversed(self._entries):
            if not entry.released:
                self._release_entry(entry)

        if self.release_failures:
            logger.warning(
                f"Arena '{self.label}' closed with {len(self.release_failures)} release failure(s)"
            )
        else:
            logger.debug(f"Arena '{self.label}' released {len(self._entries)} buffer(s)")

    def _release_entry(self, entry: _Allocation) -> None:
        # Marked first so a failing hook is never retried
        entry.released = True
        obj, entry.obj = entry.obj, None
        if entry.release_hook is None:
            return
        try:
            entry.release_hook(obj)
        except Exception as e:
            error = ResourceReleaseError(entry.name, e)
            self.release_failures.append(error)
            logger.warning(str(error))


def track(arena: Optional[PassArena], name: str, obj: Any, release: Optional[ReleaseHook] = None) -> Any:
    """Adopt ``obj`` into ``arena`` when one is given; otherwise return it untouched."""
    if arena is None:
        return obj
    return arena.adopt(name, obj, release)
