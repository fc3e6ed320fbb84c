"""Render states of a view."""

from enum import IntEnum


class RenderState(IntEnum):
    """Lifecycle of a single view render.

    NOT_CALLED -> REQUESTED -> STARTED -> COMPLETE | FAILED, with a forced
    transition to CANCELLED from any state.
    """

    NOT_CALLED = 0
    REQUESTED = 1
    STARTED = 2
    COMPLETE = 3
    FAILED = 4
    CANCELLED = 5
