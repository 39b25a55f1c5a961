"""State machine constants and transition logic for pipeline orchestrator.

Defines the ordered, forward-only state machine that a single render run
walks through. Each active state pairs with the progress checkpoint that is
reported when the run enters it.
"""

from enum import Enum
from typing import Dict, Optional


class PipelineState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    ANALYZING = "analyzing"
    STAGING = "staging"
    RENDERING = "rendering"
    MIXING = "mixing"
    MUXING = "muxing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ERROR = "error"


# Pipeline states in execution order
PIPELINE_STATES: Dict[PipelineState, str] = {
    PipelineState.IDLE: "No run in progress",
    PipelineState.INITIALIZING: "Loading the media engine",
    PipelineState.ANALYZING: "Probing primary audio duration",
    PipelineState.STAGING: "Writing inputs to the engine file store",
    PipelineState.RENDERING: "Rendering the image slideshow",
    PipelineState.MIXING: "Mixing primary and background audio",
    PipelineState.MUXING: "Muxing video and audio into MP4",
    PipelineState.FINALIZING: "Extracting the output and cleaning up",
    PipelineState.COMPLETED: "Run finished successfully",
    PipelineState.ERROR: "Run failed",
}

# State transitions for active pipeline steps
STEP_TRANSITIONS: Dict[PipelineState, PipelineState] = {
    PipelineState.IDLE: PipelineState.INITIALIZING,
    PipelineState.INITIALIZING: PipelineState.ANALYZING,
    PipelineState.ANALYZING: PipelineState.STAGING,
    PipelineState.STAGING: PipelineState.RENDERING,
    PipelineState.RENDERING: PipelineState.MIXING,
    PipelineState.MIXING: PipelineState.MUXING,
    PipelineState.MUXING: PipelineState.FINALIZING,
    PipelineState.FINALIZING: PipelineState.COMPLETED,
}

TERMINAL_STATES = {PipelineState.COMPLETED, PipelineState.ERROR}


def is_terminal(state: PipelineState) -> bool:
    return state in TERMINAL_STATES


def next_state(state: PipelineState) -> Optional[PipelineState]:
    """Return the state that follows ``state`` on success, if any."""
    return STEP_TRANSITIONS.get(state)


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    """Check whether ``current`` may move to ``target``.

    Runs only move forward. Any non-terminal state may fail into ERROR;
    a terminal state never moves (reset is not a transition).

    Examples:
        >>> can_transition(PipelineState.STAGING, PipelineState.RENDERING)
        True
        >>> can_transition(PipelineState.RENDERING, PipelineState.STAGING)
        False
        >>> can_transition(PipelineState.MIXING, PipelineState.ERROR)
        True
    """
    if is_terminal(current):
        return False
    if target == PipelineState.ERROR:
        return True
    return STEP_TRANSITIONS.get(current) == target


class InvalidTransition(RuntimeError):
    """Raised when a run tries to move its state backwards or skip a stage."""
