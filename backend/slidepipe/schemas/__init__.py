"""Pydantic schemas shared across the pipeline."""

from slidepipe.schemas.run import (
    AudioInput,
    Canvas,
    GeneratedArtifact,
    ImageInput,
    ImageSlot,
    ProgressEvent,
    RunRequest,
    TimingPlan,
    TimingSlot,
    TransitionKind,
    TransitionSpec,
)

__all__ = [
    "AudioInput",
    "Canvas",
    "GeneratedArtifact",
    "ImageInput",
    "ImageSlot",
    "ProgressEvent",
    "RunRequest",
    "TimingPlan",
    "TimingSlot",
    "TransitionKind",
    "TransitionSpec",
]
