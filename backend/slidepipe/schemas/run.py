"""Pydantic schemas for a single slideshow render run.

These models describe the run input contract (images, audio tracks,
transition kind, gain), the per-run planning values (timing slots,
transition parameters, canvas) and the run output (progress events and
the generated artifact).
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TransitionKind(str, Enum):
    """Closed set of transition styles, one per run."""

    CROSS_DISSOLVE = "cross-dissolve"
    FADE_THROUGH_BLACK = "fade-through-black"
    WIPE_HORIZONTAL = "wipe-horizontal"
    WIPE_VERTICAL = "wipe-vertical"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DISPLAY_NAMES = {
    TransitionKind.CROSS_DISSOLVE: "Fade (Cross-dissolve)",
    TransitionKind.FADE_THROUGH_BLACK: "Fade to Black",
    TransitionKind.WIPE_HORIZONTAL: "Wipe Left-to-Right",
    TransitionKind.WIPE_VERTICAL: "Wipe Up-to-Down",
}

_DESCRIPTIONS = {
    TransitionKind.CROSS_DISSOLVE: "Smooth crossfade between images",
    TransitionKind.FADE_THROUGH_BLACK: "Fade out to black, then fade in next image",
    TransitionKind.WIPE_HORIZONTAL: "Next image wipes from left to right",
    TransitionKind.WIPE_VERTICAL: "Next image wipes from top to bottom",
}


class ImageSlot(BaseModel):
    """Position and display size of one image in the slideshow."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    display_width: int = Field(gt=0)
    display_height: int = Field(gt=0)
    order: int


class ImageInput(ImageSlot):
    """Image slot together with its encoded bytes.

    ``name`` is only used to pick the file suffix the image is staged under,
    so the engine can sniff the format.
    """

    data: bytes = Field(repr=False)
    name: str = "image.jpg"

    @property
    def extension(self) -> str:
        suffix = Path(self.name).suffix.lstrip(".").lower()
        return suffix or "jpg"


class AudioInput(BaseModel):
    """An audio track supplied as raw bytes."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    name: str = "audio.mp3"

    @property
    def extension(self) -> str:
        suffix = Path(self.name).suffix.lstrip(".").lower()
        return suffix or "mp3"


class RunRequest(BaseModel):
    """Everything the orchestrator needs for one render."""

    images: list[ImageInput]
    primary_audio: AudioInput
    secondary_audio: Optional[AudioInput] = None
    transition: TransitionKind = TransitionKind.CROSS_DISSOLVE
    gain: int = 30

    def ordered_images(self) -> list[ImageInput]:
        """Images in rendering sequence."""
        return sorted(self.images, key=lambda image: (image.order, image.index))


class TimingSlot(BaseModel):
    """One image's contiguous segment of the total audio duration."""

    model_config = ConfigDict(frozen=True)

    index: int
    start: float
    end: float
    duration: float


class TimingPlan(BaseModel):
    """Ordered, contiguous timing slots covering the whole audio track."""

    model_config = ConfigDict(frozen=True)

    total_duration: float
    slots: tuple[TimingSlot, ...]

    @property
    def slot_duration(self) -> float:
        return self.slots[0].duration

    def __len__(self) -> int:
        return len(self.slots)


class TransitionSpec(BaseModel):
    """Transition kind with its length and start offset inside a slot."""

    model_config = ConfigDict(frozen=True)

    kind: TransitionKind
    length: float = Field(default=1.0, gt=0)
    offset: float = Field(ge=0)

    @classmethod
    def for_slot(
        cls, kind: TransitionKind, slot_duration: float, length: float = 1.0
    ) -> "TransitionSpec":
        """Build transition parameters for a slot, clamping a negative offset to zero."""
        return cls(kind=kind, length=length, offset=max(slot_duration - length, 0.0))


class Canvas(BaseModel):
    """Output frame size, fixed for the whole run."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)


class ProgressEvent(BaseModel):
    """Progress checkpoint reported to the caller."""

    model_config = ConfigDict(frozen=True)

    percentage: int = Field(ge=0, le=100)
    label: str


class GeneratedArtifact(BaseModel):
    """Rendered video bytes and the identifiers of its container and codecs."""

    data: bytes = Field(repr=False)
    container: str = "mp4"
    mime_type: str = "video/mp4"
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    duration: float
    canvas: Canvas
    stage_timings: dict[str, float] = Field(default_factory=dict)

    @computed_field
    @property
    def size(self) -> int:
        return len(self.data)

    def write_to(self, path: Path) -> Path:
        """Write the video bytes to ``path`` and return it."""
        path = Path(path)
        path.write_bytes(self.data)
        return path
