"""Engine instructions for the render, mix and mux stages.

Each builder returns the argv handed to ``EngineAdapter.execute``. The argv
never includes the engine binary itself and only refers to files by their
names in the engine's file store.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from slidepipe.config import RenderConfig
from slidepipe.pipeline.filtergraph import FilterCall, FilterGraph, format_number, render_chain
from slidepipe.schemas.run import TimingPlan

VIDEO_ONLY = "video_only.mp4"
AUDIO_MIXED = "audio_mixed.wav"
OUTPUT = "output.mp4"

# aloop sample buffer large enough to loop any realistic music track
ALOOP_SIZE = "2e+09"


def image_file_name(index: int, extension: str) -> str:
    return f"image_{index}.{extension}"


def primary_audio_name(extension: str) -> str:
    return f"primary_audio.{extension}"


def secondary_audio_name(extension: str) -> str:
    return f"background_music.{extension}"


def build_render_command(
    image_names: Sequence[str],
    plan: TimingPlan,
    graph: FilterGraph,
    render: RenderConfig,
) -> list[str]:
    """Render the still images into a silent slideshow video.

    Every image is looped for its slot; a single image is looped for the
    whole audio length. Output is trimmed to the audio length.
    """
    total = format_number(plan.total_duration)
    per_image = total if len(image_names) == 1 else format_number(plan.slot_duration)

    inputs: list[str] = []
    for name in image_names:
        inputs.extend(["-loop", "1", "-t", per_image, "-i", name])

    return [
        "-y",
        *inputs,
        "-filter_complex",
        graph.render(),
        "-map",
        graph.map_label,
        "-c:v",
        render.video_codec,
        "-pix_fmt",
        render.pixel_format,
        "-t",
        total,
        VIDEO_ONLY,
    ]


@dataclass(frozen=True)
class AudioMixPlan:
    """Audio stage outcome: the file the mux stage reads, and how to make it.

    ``argv`` is None when there is no secondary track; the primary track
    is then used as-is, byte for byte.
    """

    output_name: str
    argv: Optional[list[str]]

    @property
    def passthrough(self) -> bool:
        return self.argv is None


def build_mix_plan(
    primary_name: str,
    secondary_name: Optional[str],
    gain: int,
    render: RenderConfig,
) -> AudioMixPlan:
    """Plan the audio stage.

    With a secondary track, it is attenuated to ``gain/100``, looped
    indefinitely and mixed under the primary. The mix ends with the primary
    track. A gain of 0 still takes this path (the music is silenced, not
    dropped).
    """
    if secondary_name is None:
        return AudioMixPlan(output_name=primary_name, argv=None)

    background = render_chain(
        ("1:a",),
        (
            FilterCall("volume", (gain / 100,)),
            FilterCall("aloop", kwargs=(("loop", -1), ("size", ALOOP_SIZE))),
        ),
        "bg",
    )
    mix = render_chain(
        ("0:a", "bg"),
        (
            FilterCall(
                "amix",
                kwargs=(
                    ("inputs", 2),
                    ("duration", "first"),
                    ("dropout_transition", render.mix_dropout_transition),
                ),
            ),
        ),
    )
    argv = [
        "-y",
        "-i",
        primary_name,
        "-i",
        secondary_name,
        "-filter_complex",
        f"{background};{mix}",
        AUDIO_MIXED,
    ]
    return AudioMixPlan(output_name=AUDIO_MIXED, argv=argv)


def build_mux_command(audio_name: str, render: RenderConfig) -> list[str]:
    """Mux the slideshow with the mixed audio: copy video, encode AAC."""
    return [
        "-y",
        "-i",
        VIDEO_ONLY,
        "-i",
        audio_name,
        "-map",
        "0:v:0",
        "-map",
        "1:a:0",
        "-c:v",
        "copy",
        "-c:a",
        render.audio_codec,
        "-b:a",
        render.audio_bitrate,
        "-movflags",
        "+faststart",
        OUTPUT,
    ]
