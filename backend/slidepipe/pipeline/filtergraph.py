"""Typed filter-graph builder.

Instructions are kept as structured values (labels, operation, parameters)
and only turned into ffmpeg ``-filter_complex`` text by ``render()``, right
before they are handed to the engine.

Grammar of the rendered form::

    label       := "[" name "]"
    instruction := label+ op "=" param (":" param)* label
    graph       := instruction (";" instruction)*
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union

ParamValue = Union[str, int, float]


class FilterOp(str, Enum):
    """Operations the synthesizer may emit."""

    SCALE = "scale"
    SETPTS = "setpts"
    CROSS_DISSOLVE = "cross-dissolve-primitive"
    FADE_THROUGH_BLACK = "fade-through-black-primitive"
    WIPE_HORIZONTAL = "wipe-horizontal-primitive"
    WIPE_VERTICAL = "wipe-vertical-primitive"

    @property
    def is_transition(self) -> bool:
        return self not in (FilterOp.SCALE, FilterOp.SETPTS)


def format_number(value: float) -> str:
    """Render a number for ffmpeg: integers without a trailing ``.0``."""
    if isinstance(value, int):
        return str(value)
    rounded = round(float(value), 6)
    if rounded == int(rounded):
        return str(int(rounded))
    return repr(rounded)


def _format_param(value: ParamValue) -> str:
    if isinstance(value, str):
        return value
    return format_number(value)


@dataclass(frozen=True)
class FilterCall:
    """One ffmpeg filter invocation: ``name=p1:p2:key=value``."""

    name: str
    args: tuple[ParamValue, ...] = ()
    kwargs: tuple[tuple[str, ParamValue], ...] = ()

    def render(self) -> str:
        params = [_format_param(arg) for arg in self.args]
        params.extend(f"{key}={_format_param(value)}" for key, value in self.kwargs)
        if not params:
            return self.name
        return f"{self.name}={':'.join(params)}"


@dataclass(frozen=True)
class FilterInstruction:
    """A labelled filter-graph instruction.

    ``calls`` usually holds a single filter. A scale instruction that
    letterboxes onto a canvas carries a trailing ``pad`` call in the same
    chain.
    """

    op: FilterOp
    inputs: tuple[str, ...]
    output: str
    calls: tuple[FilterCall, ...]
    params: dict[str, float] = field(default_factory=dict, compare=False)

    def render(self) -> str:
        labels = "".join(f"[{label}]" for label in self.inputs)
        chain = ",".join(call.render() for call in self.calls)
        return f"{labels}{chain}[{self.output}]"


@dataclass(frozen=True)
class FilterGraph:
    """Ordered instruction sequence ending in ``output_label``."""

    instructions: tuple[FilterInstruction, ...]
    output_label: str

    def __iter__(self) -> Iterator[FilterInstruction]:
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    @property
    def transitions(self) -> list[FilterInstruction]:
        return [instr for instr in self.instructions if instr.op.is_transition]

    def find(self, op: FilterOp) -> list[FilterInstruction]:
        return [instr for instr in self.instructions if instr.op == op]

    def render(self) -> str:
        return ";".join(instr.render() for instr in self.instructions)

    @property
    def map_label(self) -> str:
        """Label in ``-map`` form, e.g. ``[vout]``."""
        return f"[{self.output_label}]"


def render_chain(
    inputs: tuple[str, ...], calls: tuple[FilterCall, ...], output: Optional[str] = None
) -> str:
    """Render a filter chain that is not part of a FilterGraph (audio mixing)."""
    labels = "".join(f"[{label}]" for label in inputs)
    chain = ",".join(call.render() for call in calls)
    return f"{labels}{chain}[{output}]" if output else f"{labels}{chain}"


def scale_instruction(
    input_label: str,
    output_label: str,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> FilterInstruction:
    """Scale to fit ``width``x``height`` preserving aspect ratio, then pad.

    Without a target size the frame keeps its own dimensions.
    """
    if width is None or height is None:
        calls = (FilterCall("scale", ("iw", "ih")),)
    else:
        calls = (
            FilterCall(
                "scale",
                (width, height),
                (("force_original_aspect_ratio", "decrease"),),
            ),
            FilterCall("pad", (width, height, "(ow-iw)/2", "(oh-ih)/2")),
            FilterCall("setsar", (1,)),
        )
    return FilterInstruction(
        op=FilterOp.SCALE,
        inputs=(input_label,),
        output=output_label,
        calls=calls,
    )


def setpts_instruction(input_label: str, output_label: str, shift: float) -> FilterInstruction:
    """Reset timestamps and shift them by ``shift`` seconds."""
    return FilterInstruction(
        op=FilterOp.SETPTS,
        inputs=(input_label,),
        output=output_label,
        calls=(FilterCall("setpts", (f"PTS-STARTPTS+{format_number(shift)}/TB",)),),
        params={"shift": shift},
    )


def xfade_instruction(
    op: FilterOp,
    xfade_transition: str,
    left: str,
    right: str,
    output_label: str,
    length: float,
    offset: float,
) -> FilterInstruction:
    """Pairwise transition between ``left`` and ``right``."""
    return FilterInstruction(
        op=op,
        inputs=(left, right),
        output=output_label,
        calls=(
            FilterCall(
                "xfade",
                kwargs=(
                    ("transition", xfade_transition),
                    ("duration", length),
                    ("offset", offset),
                ),
            ),
        ),
        params={"length": length, "offset": offset},
    )
