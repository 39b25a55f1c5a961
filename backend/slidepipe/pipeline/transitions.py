"""Transition filter-graph synthesis.

Builds the ``-filter_complex`` instruction sequence that scales every image
onto the canvas, shifts it to its slot, and chains pairwise xfade
transitions so that the output of one pairing becomes the left operand of
the next::

    [i:v] -scale-> [si] -setpts-> [vi]      for every image i
    [v0][v1] -> [vt0]
    [vt0][v2] -> [vt1]
    ...
    [vt{n-3}][v{n-1}] -> [vout]
"""

import logging
from typing import Optional, Union

from slidepipe.errors import InvalidInputError, UnsupportedTransitionError
from slidepipe.pipeline.filtergraph import (
    FilterGraph,
    FilterOp,
    scale_instruction,
    setpts_instruction,
    xfade_instruction,
)
from slidepipe.schemas.run import Canvas, TransitionKind, TransitionSpec

logger = logging.getLogger(__name__)

DEFAULT_TRANSITION_LENGTH = 1.0
OUTPUT_LABEL = "vout"

# Transition kind -> (filter-graph op, ffmpeg xfade transition name)
_TRANSITIONS: dict[TransitionKind, tuple[FilterOp, str]] = {
    TransitionKind.CROSS_DISSOLVE: (FilterOp.CROSS_DISSOLVE, "fade"),
    TransitionKind.FADE_THROUGH_BLACK: (FilterOp.FADE_THROUGH_BLACK, "fadeblack"),
    TransitionKind.WIPE_HORIZONTAL: (FilterOp.WIPE_HORIZONTAL, "wiperight"),
    TransitionKind.WIPE_VERTICAL: (FilterOp.WIPE_VERTICAL, "wipedown"),
}

# Names accepted on top of the enum values (CLI shorthands)
_ALIASES = {
    "fade": TransitionKind.CROSS_DISSOLVE,
    "crossfade": TransitionKind.CROSS_DISSOLVE,
    "fadetoblack": TransitionKind.FADE_THROUGH_BLACK,
    "fadeblack": TransitionKind.FADE_THROUGH_BLACK,
    "wipeleft": TransitionKind.WIPE_HORIZONTAL,
    "wiperight": TransitionKind.WIPE_HORIZONTAL,
    "wipeup": TransitionKind.WIPE_VERTICAL,
    "wipedown": TransitionKind.WIPE_VERTICAL,
}


def resolve_transition(kind: Union[TransitionKind, str]) -> TransitionKind:
    """Map a transition kind or its name onto the closed enumeration.

    Raises:
        UnsupportedTransitionError: If the name is not a known transition.
    """
    if isinstance(kind, TransitionKind):
        return kind
    try:
        return TransitionKind(kind)
    except ValueError:
        pass
    alias = _ALIASES.get(str(kind).replace("-", "").replace("_", "").lower())
    if alias is None:
        raise UnsupportedTransitionError(
            f"Unsupported transition: {kind}",
            details=f"Supported: {', '.join(k.value for k in TransitionKind)}",
        )
    return alias


def synthesize_filter_graph(
    image_count: int,
    slot_duration: float,
    kind: Union[TransitionKind, str],
    canvas: Optional[Canvas] = None,
    transition_length: float = DEFAULT_TRANSITION_LENGTH,
) -> FilterGraph:
    """Build the slideshow filter graph.

    Args:
        image_count: Number of image inputs (input ``i`` is ``[i:v]``)
        slot_duration: Seconds each image is displayed
        kind: Transition style for every pairing
        canvas: Target frame size; frames are letterboxed onto it. When
            omitted, frames keep their own size.
        transition_length: Length of each transition in seconds

    Returns:
        FilterGraph whose terminal label is ``vout``

    Raises:
        InvalidInputError: If image_count < 1 or slot_duration <= 0
        UnsupportedTransitionError: If kind is outside the enumeration
    """
    if image_count < 1:
        raise InvalidInputError(
            "Image count must be greater than 0", details=f"image_count={image_count}"
        )
    if slot_duration <= 0:
        raise InvalidInputError(
            "Slot duration must be greater than 0", details=f"slot_duration={slot_duration}"
        )

    transition = resolve_transition(kind)
    width = canvas.width if canvas else None
    height = canvas.height if canvas else None

    if image_count == 1:
        return FilterGraph(
            instructions=(scale_instruction("0:v", OUTPUT_LABEL, width, height),),
            output_label=OUTPUT_LABEL,
        )

    instructions = []
    for i in range(image_count):
        instructions.append(scale_instruction(f"{i}:v", f"s{i}", width, height))
        instructions.append(setpts_instruction(f"s{i}", f"v{i}", i * slot_duration))

    spec = TransitionSpec.for_slot(transition, slot_duration, transition_length)
    op, xfade_name = _TRANSITIONS[transition]
    if spec.offset == 0 and slot_duration < transition_length:
        logger.warning(
            f"Slot duration {slot_duration:.3f}s is shorter than the "
            f"{transition_length}s transition; clamping offset to 0"
        )

    current = "v0"
    for i in range(image_count - 1):
        next_label = OUTPUT_LABEL if i == image_count - 2 else f"vt{i}"
        instructions.append(
            xfade_instruction(
                op,
                xfade_name,
                left=current,
                right=f"v{i + 1}",
                output_label=next_label,
                length=spec.length,
                offset=spec.offset,
            )
        )
        current = next_label

    return FilterGraph(instructions=tuple(instructions), output_label=OUTPUT_LABEL)
