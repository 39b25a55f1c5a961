"""Per-image timing derived from the primary audio length.

Every image gets an equal share of the audio. Slots are contiguous and
their durations sum to the total, so the slideshow ends exactly when the
audio does.
"""

from slidepipe.errors import InvalidInputError
from slidepipe.schemas.run import TimingPlan, TimingSlot


def slot_duration(total_duration: float, image_count: int) -> float:
    """Return how long each image is displayed.

    Raises:
        InvalidInputError: If image_count is not positive or total_duration
            is not positive.
    """
    if image_count <= 0:
        raise InvalidInputError(
            "Image count must be greater than 0", details=f"image_count={image_count}"
        )
    if total_duration <= 0:
        raise InvalidInputError(
            "Total duration must be greater than 0",
            details=f"total_duration={total_duration}",
        )
    return total_duration / image_count


def plan_timing(total_duration: float, image_count: int) -> TimingPlan:
    """Split ``total_duration`` into ``image_count`` equal contiguous slots.

    Each slot's start is the previous slot's end, so consecutive slots share
    the exact same float boundary. The last slot ends at ``total_duration``.

    Args:
        total_duration: Length of the primary audio in seconds (> 0)
        image_count: Number of images (>= 1)

    Returns:
        TimingPlan with one slot per image, in order

    Raises:
        InvalidInputError: If either argument is out of range
    """
    duration = slot_duration(total_duration, image_count)

    slots = []
    start = 0.0
    for index in range(image_count):
        end = total_duration if index == image_count - 1 else (index + 1) * duration
        slots.append(TimingSlot(index=index, start=start, end=end, duration=duration))
        start = end

    return TimingPlan(total_duration=total_duration, slots=tuple(slots))


def format_duration(seconds: float) -> str:
    """Format seconds as ``M:SS`` or ``H:MM:SS``."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
