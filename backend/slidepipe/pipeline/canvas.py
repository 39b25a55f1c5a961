"""Output canvas selection."""

from typing import Iterable

from slidepipe.errors import InvalidInputError
from slidepipe.schemas.run import Canvas, ImageSlot


def select_canvas(images: Iterable[ImageSlot]) -> Canvas:
    """Pick the widest image's size, breaking width ties by height.

    Examples:
        >>> select_canvas([ImageSlot(index=0, display_width=100, display_height=200, order=0),
        ...                ImageSlot(index=1, display_width=150, display_height=150, order=1),
        ...                ImageSlot(index=2, display_width=150, display_height=180, order=2)])
        Canvas(width=150, height=180)
    """
    max_width = 0
    max_height = 0
    for image in images:
        if image.display_width > max_width:
            max_width = image.display_width
            max_height = image.display_height
        elif image.display_width == max_width and image.display_height > max_height:
            max_height = image.display_height

    if max_width == 0:
        raise InvalidInputError("Cannot select a canvas without images")

    return Canvas(width=max_width, height=max_height)
