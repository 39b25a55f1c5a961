"""Image loading and ordering for the CLI.

Reads display dimensions with Pillow (EXIF orientation applied, matching
what a viewer would show) and orders files so numbered sequences such as
``img2.png, img10.png`` come out in numeric order.
"""

import functools
import io
import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

from PIL import Image, ImageOps, UnidentifiedImageError

from slidepipe.errors import ValidationError
from slidepipe.schemas.run import ImageInput

logger = logging.getLogger(__name__)

_NUMBERS = re.compile(r"\d+")


def _compare_names(a: str, b: str) -> int:
    a_numbers = [int(n) for n in _NUMBERS.findall(a)]
    b_numbers = [int(n) for n in _NUMBERS.findall(b)]

    if a_numbers and b_numbers:
        for a_num, b_num in zip(a_numbers, b_numbers):
            if a_num != b_num:
                return -1 if a_num < b_num else 1
    elif a_numbers:
        return -1
    elif b_numbers:
        return 1

    a_key, b_key = a.casefold(), b.casefold()
    return (a_key > b_key) - (a_key < b_key)


def sort_images_intelligently(paths: Iterable[Path]) -> list[Path]:
    """Numeric sequences first (compared numerically), then alphabetical."""
    return sorted(
        paths,
        key=functools.cmp_to_key(lambda a, b: _compare_names(a.name, b.name)),
    )


def read_dimensions(data: bytes, name: str) -> tuple[int, int]:
    """Return (width, height) as displayed, honouring EXIF orientation."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            oriented = ImageOps.exif_transpose(img)
            return oriented.size
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Failed to load image: {name}", details=str(e)) from e


def load_image(path: Path, index: int, order: int) -> ImageInput:
    data = path.read_bytes()
    width, height = read_dimensions(data, path.name)
    return ImageInput(
        index=index,
        display_width=width,
        display_height=height,
        order=order,
        data=data,
        name=path.name,
    )


def load_images(paths: Sequence[Path], sort: bool = True) -> list[ImageInput]:
    """Load images with metadata, assigning order from their position.

    Args:
        paths: Image files
        sort: Apply the natural sort before assigning order

    Returns:
        ImageInput list in rendering order
    """
    ordered = sort_images_intelligently(paths) if sort else list(paths)
    images = [load_image(path, index=i, order=i) for i, path in enumerate(ordered)]
    logger.info(f"Loaded {len(images)} images")
    return images
