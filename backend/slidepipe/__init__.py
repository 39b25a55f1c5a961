"""slidepipe - image and audio slideshow rendering pipeline.

This module provides startup validation functions to ensure the media
engine binaries are available before a render begins.
Call validate_dependencies() during application startup.
"""

import logging
import shutil
import subprocess

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def validate_dependencies(ffmpeg_bin: str = "ffmpeg", ffprobe_bin: str = "ffprobe") -> None:
    """Validate the ffmpeg and ffprobe binaries are available.

    Called by the CLI before a render so that a missing engine fails fast
    with installation instructions instead of halfway through a run.

    Raises:
        RuntimeError: If ffmpeg or ffprobe is not found or not functional.
    """
    for binary in (ffmpeg_bin, ffprobe_bin):
        if shutil.which(binary) is None:
            raise RuntimeError(
                f"{binary} not found on PATH. Install ffmpeg to render slideshows.\n"
                "Ubuntu/Debian: sudo apt-get install ffmpeg\n"
                "macOS: brew install ffmpeg\n"
                "Windows: https://ffmpeg.org/download.html"
            )
    try:
        result = subprocess.run(
            [ffmpeg_bin, "-version"],
            capture_output=True,
            check=True,
            text=True,
        )
        version_line = result.stdout.split("\n")[0]
        logger.info(f"ffmpeg validated: {version_line}")
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise RuntimeError(f"{ffmpeg_bin} is installed but not functional: {e}") from e
