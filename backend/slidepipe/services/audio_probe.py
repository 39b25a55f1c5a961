"""
Audio duration probing.

The primary audio length drives every timing decision, so a probe failure
is reported as a MediaDecodeError instead of falling back to an estimate.
"""
import asyncio
import json
import logging
import math
import os
import tempfile
from typing import Protocol

from slidepipe.config import EngineConfig
from slidepipe.errors import MediaDecodeError
from slidepipe.schemas.run import AudioInput

logger = logging.getLogger(__name__)


class AudioProbe(Protocol):
    async def duration(self, audio: AudioInput) -> float:
        """Return the audio duration in seconds or raise MediaDecodeError."""
        ...


def _write_temp(data: bytes, suffix: str) -> str:
    fd, path = tempfile.mkstemp(prefix="slidepipe-probe-", suffix=suffix)
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    return path


def parse_ffprobe_duration(output: str) -> float:
    """
    Extract ``format.duration`` from ffprobe JSON output.

    Raises:
        ValueError: If the duration is missing, unparsable, not finite or not positive
    """
    payload = json.loads(output or "{}")
    raw = payload.get("format", {}).get("duration")
    if raw in (None, "N/A"):
        raise ValueError("ffprobe reported no duration")
    duration = float(raw)
    if not math.isfinite(duration) or duration <= 0:
        raise ValueError(f"ffprobe reported unusable duration: {duration}")
    return duration


class FFprobeAudioProbe:
    """Probe audio duration with the ffprobe binary."""

    def __init__(self, config: EngineConfig):
        self.config = config

    async def duration(self, audio: AudioInput) -> float:
        """
        Get audio duration using ffprobe.

        Args:
            audio: Audio track to measure

        Returns:
            Duration in seconds

        Raises:
            MediaDecodeError: If ffprobe is missing, fails, times out or
                reports no usable duration
        """
        path = await asyncio.to_thread(_write_temp, audio.data, f".{audio.extension}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.config.ffprobe_bin,
                "-v", "error",
                "-show_entries", "format=duration",
                "-of", "json",
                path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.config.probe_timeout
            )
            if process.returncode != 0:
                raise MediaDecodeError(
                    f"Failed to load audio file: {audio.name}",
                    details=stderr.decode(errors="replace").strip() or "ffprobe failed",
                )
            duration = parse_ffprobe_duration(stdout.decode(errors="replace"))
        except MediaDecodeError:
            raise
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise MediaDecodeError(
                f"Failed to load audio file: {audio.name}",
                details=f"ffprobe timeout after {self.config.probe_timeout}s",
            ) from e
        except (OSError, ValueError) as e:
            raise MediaDecodeError(
                f"Failed to load audio file: {audio.name}", details=str(e)
            ) from e
        finally:
            try:
                os.unlink(path)
            except OSError as e:
                logger.warning(f"Failed to remove probe temp file {path}: {e}")

        logger.info(f"Probed {audio.name}: {duration:.3f}s")
        return duration
