"""Services around the media engine.

Usage:
    from slidepipe.services import EngineHandle, FFmpegEngine

    handle = EngineHandle(FFmpegEngine(settings.engine))
    engine = await handle.ensure_ready()
"""

from slidepipe.services.engine import EngineAdapter, EngineHandle, EngineState, ExecutionResult
from slidepipe.services.ffmpeg_engine import FFmpegEngine

__all__ = ["EngineAdapter", "EngineHandle", "EngineState", "ExecutionResult", "FFmpegEngine"]
