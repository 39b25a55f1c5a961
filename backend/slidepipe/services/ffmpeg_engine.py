"""ffmpeg-backed media engine.

Runs the ffmpeg binary as an asyncio subprocess inside a private working
directory. That directory is the engine's file store, so every file name
in an instruction is relative to it.
"""

import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Sequence

from slidepipe.config import EngineConfig
from slidepipe.services.engine import EngineAdapter, ExecutionResult
from slidepipe.services.file_manager import FileManager

logger = logging.getLogger(__name__)

# Bytes of stderr kept on the ExecutionResult for error reporting
LOG_TAIL_BYTES = 2000


class FFmpegEngine(EngineAdapter):
    """Media engine driving a local ffmpeg binary."""

    def __init__(self, config: EngineConfig, file_manager: Optional[FileManager] = None):
        self.config = config
        self.files = file_manager or FileManager(config.work_dir)
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def init(self) -> None:
        binary = shutil.which(self.config.ffmpeg_bin)
        if binary is None:
            raise RuntimeError(f"{self.config.ffmpeg_bin} not found on PATH")

        process = await asyncio.create_subprocess_exec(
            binary,
            "-version",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        if process.returncode != 0:
            raise RuntimeError(
                f"{self.config.ffmpeg_bin} -version failed: {stderr.decode(errors='replace')}"
            )

        version_line = stdout.decode(errors="replace").split("\n")[0]
        logger.info(f"ffmpeg loaded: {version_line} (store: {self.files.root})")
        self._loaded = True

    async def write_file(self, name: str, data: bytes) -> None:
        await asyncio.to_thread(self.files.write, name, data)

    async def read_file(self, name: str) -> bytes:
        return await asyncio.to_thread(self.files.read, name)

    async def delete_file(self, name: str) -> None:
        await asyncio.to_thread(self.files.delete, name)

    async def execute(self, argv: Sequence[str]) -> ExecutionResult:
        cmd = [self.config.ffmpeg_bin, "-hide_banner", "-nostdin", *argv]
        logger.debug(f"Running ffmpeg command: {' '.join(cmd)}")

        start = time.monotonic()
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=str(self.files.root),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.config.execute_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"ffmpeg timed out after {self.config.execute_timeout}s")
            return ExecutionResult(
                success=False,
                exit_code=-1,
                log=f"ffmpeg command timeout after {self.config.execute_timeout}s",
            )

        log = stderr.decode(errors="replace")[-LOG_TAIL_BYTES:] if stderr else ""
        elapsed = time.monotonic() - start
        if process.returncode != 0:
            logger.error(f"ffmpeg exited with {process.returncode} after {elapsed:.2f}s: {log}")
        else:
            logger.debug(f"ffmpeg finished in {elapsed:.2f}s")

        return ExecutionResult(
            success=process.returncode == 0,
            exit_code=process.returncode,
            log=log,
        )

    async def terminate(self) -> None:
        await asyncio.to_thread(self.files.destroy)
        self._loaded = False

    @property
    def store_path(self) -> Path:
        return self.files.root
