"""
Pytest fixtures for slidepipe tests.

The media engine and the audio probe are replaced by in-memory fakes so the
suite runs without ffmpeg installed.
"""
import asyncio
from typing import Optional, Sequence

import pytest

from slidepipe.config import Settings
from slidepipe.schemas.run import AudioInput, ImageInput, RunRequest, TransitionKind
from slidepipe.services.engine import EngineAdapter, EngineHandle, ExecutionResult


class FakeEngine(EngineAdapter):
    """In-memory engine that records every call.

    ``execute`` writes ``b"out:<name>"`` to the last argv element (the output
    file) and snapshots the contents of every ``-i`` input it was given.
    ``op_delay`` makes writes and executes yield to the event loop.
    """

    def __init__(
        self,
        init_error: Optional[Exception] = None,
        init_delay: float = 0.0,
        fail_on: Optional[str] = None,
        delete_error: Optional[Exception] = None,
        op_delay: float = 0.0,
    ):
        self.init_error = init_error
        self.init_delay = init_delay
        self.fail_on = fail_on
        self.delete_error = delete_error
        self.op_delay = op_delay
        self.init_calls = 0
        self.terminate_calls = 0
        self.files: dict[str, bytes] = {}
        self.written: list[str] = []
        self.deleted: list[str] = []
        self.commands: list[list[str]] = []
        self.inputs_seen: dict[str, dict[str, bytes]] = {}
        self.history: list[tuple[str, list[bytes]]] = []

    async def init(self) -> None:
        self.init_calls += 1
        if self.init_delay:
            await asyncio.sleep(self.init_delay)
        if self.init_error is not None:
            raise self.init_error

    async def write_file(self, name: str, data: bytes) -> None:
        if self.op_delay:
            await asyncio.sleep(self.op_delay)
        self.written.append(name)
        self.files[name] = bytes(data)

    async def read_file(self, name: str) -> bytes:
        if name not in self.files:
            raise FileNotFoundError(name)
        return self.files[name]

    async def delete_file(self, name: str) -> None:
        self.deleted.append(name)
        if self.delete_error is not None:
            raise self.delete_error
        if name not in self.files:
            raise FileNotFoundError(name)
        del self.files[name]

    async def execute(self, argv: Sequence[str]) -> ExecutionResult:
        argv = list(argv)
        self.commands.append(argv)
        output = argv[-1]
        inputs = [argv[i + 1] for i, arg in enumerate(argv[:-1]) if arg == "-i"]
        if self.op_delay:
            await asyncio.sleep(self.op_delay)
        self.inputs_seen[output] = {name: self.files.get(name) for name in inputs}
        self.history.append((output, [self.files.get(name) for name in inputs]))
        if self.fail_on == output:
            return ExecutionResult(success=False, exit_code=1, log="Conversion failed!")
        self.files[output] = b"out:" + output.encode()
        return ExecutionResult(success=True, exit_code=0)

    async def terminate(self) -> None:
        self.terminate_calls += 1

    def command_for(self, output: str) -> Optional[list[str]]:
        for argv in self.commands:
            if argv[-1] == output:
                return argv
        return None


class FakeProbe:
    """Audio probe returning a fixed duration, or raising."""

    def __init__(self, duration: float = 12.0, error: Optional[Exception] = None):
        self.value = duration
        self.error = error
        self.calls = 0
        self.gate: Optional[asyncio.Event] = None

    async def duration(self, audio: AudioInput) -> float:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.value


def make_image(
    index: int,
    width: int = 640,
    height: int = 480,
    order: Optional[int] = None,
    tag: str = "",
) -> ImageInput:
    return ImageInput(
        index=index,
        display_width=width,
        display_height=height,
        order=index if order is None else order,
        data=f"{tag}image-{index}".encode(),
        name=f"photo_{index}.jpg",
    )


@pytest.fixture
def test_settings():
    """Settings isolated from the environment and config.yaml."""
    return Settings(
        engine={"ffmpeg_bin": "ffmpeg", "ffprobe_bin": "ffprobe"},
        render={"transition_length": 1.0},
    )


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fake_probe():
    return FakeProbe(duration=12.0)


@pytest.fixture
def engine_handle(fake_engine):
    return EngineHandle(fake_engine)


@pytest.fixture
def primary_audio():
    return AudioInput(data=b"narration-bytes", name="narration.mp3")


@pytest.fixture
def secondary_audio():
    return AudioInput(data=b"music-bytes", name="music.mp3")


@pytest.fixture
def sample_request(primary_audio):
    """Create a three-image request without background music."""
    def _create(
        count: int = 3,
        secondary: Optional[AudioInput] = None,
        gain: int = 30,
        transition: TransitionKind = TransitionKind.CROSS_DISSOLVE,
    ) -> RunRequest:
        return RunRequest(
            images=[make_image(i) for i in range(count)],
            primary_audio=primary_audio,
            secondary_audio=secondary,
            transition=transition,
            gain=gain,
        )
    return _create
