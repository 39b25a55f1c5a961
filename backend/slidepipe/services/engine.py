"""Media engine contract and its owned initialization handle.

``EngineAdapter`` is the narrow interface the orchestrator drives: a
lifecycle ``init()``, a private file store, and ``execute()`` for
instruction lists. The orchestrator never inspects engine internals.

``EngineHandle`` owns one adapter for the lifetime of the application and
makes initialization safe to request from several runs at once.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Sequence

from slidepipe.errors import InitializationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one ``execute`` call."""

    success: bool
    exit_code: int
    log: str = ""


class EngineAdapter(ABC):
    """Abstract base class for media engines.

    Implementations must make every method safe to await from the event
    loop; blocking work belongs in a subprocess or ``asyncio.to_thread``.
    """

    @abstractmethod
    async def init(self) -> None:
        """Load the engine.

        Raises:
            Exception: Any exception means the engine is unusable.
        """
        ...

    @abstractmethod
    async def write_file(self, name: str, data: bytes) -> None:
        """Store ``data`` under ``name`` in the engine's file store."""
        ...

    @abstractmethod
    async def read_file(self, name: str) -> bytes:
        """Return the contents of ``name`` from the file store."""
        ...

    @abstractmethod
    async def delete_file(self, name: str) -> None:
        """Remove ``name`` from the file store."""
        ...

    @abstractmethod
    async def execute(self, argv: Sequence[str]) -> ExecutionResult:
        """Run one instruction (engine arguments, without the binary)."""
        ...

    async def terminate(self) -> None:
        """Release engine resources. Optional for implementations."""
        return None


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class EngineHandle:
    """Explicitly owned engine with a single shared initialization outcome.

    The first caller of ``ensure_ready()`` starts ``adapter.init()``; callers
    arriving while it is in flight await the same future. A failure is
    cached and re-raised to every later caller until ``reset()``. If the
    initializing caller is cancelled, nothing is cached and a waiting caller
    starts a fresh load.

    The adapter's file store holds one run's files at a time. Runs take it
    with ``lease()``, so concurrent runs on the same handle are serialized.
    """

    def __init__(self, adapter: EngineAdapter):
        self.adapter = adapter
        self._state = EngineState.UNINITIALIZED
        self._ready: Optional[asyncio.Future] = None
        self._error: Optional[InitializationError] = None
        self._store_lock = asyncio.Lock()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> Optional[InitializationError]:
        return self._error

    @property
    def leased(self) -> bool:
        """True while a run owns the file store."""
        return self._store_lock.locked()

    @asynccontextmanager
    async def lease(self) -> AsyncIterator["EngineHandle"]:
        """Hold exclusive use of the file store, waiting for any current run."""
        async with self._store_lock:
            yield self

    def check_failed(self) -> None:
        """Raise the cached initialization failure, if any."""
        if self._state == EngineState.FAILED and self._error is not None:
            raise self._error

    async def ensure_ready(self) -> EngineAdapter:
        """Return the initialized adapter.

        Raises:
            InitializationError: If this or an earlier initialization failed.
        """
        while True:
            if self._state == EngineState.READY:
                return self.adapter
            self.check_failed()

            if self._ready is None:
                return await self._initialize()

            # Another caller is initializing; share its outcome
            ready = self._ready
            try:
                return await asyncio.shield(ready)
            except asyncio.CancelledError:
                if not ready.cancelled():
                    raise
                logger.info("Media engine initialization was cancelled, retrying")

    async def _initialize(self) -> EngineAdapter:
        ready = asyncio.get_running_loop().create_future()
        self._ready = ready
        self._state = EngineState.INITIALIZING
        logger.info("Initializing media engine")
        try:
            await self.adapter.init()
        except Exception as e:
            self._error = InitializationError(
                "Failed to initialize video processor",
                details=str(e) or type(e).__name__,
            )
            self._state = EngineState.FAILED
            logger.error(f"Media engine initialization failed: {self._error.details}")
            ready.set_exception(self._error)
            # Consumed here so an unawaited future does not log a warning
            ready.exception()
            raise self._error from e
        except BaseException:
            # Cancelled mid-load: leave no outcome behind so waiters retry
            self._state = EngineState.UNINITIALIZED
            self._ready = None
            ready.cancel()
            raise
        self._state = EngineState.READY
        ready.set_result(self.adapter)
        logger.info("Media engine ready")
        return self.adapter

    async def reset(self) -> None:
        """Forget any cached outcome and terminate the adapter."""
        if self._state == EngineState.INITIALIZING:
            raise RuntimeError("Cannot reset engine while initialization is in flight")
        try:
            await self.adapter.terminate()
        except Exception as e:
            logger.warning(f"Error terminating media engine: {e}")
        self._state = EngineState.UNINITIALIZED
        self._ready = None
        self._error = None
        logger.info("Media engine reset")
