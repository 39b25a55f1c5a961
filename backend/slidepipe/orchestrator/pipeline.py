"""Main pipeline orchestrator with fixed stage order and progress checkpoints.

Coordinates one slideshow render end to end with:
- Forward-only state machine transitions owned by the run
- Contractual progress checkpoints (5, 10, 15, 30, 60, 80, 95, 100)
- Per-step timing and logging
- A single reported error per failed run, with best-effort cleanup
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional

from slidepipe.config import Settings, settings as default_settings
from slidepipe.errors import (
    MediaDecodeError,
    PipelineBusyError,
    PipelineError,
    ProcessingFailedError,
)
from slidepipe.orchestrator.progress import ProgressStream
from slidepipe.orchestrator.state import (
    InvalidTransition,
    PipelineState,
    can_transition,
)
from slidepipe.pipeline import stages
from slidepipe.pipeline.canvas import select_canvas
from slidepipe.pipeline.timing import plan_timing
from slidepipe.pipeline.transitions import synthesize_filter_graph
from slidepipe.schemas.run import (
    Canvas,
    GeneratedArtifact,
    ProgressEvent,
    RunRequest,
    TimingPlan,
    TransitionSpec,
)
from slidepipe.services.audio_probe import AudioProbe
from slidepipe.services.engine import EngineAdapter, EngineHandle, EngineState
from slidepipe.services.validation import validate_request

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

# Progress checkpoints reported when each stage starts
CHECKPOINTS: Dict[str, tuple[int, str]] = {
    "initialize": (5, "Initializing video processor..."),
    "analyze": (10, "Analyzing audio..."),
    "stage": (15, "Loading files..."),
    "render": (30, "Creating image slideshow..."),
    "mix": (60, "Mixing audio..."),
    "mux": (80, "Finalizing video..."),
    "extract": (95, "Preparing download..."),
    "cleanup": (100, "Complete!"),
}


@dataclass
class PipelineRun:
    """State, progress and bookkeeping of a single run.

    Created fresh by ``Orchestrator.run`` and never shared between runs.
    """

    run_id: uuid.UUID = field(default_factory=uuid.uuid4)
    state: PipelineState = PipelineState.IDLE
    events: list[ProgressEvent] = field(default_factory=list)
    step_log: Dict[str, float] = field(default_factory=dict)
    files: list[str] = field(default_factory=list)
    error: Optional[PipelineError] = None
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def advance(self, target: PipelineState) -> None:
        if not can_transition(self.state, target):
            raise InvalidTransition(f"Cannot move run from {self.state.value} to {target.value}")
        self.state = target

    def record(self, percentage: int, label: str) -> ProgressEvent:
        if self.events and percentage < self.events[-1].percentage:
            raise ValueError(f"Progress went backwards: {percentage}")
        event = ProgressEvent(percentage=percentage, label=label)
        self.events.append(event)
        return event

    def track(self, name: str) -> str:
        """Remember a store file so cleanup can remove it."""
        if name not in self.files:
            self.files.append(name)
        return name


class Orchestrator:
    """Runs renders one at a time against a shared engine handle."""

    def __init__(
        self,
        engine: EngineHandle,
        probe: AudioProbe,
        config: Optional[Settings] = None,
    ):
        self.engine = engine
        self.probe = probe
        self.config = config or default_settings
        self.last_run: Optional[PipelineRun] = None

    @property
    def busy(self) -> bool:
        """True while any run owns the engine's file store."""
        return self.engine.leased

    @property
    def state(self) -> PipelineState:
        return self.last_run.state if self.last_run else PipelineState.IDLE

    async def reset(self) -> None:
        """Return to idle, clearing a cached engine failure if there is one."""
        if self.busy:
            raise PipelineBusyError("Cannot reset while a run is in progress")
        if self.engine.state == EngineState.FAILED:
            await self.engine.reset()
        self.last_run = None
        logger.info("Orchestrator reset to idle")

    async def run(
        self,
        request: RunRequest,
        progress_callback: Optional[ProgressCallback] = None,
        stream: Optional[ProgressStream] = None,
    ) -> GeneratedArtifact:
        """Render ``request`` into an MP4 artifact.

        Runs sharing one engine handle are serialized: a request made while
        another run owns the file store waits for it to finish, then sees
        the engine's shared initialization outcome.

        Args:
            request: Images, audio tracks, transition kind and gain
            progress_callback: Called synchronously with every checkpoint
            stream: Receives checkpoints with coalescing delivery; closed
                when the run ends either way

        Returns:
            GeneratedArtifact with the MP4 bytes

        Raises:
            ValidationError: If the request fails input constraints
            InitializationError: If the engine failed to load (now or earlier)
            MediaDecodeError: If the primary audio cannot be probed
            ProcessingFailedError: If any later stage fails
        """
        try:
            if self.busy:
                logger.info("Engine file store is in use, waiting for the current run")

            async with self.engine.lease():
                # Non-recoverable errors stick until reset()
                previous = self.last_run
                if previous and previous.error and not previous.error.recoverable:
                    raise previous.error

                run = PipelineRun()
                self.last_run = run
                try:
                    return await self._execute(run, request, progress_callback, stream)
                except PipelineError as e:
                    run.error = e
                    run.advance(PipelineState.ERROR)
                    logger.error(f"Run {run.run_id} failed: {e.kind}: {e}")
                    raise
                finally:
                    run.completed_at = datetime.utcnow()
        finally:
            if stream:
                stream.close()

    async def _execute(
        self,
        run: PipelineRun,
        request: RunRequest,
        progress_callback: Optional[ProgressCallback],
        stream: Optional[ProgressStream],
    ) -> GeneratedArtifact:
        def report(stage: str) -> None:
            percentage, label = CHECKPOINTS[stage]
            event = run.record(percentage, label)
            logger.info(f"[{percentage:3d}%] {label}")
            if progress_callback:
                progress_callback(event)
            if stream:
                stream.publish(event)

        pipeline_start = time.monotonic()
        validate_request(request, self.config.limits)

        # A cached engine failure ends the run before the first checkpoint
        self.engine.check_failed()

        # Step 1: Engine initialization
        run.advance(PipelineState.INITIALIZING)
        report("initialize")
        step_start = time.monotonic()
        engine = await self.engine.ensure_ready()
        run.step_log["initialize"] = time.monotonic() - step_start

        # Step 2: Audio analysis
        run.advance(PipelineState.ANALYZING)
        report("analyze")
        step_start = time.monotonic()
        try:
            total_duration = await self.probe.duration(request.primary_audio)
        except MediaDecodeError:
            raise
        except Exception as e:
            raise MediaDecodeError(
                f"Failed to load audio file: {request.primary_audio.name}",
                details=f"{type(e).__name__}: {e}",
            ) from e
        run.step_log["analyze"] = time.monotonic() - step_start

        try:
            # Step 3: Staging
            run.advance(PipelineState.STAGING)
            report("stage")
            step_start = time.monotonic()
            staged = await self._stage_inputs(run, engine, request)
            run.step_log["stage"] = time.monotonic() - step_start

            # Step 4: Slideshow render
            run.advance(PipelineState.RENDERING)
            report("render")
            step_start = time.monotonic()
            images = request.ordered_images()
            canvas = select_canvas(images)
            plan = plan_timing(total_duration, len(images))
            await self._render(run, engine, request, staged["images"], plan, canvas)
            run.step_log["render"] = time.monotonic() - step_start

            # Step 5: Audio mix
            run.advance(PipelineState.MIXING)
            report("mix")
            step_start = time.monotonic()
            mix = stages.build_mix_plan(
                staged["primary"], staged.get("secondary"), request.gain, self.config.render
            )
            if mix.passthrough:
                logger.info("No background music, primary audio passes through unchanged")
            else:
                await self._execute_stage(run, engine, "mix", mix.argv, mix.output_name)
            run.step_log["mix"] = time.monotonic() - step_start

            # Step 6: Mux
            run.advance(PipelineState.MUXING)
            report("mux")
            step_start = time.monotonic()
            await self._execute_stage(
                run,
                engine,
                "mux",
                stages.build_mux_command(mix.output_name, self.config.render),
                stages.OUTPUT,
            )
            run.step_log["mux"] = time.monotonic() - step_start

            # Step 7: Extraction
            run.advance(PipelineState.FINALIZING)
            report("extract")
            step_start = time.monotonic()
            data = await engine.read_file(stages.OUTPUT)
            if not data:
                raise ProcessingFailedError("Video generation failed", details="Output file is empty")
            run.step_log["extract"] = time.monotonic() - step_start

        except Exception as e:
            await self._cleanup(run, engine)
            if isinstance(e, ProcessingFailedError):
                raise
            raise ProcessingFailedError(
                "Video generation failed",
                details=f"{run.state.value}: {type(e).__name__}: {e}",
            ) from e

        # Step 8: Cleanup
        report("cleanup")
        step_start = time.monotonic()
        await self._cleanup(run, engine)
        run.step_log["cleanup"] = time.monotonic() - step_start
        run.advance(PipelineState.COMPLETED)

        total = time.monotonic() - pipeline_start
        logger.info(f"Run {run.run_id} completed in {total:.2f}s ({len(data) / 1024 / 1024:.2f} MB)")

        return GeneratedArtifact(
            data=data,
            video_codec=self.config.render.video_codec,
            audio_codec=self.config.render.audio_codec,
            duration=total_duration,
            canvas=canvas,
            stage_timings=dict(run.step_log),
        )

    async def _stage_inputs(
        self, run: PipelineRun, engine: EngineAdapter, request: RunRequest
    ) -> dict:
        staged: dict = {}

        primary = stages.primary_audio_name(request.primary_audio.extension)
        await engine.write_file(run.track(primary), request.primary_audio.data)
        staged["primary"] = primary

        if request.secondary_audio is not None:
            secondary = stages.secondary_audio_name(request.secondary_audio.extension)
            await engine.write_file(run.track(secondary), request.secondary_audio.data)
            staged["secondary"] = secondary

        names = []
        for position, image in enumerate(request.ordered_images()):
            name = stages.image_file_name(position, image.extension)
            await engine.write_file(run.track(name), image.data)
            names.append(name)
        staged["images"] = names

        logger.info(f"Staged {len(names)} images and {len(staged) - 1} audio tracks")
        return staged

    async def _render(
        self,
        run: PipelineRun,
        engine: EngineAdapter,
        request: RunRequest,
        image_names: list[str],
        plan: TimingPlan,
        canvas: Canvas,
    ) -> None:
        transition_length = self.config.render.transition_length
        spec = TransitionSpec.for_slot(request.transition, plan.slot_duration, transition_length)
        logger.info(
            f"Rendering {len(image_names)} images at {canvas.width}x{canvas.height}, "
            f"{plan.slot_duration:.3f}s each, {spec.kind.value} "
            f"(length={spec.length}s, offset={spec.offset:.3f}s)"
        )
        graph = synthesize_filter_graph(
            len(image_names),
            plan.slot_duration,
            spec.kind,
            canvas=canvas,
            transition_length=spec.length,
        )
        argv = stages.build_render_command(image_names, plan, graph, self.config.render)
        await self._execute_stage(run, engine, "render", argv, stages.VIDEO_ONLY)

    async def _execute_stage(
        self,
        run: PipelineRun,
        engine: EngineAdapter,
        stage: str,
        argv: list[str],
        output_name: str,
    ) -> None:
        run.track(output_name)
        result = await engine.execute(argv)
        if not result.success:
            raise ProcessingFailedError(
                "Video generation failed",
                details=f"{stage} exited with code {result.exit_code}: {result.log.strip()}",
            )

    async def _cleanup(self, run: PipelineRun, engine: EngineAdapter) -> None:
        """Delete every tracked store file. Failures are logged, never raised."""
        for name in run.files:
            try:
                await engine.delete_file(name)
            except Exception as e:
                logger.warning(f"Failed to delete {name} from engine store: {e}")
