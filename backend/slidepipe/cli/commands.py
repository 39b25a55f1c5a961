"""CLI commands for slidepipe using Typer and Rich.

Implements all 3 CLI commands:
- render: Render images and audio into an MP4 slideshow
- transitions: List available transition styles
- check: Validate ffmpeg/ffprobe availability
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from slidepipe import validate_dependencies
from slidepipe.config import settings
from slidepipe.errors import PipelineError
from slidepipe.orchestrator import Orchestrator, ProgressStream
from slidepipe.pipeline.timing import format_duration
from slidepipe.pipeline.transitions import resolve_transition
from slidepipe.schemas.run import AudioInput, RunRequest, TransitionKind
from slidepipe.services.audio_probe import FFprobeAudioProbe
from slidepipe.services.engine import EngineHandle
from slidepipe.services.ffmpeg_engine import FFmpegEngine
from slidepipe.services.image_loader import load_images

app = typer.Typer(name="slidepipe", help="Render still images and audio into an MP4 slideshow")
console = Console()


def _read_audio(path: Path) -> AudioInput:
    if not path.is_file():
        console.print(f"[red]Error:[/red] Audio file not found: {path}")
        raise typer.Exit(code=1)
    return AudioInput(data=path.read_bytes(), name=path.name)


@app.command()
def render(
    images: List[Path] = typer.Argument(..., help="Image files (JPEG, PNG, WebP)"),
    audio: Path = typer.Option(..., "--audio", "-a", help="Primary audio track (narration)"),
    music: Optional[Path] = typer.Option(None, "--music", "-m", help="Background music track"),
    transition: str = typer.Option(
        TransitionKind.CROSS_DISSOLVE.value, "--transition", "-t", help="Transition style"
    ),
    gain: int = typer.Option(30, "--gain", "-g", min=0, max=50, help="Background music volume (0-50)"),
    output: Path = typer.Option(Path("slideshow.mp4"), "--output", "-o", help="Output MP4 path"),
    sort: bool = typer.Option(True, "--sort/--no-sort", help="Natural-sort images by file name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Render a slideshow video.

    Each image is shown for an equal share of the primary audio length, with
    the chosen transition between consecutive images.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Fail-fast dependency validation
    try:
        validate_dependencies(settings.engine.ffmpeg_bin, settings.engine.ffprobe_bin)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {str(e)}")
        raise typer.Exit(code=1)

    try:
        kind = resolve_transition(transition)
        missing = [str(p) for p in images if not p.is_file()]
        if missing:
            console.print(f"[red]Error:[/red] Image files not found: {', '.join(missing)}")
            raise typer.Exit(code=1)
        loaded = load_images(images, sort=sort)
    except PipelineError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    request = RunRequest(
        images=loaded,
        primary_audio=_read_audio(audio),
        secondary_audio=_read_audio(music) if music else None,
        transition=kind,
        gain=gain,
    )

    console.print(
        f"[yellow]Rendering[/yellow] {len(loaded)} images with "
        f"{kind.display_name} transitions -> {output}"
    )
    asyncio.run(_render_async(request, output))


async def _render_async(request: RunRequest, output: Path):
    """Async implementation of render command."""
    handle = EngineHandle(FFmpegEngine(settings.engine))
    orchestrator = Orchestrator(handle, FFprobeAudioProbe(settings.engine), settings)
    stream = ProgressStream()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold green]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Starting...", total=100)

            async def follow():
                async for event in stream:
                    progress.update(task, completed=event.percentage, description=event.label)

            follower = asyncio.create_task(follow())
            try:
                artifact = await orchestrator.run(request, stream=stream)
            finally:
                await follower

    except PipelineError as e:
        console.print()
        console.print(f"[red]✗ {e.kind}:[/red] {e.message}")
        if e.details:
            console.print(f"[dim]{e.details}[/dim]")
        if not e.recoverable:
            console.print("[yellow]This error is not recoverable; check your ffmpeg installation.[/yellow]")
        raise typer.Exit(code=1)

    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Render interrupted.[/yellow]")
        raise typer.Exit(code=130)

    finally:
        await handle.adapter.terminate()

    artifact.write_to(output)

    timings = ", ".join(f"{name} {seconds:.1f}s" for name, seconds in artifact.stage_timings.items())
    console.print(
        Panel(
            f"[green]Output:[/green] {output}\n"
            f"[green]Duration:[/green] {format_duration(artifact.duration)}\n"
            f"[green]Canvas:[/green] {artifact.canvas.width}x{artifact.canvas.height}\n"
            f"[green]Size:[/green] {artifact.size / 1024 / 1024:.2f} MB\n"
            f"[dim]{timings}[/dim]",
            title="✓ Video generation complete",
        )
    )


@app.command()
def transitions():
    """List available transition styles."""
    table = Table(title="Transitions")
    table.add_column("Name", style="cyan")
    table.add_column("Display name")
    table.add_column("Description", style="dim")

    for kind in TransitionKind:
        table.add_row(kind.value, kind.display_name, kind.description)

    console.print(table)


@app.command()
def check():
    """Validate that ffmpeg and ffprobe are installed."""
    try:
        validate_dependencies(settings.engine.ffmpeg_bin, settings.engine.ffprobe_bin)
    except RuntimeError as e:
        console.print(f"[red]✗[/red] {str(e)}")
        raise typer.Exit(code=1)
    console.print("[green]✓[/green] ffmpeg and ffprobe are available")
