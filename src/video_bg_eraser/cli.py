"""
CLI for Video Background Eraser
===============================

Command-line interface for erasing the background of videos and image
sequences.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from video_bg_eraser import __version__

console = Console()


def parse_class_ids(ids_str: str) -> List[int]:
    """Parse class ids from string format 'id1,id2,...'"""
    ids = [part.strip() for part in ids_str.split(",") if part.strip()]
    try:
        return [int(part) for part in ids]
    except ValueError:
        raise click.BadParameter(f"Class ids must be integers: '{ids_str}'") from None


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def build_config(
    config_path: Optional[str],
    segmentation_model: Optional[str],
    matting_model: Optional[str],
    device: Optional[str],
    scale: Optional[float],
    background_ids: Optional[str],
    temporal: Optional[bool],
):
    """Load the JSON config (if any) and apply command-line overrides."""
    from video_bg_eraser.core.config import EraserConfig
    from video_bg_eraser.models.base import DeviceType

    config = EraserConfig.load(config_path) if config_path else EraserConfig()

    if segmentation_model:
        config.segmentation.model_path = Path(segmentation_model)
    if matting_model:
        config.matting.model_path = Path(matting_model)
    if device:
        config.segmentation.device = DeviceType(device)
        config.matting.device = DeviceType(device)
    if scale is not None:
        config.matting_scale = scale
    if background_ids is not None:
        config.background_class_ids = parse_class_ids(background_ids)
    if temporal is not None:
        config.enable_temporal_management = temporal

    config.validate()
    return config


def model_options(func):
    """Options shared by the processing commands."""
    options = [
        click.option("-c", "--config", "config_path", type=click.Path(exists=True),
                     help="JSON configuration file"),
        click.option("-s", "--segmentation-model", type=click.Path(exists=True),
                     help="TorchScript DeepLabV3 model"),
        click.option("-m", "--matting-model", type=click.Path(exists=True),
                     help="TorchScript Deep Image Matting model"),
        click.option("--device", type=click.Choice(["cuda", "cpu", "mps"]), default=None,
                     help="Compute device"),
        click.option("--scale", type=click.FloatRange(0.0, 1.0, min_open=True), default=None,
                     help="Matting downscale factor"),
        click.option("--background-ids", type=str, default=None,
                     help="Background class ids: 'id1,id2,...'"),
        click.option("--temporal/--no-temporal", default=None,
                     help="Enable temporal mask tracking"),
        click.option("--start", type=int, default=0, help="Start frame"),
        click.option("--end", type=int, default=None, help="End frame (inclusive)"),
        click.option("-v", "--verbose", is_flag=True, help="Debug logging"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.version_option(version=__version__, prog_name="Video Background Eraser")
def main():
    """
    Video Background Eraser - flicker-resistant background removal

    Combines semantic segmentation, temporal mask tracking and deep image
    matting to cut the foreground out of every frame of a video.
    """
    pass


def _run(start_pipeline, output_dir: Path) -> None:
    """Drive a pipeline generator with a progress bar and print a summary."""
    from video_bg_eraser.core.errors import EraserError

    processed = 0
    total_ms = 0.0

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Erasing background...", total=None)

        def on_progress(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total or None)

        try:
            for result in start_pipeline(on_progress):
                processed += 1
                total_ms += result.processing_time_ms
        except (EraserError, RuntimeError) as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            sys.exit(1)

    table = Table(title="Processing Results")
    table.add_column("Output", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Frames", str(processed))
    if processed:
        table.add_row("Average Time", f"{total_ms / processed:.1f}ms")
    table.add_row("Output Directory", str(output_dir))
    console.print(table)


@main.command()
@click.argument("video_path", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), help="Output directory")
@model_options
def process(video_path, output, config_path, segmentation_model, matting_model,
            device, scale, background_ids, temporal, start, end, verbose):
    """
    Erase the background of a video file into RGBA PNG frames.

    Examples:

        vbge process clip.mp4 -s deeplabv3.pt -m dim.pt

        vbge process clip.mp4 -c eraser.json --scale 0.5 -o cutout/
    """
    from video_bg_eraser.core.errors import EraserError
    from video_bg_eraser.pipeline.eraser import VideoBackgroundEraser
    from video_bg_eraser.pipeline.video import VideoConfig, VideoPipeline

    setup_logging(verbose)
    video_path = Path(video_path)
    output_dir = Path(output) if output else video_path.parent / f"{video_path.stem}_cutout"

    try:
        config = build_config(config_path, segmentation_model, matting_model,
                              device, scale, background_ids, temporal)
    except (EraserError, ValueError) as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        sys.exit(1)

    console.print(Panel.fit(
        f"[bold blue]Video Background Eraser[/bold blue]\n"
        f"Processing: {video_path.name}\n"
        f"Temporal: {config.enable_temporal_management}\n"
        f"Matting scale: {config.matting_scale}",
        title="Configuration"
    ))

    eraser = VideoBackgroundEraser(config)
    try:
        eraser.load_models()
    except EraserError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    pipeline = VideoPipeline(eraser, VideoConfig(
        start_frame=start,
        end_frame=end,
        output_directory=output_dir,
    ))

    try:
        _run(lambda callback: pipeline.process_video(video_path, callback), output_dir)
    finally:
        eraser.unload_models()


@main.command()
@click.argument("input_dir", type=click.Path(exists=True, file_okay=False))
@click.option("-o", "--output", type=click.Path(), help="Output directory")
@click.option("--pattern", type=str, default="*.png", help="File pattern for frames")
@model_options
def sequence(input_dir, output, pattern, config_path, segmentation_model, matting_model,
             device, scale, background_ids, temporal, start, end, verbose):
    """
    Erase the background of an image sequence.

    Examples:

        vbge sequence frames/ --pattern "*.jpg" -s deeplabv3.pt -m dim.pt
    """
    from video_bg_eraser.core.errors import EraserError
    from video_bg_eraser.pipeline.eraser import VideoBackgroundEraser
    from video_bg_eraser.pipeline.video import VideoConfig, VideoPipeline

    setup_logging(verbose)
    input_dir = Path(input_dir)
    output_dir = Path(output) if output else input_dir / "cutout"

    try:
        config = build_config(config_path, segmentation_model, matting_model,
                              device, scale, background_ids, temporal)
    except (EraserError, ValueError) as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        sys.exit(1)

    eraser = VideoBackgroundEraser(config)
    pipeline = VideoPipeline(eraser, VideoConfig(
        start_frame=start,
        end_frame=end,
        output_directory=output_dir,
    ))

    try:
        frames = pipeline.list_sequence(input_dir, pattern)
        eraser.load_models()
    except (EraserError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    console.print(f"Found [bold]{len(frames)}[/bold] frames in {input_dir}")

    try:
        _run(lambda callback: pipeline.process_sequence(input_dir, pattern, callback), output_dir)
    finally:
        eraser.unload_models()


@main.command(name="config")
@click.argument("output_path", type=click.Path(dir_okay=False))
def write_config(output_path):
    """Write the default configuration to a JSON file."""
    from video_bg_eraser.core.config import EraserConfig

    EraserConfig().save(output_path)
    console.print(f"[green]Configuration written to {output_path}[/green]")


@main.command()
def info():
    """Display system information."""
    import cv2
    import numpy as np
    import torch

    table = Table(title="Video Background Eraser - System Information")
    table.add_column("Component", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Version", __version__)
    table.add_row("Python", sys.version.split()[0])
    table.add_row("NumPy", np.__version__)
    table.add_row("OpenCV", cv2.__version__)
    table.add_row("PyTorch", torch.__version__)
    table.add_row("CUDA Available", str(torch.cuda.is_available()))

    if torch.cuda.is_available():
        table.add_row("GPU", torch.cuda.get_device_name(0))

    console.print(table)


if __name__ == "__main__":
    main()
