"""
CLI entry point — Click-based command-line interface.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
import pandas as pd
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

console = Console()


@click.group()
@click.version_option(version="0.1.0", prog_name="densitymap")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool):
    """densitymap — bake position samples into density heatmap PNGs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _read_table(path: str) -> pd.DataFrame:
    suffix = Path(path).suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix in (".csv", ".txt"):
        return pd.read_csv(path)
    raise click.ClickException(f"Unsupported table format: {suffix} (use .csv or .parquet)")


def _export(aggregator, width, height, scale, nearest, output_dir) -> Path:
    bilinear = None if nearest is None else not nearest
    if scale is not None or (width is None and height is None and aggregator.export.scale > 1):
        return aggregator.export_scaled(scale, bilinear=bilinear, directory=output_dir)
    return aggregator.export_exact(width, height, bilinear=bilinear, directory=output_dir)


def _export_options(f):
    f = click.option("--nearest/--bilinear", default=None, help="Resampling filter for export.")(f)
    f = click.option("--scale", type=int, default=None, help="Export at N x the grid resolution.")(f)
    f = click.option("--height", type=int, default=None, help="Exact export height in pixels.")(f)
    f = click.option("--width", type=int, default=None, help="Exact export width in pixels.")(f)
    f = click.option("--output-dir", "-o", default=None, type=click.Path(), help="Directory for the PNG.")(f)
    f = click.option("--config", "-c", "config_path", default=None, type=click.Path(exists=True),
                     help="YAML heatmap config.")(f)
    return f


@cli.command()
@click.argument("samples_path", type=click.Path(exists=True))
@_export_options
@click.option("--summary", "summary_path", default=None, type=click.Path(), help="Write summary JSON.")
def bake(samples_path, config_path, output_dir, width, height, scale, nearest, summary_path):
    """Accumulate a sample table (x, y|z[, weight]) and export one PNG.

    A table with both y and z columns is read as y-up 3D and uses (x, z).
    """
    from densitymap.config import build_from_path

    try:
        aggregator = build_from_path(config_path)
        frame = _read_table(samples_path)
        plane = "z" if "z" in frame.columns else "y"
        if "x" not in frame.columns or plane not in frame.columns:
            raise click.ClickException("Sample table needs 'x' and 'y' (or 'z') columns")

        positions = frame[["x", plane]].to_numpy(dtype=float)
        weights = frame["weight"].to_numpy(dtype=int) if "weight" in frame.columns else None
        console.print(f"[bold blue]Accumulating[/bold blue] {len(frame)} samples from {samples_path}")
        aggregator.add_samples(positions, weights)

        path = _export(aggregator, width, height, scale, nearest, output_dir)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(f"[bold green]Saved[/bold green] {path}")
    _finish(aggregator, summary_path)


@cli.command()
@click.argument("tracks_path", type=click.Path(exists=True))
@_export_options
@click.option("--dt", default=1.0 / 30.0, type=float, help="Seconds per simulated tick.")
@click.option("--no-progress", is_flag=True, help="Disable progress bar.")
@click.option("--summary", "summary_path", default=None, type=click.Path(), help="Write summary JSON.")
def replay(tracks_path, config_path, output_dir, width, height, scale, nearest, dt, no_progress, summary_path):
    """Replay entity tracks (time, entity, x, y|z) through the tick loop."""
    from densitymap.config import build_from_path
    from densitymap.core.clock import Clock
    from densitymap.core.tracks import TrackPlayback

    try:
        aggregator = build_from_path(config_path)
        playback = TrackPlayback(_read_table(tracks_path))
        clock = Clock(dt=dt)
        for target in playback.targets(clock):
            aggregator.add_target(target)

        console.print(
            f"[bold blue]Replaying[/bold blue] {len(playback)} entities over "
            f"{playback.duration:.1f}s at dt={dt:.3f}s"
        )

        if no_progress:
            while clock.time <= playback.duration:
                aggregator.on_tick(clock.advance())
        else:
            with Progress(console=console) as progress:
                task = progress.add_task("Replaying...", total=playback.duration or 1.0)
                while clock.time <= playback.duration:
                    aggregator.on_tick(clock.advance())
                    progress.update(task, completed=min(clock.time, playback.duration))

        path = _export(aggregator, width, height, scale, nearest, output_dir)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(f"[bold green]Saved[/bold green] {path}")
    _finish(aggregator, summary_path)


def _finish(aggregator, summary_path: str | None):
    summary = aggregator.summary()
    _print_summary(summary)
    if summary_path:
        out_path = Path(summary_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(summary, indent=2))
        console.print(f"[dim]Summary saved to {summary_path}[/dim]")


def _print_summary(summary: dict):
    """Pretty-print heatmap summary."""
    table = Table(title="Heatmap", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Grid", f'{summary["grid_width"]}x{summary["grid_height"]}')
    table.add_row("Cell Size", f'{summary["cell_size"]:g}')
    table.add_row("Samples Accepted", str(summary["samples_accepted"]))
    table.add_row("Samples Dropped", str(summary["samples_dropped"]))
    table.add_row("Total Count", str(summary["total_count"]))
    table.add_row("Max Count", str(summary["max_count"]))
    table.add_row("Bakes", str(summary["bakes"]))

    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
