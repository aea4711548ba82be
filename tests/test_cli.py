"""Tests for the click CLI."""

import json

import pandas as pd
from click.testing import CliRunner

from densitymap.cli import cli

CONFIG_YAML = """
grid:
  extent: [4.0, 4.0]
  cell_size: 1.0
sampling:
  interval: 0.5
  rebake_interval: 0.5
"""


def write_config(tmp_path):
    path = tmp_path / "heatmap.yaml"
    path.write_text(CONFIG_YAML)
    return path


def test_bake_command(tmp_path):
    samples = tmp_path / "samples.csv"
    pd.DataFrame({"x": [0.5, 0.5, 3.5, 9.0], "y": [0.5, 0.5, 3.5, 9.0], "weight": [1, 2, 1, 1]}).to_csv(
        samples, index=False
    )
    out_dir = tmp_path / "out"
    summary = tmp_path / "summary.json"

    result = CliRunner().invoke(
        cli,
        [
            "bake", str(samples), "-c", str(write_config(tmp_path)), "-o", str(out_dir),
            "--width", "8", "--height", "8", "--nearest", "--summary", str(summary),
        ],
    )

    assert result.exit_code == 0, result.output
    pngs = list(out_dir.glob("heatmap_8x8_*.png"))
    assert len(pngs) == 1
    data = json.loads(summary.read_text())
    assert data["samples_accepted"] == 3
    assert data["samples_dropped"] == 1
    assert data["max_count"] == 3


def test_bake_three_d_table_uses_z_plane(tmp_path):
    samples = tmp_path / "samples.csv"
    # y is height and lies outside the grid; z keeps every sample inside.
    pd.DataFrame({"x": [0.5, 1.5], "y": [9.0, 9.0], "z": [0.5, 3.5]}).to_csv(samples, index=False)
    summary = tmp_path / "summary.json"

    result = CliRunner().invoke(
        cli,
        [
            "bake", str(samples), "-c", str(write_config(tmp_path)), "-o", str(tmp_path / "out"),
            "--width", "4", "--height", "4", "--summary", str(summary),
        ],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(summary.read_text())
    assert data["samples_accepted"] == 2
    assert data["samples_dropped"] == 0


def test_bake_rejects_bad_size(tmp_path):
    samples = tmp_path / "samples.csv"
    pd.DataFrame({"x": [0.5], "y": [0.5]}).to_csv(samples, index=False)
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(
        cli, ["bake", str(samples), "-c", str(write_config(tmp_path)), "-o", str(out_dir), "--width", "0"]
    )

    assert result.exit_code != 0
    assert "must be > 0" in result.output
    assert not out_dir.exists()


def test_replay_command(tmp_path):
    tracks = tmp_path / "tracks.csv"
    pd.DataFrame(
        {
            "time": [0.0, 1.0, 2.0, 0.0, 2.0],
            "entity": ["a", "a", "a", "b", "b"],
            "x": [0.5, 1.5, 2.5, 3.5, 3.5],
            "y": [0.5, 0.5, 0.5, 3.5, 2.5],
        }
    ).to_csv(tracks, index=False)
    out_dir = tmp_path / "out"
    summary = tmp_path / "summary.json"

    result = CliRunner().invoke(
        cli,
        [
            "replay", str(tracks), "-c", str(write_config(tmp_path)), "-o", str(out_dir),
            "--scale", "2", "--dt", "0.25", "--no-progress", "--summary", str(summary),
        ],
    )

    assert result.exit_code == 0, result.output
    assert len(list(out_dir.glob("heatmap_8x8_*.png"))) == 1
    data = json.loads(summary.read_text())
    assert data["samples_accepted"] > 0
    assert data["samples_dropped"] == 0
