"""ffprobe wrapper for reading input file durations."""

from __future__ import annotations

import shutil
import subprocess
from typing import Protocol

import click

from chapter_merge.errors import ProbeError, ToolNotFoundError


class DurationProvider(Protocol):
    def duration(self, path: str) -> float:
        """Return the playback duration of ``path`` in seconds."""
        ...


def ensure_ffprobe() -> str:
    """Return the path to ffprobe, or raise if not found."""
    path = shutil.which("ffprobe")
    if not path:
        raise ToolNotFoundError(
            "ffprobe not found on PATH. Install ffmpeg: brew install ffmpeg"
        )
    return path


class FFprobeDurationProvider:
    """Reads ``format=duration`` from ffprobe, one process per file."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def duration(self, path: str) -> float:
        cmd = [
            ensure_ffprobe(),
            "-i", path,
            "-show_entries", "format=duration",
            "-v", "quiet",
            "-of", "csv=p=0",
        ]
        if self.verbose:
            click.echo("Running: {}".format(" ".join(cmd)), err=True)

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise ProbeError(
                "failed to get duration of input file '{}'".format(path), path
            ) from exc

        try:
            return float(result.stdout.strip())
        except ValueError as exc:
            raise ProbeError(
                "failed to parse duration of input file '{}': {!r}".format(
                    path, result.stdout.strip()
                ),
                path,
            ) from exc
