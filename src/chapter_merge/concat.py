"""ffmpeg concat demuxer: directive list and stream-copy merge."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import tempfile
from typing import Iterable, Protocol

import click

from chapter_merge.errors import MergeError, ToolNotFoundError
from chapter_merge.metadata import format_duration

# ffmpeg resolves relative paths in the list against the list's own
# directory, so the list sits in the working directory rather than in a
# temporary directory.
MERGELIST_PATH = "mergelist.txt"


class Concatenator(Protocol):
    def concat(self, list_path: str, output_path: str) -> None:
        """Concatenate the files named in ``list_path`` into ``output_path``."""
        ...


def ensure_ffmpeg() -> str:
    """Return the path to ffmpeg, or raise if not found."""
    path = shutil.which("ffmpeg")
    if not path:
        raise ToolNotFoundError(
            "ffmpeg not found on PATH. Install ffmpeg: brew install ffmpeg"
        )
    return path


def escape_path(path: str) -> str:
    """Escape single quotes for a quoted concat directive."""
    return path.replace("'", "'\\''")


def format_mergelist(paths: Iterable[str]) -> list[str]:
    """Return one ``file '...'`` directive per input path.

    Relative paths are written as ``./<path>``; absolute paths as given.
    """
    lines = []
    for path in paths:
        escaped = escape_path(path)
        if os.path.isabs(path):
            lines.append("file '{}'".format(escaped))
        else:
            lines.append("file './{}'".format(escaped))
    return lines


def write_mergelist(paths: Iterable[str], list_path: str = MERGELIST_PATH) -> str:
    """Write the directive list and return its path."""
    with open(list_path, "w", encoding="utf-8") as f:
        for line in format_mergelist(paths):
            f.write(line + "\n")
    return list_path


class FFmpegConcatenator:
    """Stream-copies the listed inputs into one file, without re-encoding."""

    def __init__(self, total_ms: int = 0, verbose: bool = False) -> None:
        self.total_ms = total_ms
        self.verbose = verbose

    def concat(self, list_path: str, output_path: str) -> None:
        cmd = [
            ensure_ffmpeg(),
            "-hide_banner",
            "-loglevel", "info" if self.verbose else "error",
            "-f", "concat",
            "-safe", "0",
            "-i", list_path,
            "-c", "copy",
        ]

        if self.verbose:
            cmd.extend(["-y", output_path])
            click.echo("Running: {}".format(" ".join(cmd)), err=True)
            try:
                subprocess.run(cmd, check=True)
            except (OSError, subprocess.CalledProcessError) as exc:
                raise MergeError("ffmpeg failed to merge input files") from exc
            return

        cmd.extend(["-progress", "pipe:1", "-nostats", "-y", output_path])
        _run_with_progress(cmd, self.total_ms)


def _progress_line(time_ms: int, total_ms: int, width: int = 40) -> str:
    pct = max(0, min(100, time_ms * 100 // total_ms)) if total_ms > 0 else 0
    filled = width * pct // 100
    return "\r  [{}{}] {:3d}%  {}/{}".format(
        "#" * filled,
        "-" * (width - filled),
        pct,
        format_duration(time_ms),
        format_duration(total_ms),
    )


def _run_with_progress(cmd: list, total_ms: int) -> None:
    """Run ffmpeg, drawing a progress bar from its ``-progress`` stream.

    stderr goes to a temporary file, not a pipe, and is echoed only when
    ffmpeg fails.
    """
    with tempfile.TemporaryFile(mode="w+", encoding="utf-8") as errors:
        try:
            proc = subprocess.Popen(
                cmd, stdout=subprocess.PIPE, stderr=errors, text=True
            )
        except OSError as exc:
            raise MergeError("failed to start ffmpeg") from exc

        last_line = None
        try:
            for raw in proc.stdout:
                key, _, value = raw.strip().partition("=")
                if key != "out_time_us":
                    continue
                try:
                    time_us = max(0, int(value))
                except ValueError:  # "N/A" before the first packet
                    continue
                line = _progress_line(time_us // 1000, total_ms)
                if line != last_line:
                    last_line = line
                    sys.stderr.write(line)
                    sys.stderr.flush()
            proc.wait()
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            if last_line is not None:
                sys.stderr.write("\r" + " " * 80 + "\r")
                sys.stderr.flush()

        if proc.returncode != 0:
            errors.seek(0)
            click.echo("ffmpeg error:", err=True)
            click.echo(errors.read(), err=True)
            raise MergeError("ffmpeg exited with status {}".format(proc.returncode))
