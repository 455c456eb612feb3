"""Chapter timeline for the merged file."""

from __future__ import annotations

import math
import os
from typing import Callable, Sequence

from chapter_merge.errors import ProbeError
from chapter_merge.models import ChapterInfo
from chapter_merge.probe import DurationProvider

# CHAP frames store times and offsets as unsigned 32-bit integers.
MAX_FRAME_VALUE = 0xFFFFFFFF


def duration_to_ms(seconds: float) -> int:
    """Convert a probed duration to milliseconds, rounding half away from zero.

    Raises ValueError for negative or non-finite input.
    """
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError("invalid duration: {!r}".format(seconds))
    return int(math.floor(seconds * 1000 + 0.5))


def chapter_title(path: str) -> str:
    """Return the file-name stem of ``path``."""
    name = os.path.basename(os.path.normpath(path)) if path else ""
    if name in ("", ".", ".."):
        raise ProbeError("failed to get stem for input file '{}'".format(path), path)
    stem, _ = os.path.splitext(name)
    return stem


def build_chapters(
    paths: Sequence[str],
    durations: DurationProvider,
    progress: Callable[[str], None] | None = None,
) -> list[ChapterInfo]:
    """Build contiguous chapters from ordered input files.

    Chapter ``i`` starts where chapter ``i - 1`` ended, both in time (the
    rounded probed duration) and in bytes (the file size). This holds as long
    as the merge is a plain stream copy.
    """
    chapters = []
    current_time = 0
    current_offset = 0

    for i, path in enumerate(paths):
        if progress is not None:
            progress(path)

        seconds = durations.duration(path)
        try:
            duration_ms = duration_to_ms(seconds)
        except ValueError as exc:
            raise ProbeError(
                "failed to parse duration of input file '{}': {}".format(path, exc),
                path,
            ) from exc

        try:
            file_size = os.path.getsize(path)
        except OSError as exc:
            raise ProbeError(
                "failed to get info for input file '{}'".format(path), path
            ) from exc

        chapter = ChapterInfo(
            element_id="chapter_{}".format(i),
            title=chapter_title(path),
            start_time=current_time,
            end_time=current_time + duration_ms,
            start_offset=current_offset,
            end_offset=current_offset + file_size,
            source_file=path,
        )
        if chapter.end_time > MAX_FRAME_VALUE or chapter.end_offset > MAX_FRAME_VALUE:
            raise ProbeError(
                "input file '{}' ends past the 32-bit chapter frame range".format(path),
                path,
            )

        chapters.append(chapter)
        current_time = chapter.end_time
        current_offset = chapter.end_offset

    return chapters
