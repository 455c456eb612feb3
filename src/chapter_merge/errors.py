"""Exceptions raised by the merge pipeline.

Every error derives from click.ClickException, so the CLI reports it as
``Error: <message>`` on stderr and exits with status 1.
"""

from __future__ import annotations

import click


class ChapterMergeError(click.ClickException):
    """Base class for all pipeline failures."""


class ToolNotFoundError(ChapterMergeError):
    """ffmpeg or ffprobe is not on PATH."""


class ProbeError(ChapterMergeError):
    """Chapter info could not be derived for one input file."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


class MergeError(ChapterMergeError):
    """The external concatenation step failed."""


class MetadataError(ChapterMergeError):
    """A user-supplied metadata value could not be turned into a frame."""


class ManifestError(ChapterMergeError):
    """The YAML manifest could not be loaded."""


class OutputError(ChapterMergeError):
    """Reading or writing the merged file or its destination failed."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path
