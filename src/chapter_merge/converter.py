"""Core merge orchestrator: input files -> chaptered MP3."""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
from typing import Sequence

import click
from natsort import natsorted

from chapter_merge.chapters import build_chapters
from chapter_merge.concat import (
    MERGELIST_PATH,
    Concatenator,
    FFmpegConcatenator,
    ensure_ffmpeg,
    write_mergelist,
)
from chapter_merge.errors import ChapterMergeError, MergeError, OutputError
from chapter_merge.metadata import (
    format_duration,
    populate_tag,
    read_tag,
    write_tag,
)
from chapter_merge.models import ChapterInfo, MetadataFields
from chapter_merge.probe import DurationProvider, FFprobeDurationProvider, ensure_ffprobe

OUTPUT_EXTENSION = ".mp3"


def discover_mp3s(input_path: str) -> list[str]:
    """Find all MP3 files in a directory, natural-sorted by filename."""
    mp3s = []
    for f in os.listdir(input_path):
        if f.lower().endswith(".mp3"):
            mp3s.append(os.path.join(input_path, f))

    mp3s = natsorted(mp3s, key=os.path.basename)

    if not mp3s:
        raise click.ClickException("No MP3 files found in {}".format(input_path))

    return mp3s


def expand_inputs(paths: Sequence[str]) -> list[str]:
    """Replace each directory in ``paths`` with the MP3 files it holds."""
    files = []
    for path in paths:
        if os.path.isdir(path):
            files.extend(discover_mp3s(path))
        else:
            files.append(path)
    return files


def output_path_for(output: str) -> str:
    """Force the MP3 extension onto the requested output path."""
    root, _ = os.path.splitext(output)
    return root + OUTPUT_EXTENSION


def merge_files(
    paths: Sequence[str],
    concatenator: Concatenator,
    list_path: str = MERGELIST_PATH,
) -> str:
    """Concatenate ``paths`` into a new temporary MP3 and return its path.

    The caller owns the returned file. The directive list is removed once
    the merge succeeds; after a failure it is left behind.
    """
    write_mergelist(paths, list_path)

    fd, merged_path = tempfile.mkstemp(prefix="merge-output", suffix=OUTPUT_EXTENSION)
    os.close(fd)
    try:
        concatenator.concat(list_path, merged_path)
    except BaseException:
        os.unlink(merged_path)
        raise

    os.remove(list_path)
    return merged_path


def finalize_output(merged_path: str, output: str) -> str:
    """Copy the tagged temp file to its destination and return that path.

    The copy goes to a ``.part`` sibling first and is renamed into place, so
    the destination only ever holds a complete file.
    """
    destination = output_path_for(output)
    partial = destination + ".part"
    try:
        shutil.copyfile(merged_path, partial)
        os.replace(partial, destination)
    except OSError as exc:
        if os.path.exists(partial):
            os.unlink(partial)
        raise OutputError(
            "failed to copy merged file to output path '{}'".format(destination),
            destination,
        ) from exc
    return destination


def convert(
    files: Sequence[str],
    output: str,
    fields: MetadataFields | None = None,
    durations: DurationProvider | None = None,
    concatenator: Concatenator | None = None,
    list_path: str = MERGELIST_PATH,
    dry_run: bool = False,
    verbose: bool = False,
) -> str | None:
    """Run the full merge pipeline and return the output path.

    Returns None for a dry run, which stops after the chapter timeline.
    """
    if not files:
        raise click.UsageError("no input files specified")

    fields = fields or MetadataFields()
    paths = expand_inputs(files)

    if durations is None:
        ensure_ffprobe()
        durations = FFprobeDurationProvider(verbose=verbose)
    if concatenator is None and not dry_run:
        ensure_ffmpeg()

    # Chapter timeline
    with click.progressbar(
        length=len(paths),
        label="Generating chapter info",
        file=sys.stderr,
    ) as bar:
        chapters = build_chapters(paths, durations, progress=lambda _: bar.update(1))

    if dry_run:
        _print_dry_run(fields, chapters, output_path_for(output))
        return None

    if concatenator is None:
        total_ms = chapters[-1].end_time if chapters else 0
        concatenator = FFmpegConcatenator(total_ms=total_ms, verbose=verbose)

    click.echo("Merging {} files...".format(len(paths)), err=True)
    try:
        merged_path = merge_files(paths, concatenator, list_path)
    except ChapterMergeError:
        raise
    except OSError as exc:
        raise MergeError("failed to merge input files: {}".format(exc)) from exc

    try:
        tag = read_tag(merged_path)
        populate_tag(tag, fields, chapters)
        write_tag(tag, merged_path)
        destination = finalize_output(merged_path, output)
    finally:
        os.unlink(merged_path)

    size_mb = os.path.getsize(destination) / (1024 * 1024)
    click.echo(
        "Done! Output: {} ({} chapters, {:.1f} MB)".format(
            destination, len(chapters), size_mb
        ),
        err=True,
    )
    return destination


def _print_dry_run(
    fields: MetadataFields,
    chapters: list[ChapterInfo],
    output: str,
) -> None:
    """Print the merge plan without executing."""
    click.echo("\n--- Dry Run ---\n")

    click.echo("Metadata:")
    labels = [
        ("Title", fields.title),
        ("Subtitle", fields.subtitle),
        ("Artists", fields.artists),
        ("Album", fields.album),
        ("Album artist", fields.album_artist),
        ("Released", fields.date_released),
        ("Genres", fields.genres),
        ("Comments", fields.comments),
    ]
    for label, value in labels:
        if value is not None:
            click.echo("  {:<13} {}".format(label + ":", value))
    click.echo("  {:<13} {}".format("Cover:", fields.cover or "(none)"))
    click.echo("  {:<13} {}".format("Output:", output))

    click.echo("\nChapters ({}):\n".format(len(chapters)))
    for i, ch in enumerate(chapters, 1):
        click.echo(
            "  {:3d}. {} [{} - {}]  bytes {}-{}  ({})".format(
                i,
                ch.title,
                format_duration(ch.start_time),
                format_duration(ch.end_time),
                ch.start_offset,
                ch.end_offset,
                ch.source_file,
            )
        )

    total_ms = chapters[-1].end_time if chapters else 0
    click.echo("\nTotal duration: {}".format(format_duration(total_ms)))
    click.echo("")
