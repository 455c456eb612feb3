"""Click CLI entry point for chapter-merge."""

from __future__ import annotations

import dataclasses
import os

import click

from chapter_merge.converter import convert
from chapter_merge.manifest import get_file_order, get_metadata, load_manifest
from chapter_merge.models import MetadataFields


@click.command()
@click.version_option(package_name="chapter-merge")
@click.argument("output", type=click.Path(dir_okay=False))
@click.argument("files", nargs=-1, type=click.Path(exists=True))
@click.option("--title", default=None, help="Set title of merged MP3 file")
@click.option("--subtitle", default=None, help="Set subtitle of merged MP3 file")
@click.option("--artists", default=None, help="Semicolon-separated list of artists")
@click.option("--cover", default=None, type=click.Path(), help="Path to cover art image")
@click.option("--album", default=None, help="Album name")
@click.option("--album-artist", default=None, help="Album artist")
@click.option("--date-released", default=None, metavar="YYYY-MM-DD", help="Date released")
@click.option("--genres", default=None, help="Semicolon-separated list of genres")
@click.option("--comments", default=None, help="Comments to include")
@click.option(
    "--manifest",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML manifest with metadata and input files",
)
@click.option("--dry-run", is_flag=True, help="Show chapter plan without merging")
@click.option("--verbose", is_flag=True, help="Show ffmpeg output")
def cli(
    output: str,
    files: tuple[str, ...],
    title: str | None,
    subtitle: str | None,
    artists: str | None,
    cover: str | None,
    album: str | None,
    album_artist: str | None,
    date_released: str | None,
    genres: str | None,
    comments: str | None,
    manifest: str | None,
    dry_run: bool,
    verbose: bool,
):
    """Merge audio FILES into a single chaptered MP3 at OUTPUT.

    Each input file becomes one chapter, named after the file, in the order
    given. Directories are expanded into the MP3 files they contain.
    """
    fields = MetadataFields()
    input_files = list(files)

    if manifest:
        data = load_manifest(manifest)
        base_dir = os.path.dirname(os.path.abspath(manifest))
        fields = get_metadata(data, base_dir)
        if not input_files:
            input_files = get_file_order(data, base_dir) or []

    # CLI flags override the manifest
    overrides = {
        "title": title,
        "subtitle": subtitle,
        "artists": artists,
        "cover": cover,
        "album": album,
        "album_artist": album_artist,
        "date_released": date_released,
        "genres": genres,
        "comments": comments,
    }
    fields = dataclasses.replace(
        fields, **{k: v for k, v in overrides.items() if v is not None}
    )

    convert(
        files=input_files,
        output=output,
        fields=fields,
        dry_run=dry_run,
        verbose=verbose,
    )
