"""ID3v2.4 tag assembly for the merged MP3."""

from __future__ import annotations

import mimetypes
from datetime import date, datetime
from typing import Iterable

from mutagen import MutagenError
from mutagen.id3 import (
    APIC,
    CHAP,
    COMM,
    CTOC,
    ID3,
    TALB,
    TCON,
    TDRL,
    TIT2,
    TIT3,
    TPE1,
    TPE2,
    CTOCFlags,
    Encoding,
    ID3NoHeaderError,
    PictureType,
)

from chapter_merge.errors import MetadataError, OutputError
from chapter_merge.models import ChapterInfo, MetadataFields

SEPARATOR = ";"
COMMENT_LANG = "eng"
TOC_ELEMENT_ID = "toc"
DATE_FORMAT = "%Y-%m-%d"

# Only the built-in extension table, so lookups don't depend on the host's
# mime.types files.
_MIME_TYPES = mimetypes.MimeTypes()


def read_tag(path: str) -> ID3:
    """Read the ID3 tag of ``path``, or return an empty one if it has none."""
    try:
        return ID3(path)
    except ID3NoHeaderError:
        return ID3()
    except (MutagenError, OSError) as exc:
        raise OutputError(
            "failed to read ID3 tag from '{}'".format(path), path
        ) from exc


def write_tag(tag: ID3, path: str) -> None:
    """Save ``tag`` to ``path`` as ID3v2.4."""
    try:
        tag.save(path, v2_version=4)
    except (MutagenError, OSError) as exc:
        raise OutputError(
            "failed to write ID3 metadata to '{}'".format(path), path
        ) from exc


def split_values(value: str) -> list[str]:
    """Split a multi-value field on the separator. Whitespace is kept as-is."""
    return value.split(SEPARATOR)


def guess_mime_type(path: str) -> str:
    mime_type, _ = _MIME_TYPES.guess_type(path, strict=False)
    if not mime_type:
        raise MetadataError(
            "failed to determine a mime type for cover file '{}'".format(path)
        )
    return mime_type


def parse_release_date(value: str) -> date:
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise MetadataError(
            "failed to parse release date timestamp '{}'".format(value)
        ) from exc


def read_cover(path: str) -> APIC:
    """Build a front-cover picture frame from an image file."""
    mime_type = guess_mime_type(path)
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise MetadataError("failed to read cover file '{}'".format(path)) from exc

    return APIC(
        encoding=Encoding.UTF8,
        mime=mime_type,
        type=PictureType.COVER_FRONT,
        desc="",
        data=data,
    )


def chapter_frame(chapter: ChapterInfo) -> CHAP:
    return CHAP(
        element_id=chapter.element_id,
        start_time=chapter.start_time,
        end_time=chapter.end_time,
        start_offset=chapter.start_offset,
        end_offset=chapter.end_offset,
        sub_frames=[TIT2(encoding=Encoding.UTF8, text=[chapter.title])],
    )


def toc_frame(chapters: Iterable[ChapterInfo]) -> CTOC:
    return CTOC(
        element_id=TOC_ELEMENT_ID,
        flags=CTOCFlags.TOP_LEVEL | CTOCFlags.ORDERED,
        child_element_ids=[ch.element_id for ch in chapters],
        sub_frames=[TIT2(encoding=Encoding.UTF8, text=["Table of Contents"])],
    )


def populate_tag(
    tag: ID3,
    fields: MetadataFields,
    chapters: list[ChapterInfo],
) -> None:
    """Apply metadata fields and chapter frames to ``tag`` in place.

    Text fields overwrite whatever the tag already holds. Pictures, comments
    and chapters are added; an existing frame is only replaced when it has
    the same identity (description and language, or element id).

    All values are validated before the tag is touched, so a bad cover or
    release date leaves ``tag`` unchanged.
    """
    cover = read_cover(fields.cover) if fields.cover is not None else None
    released = (
        parse_release_date(fields.date_released)
        if fields.date_released is not None
        else None
    )

    if fields.title is not None:
        tag.setall("TIT2", [TIT2(encoding=Encoding.UTF8, text=[fields.title])])
    if fields.subtitle is not None:
        tag.setall("TIT3", [TIT3(encoding=Encoding.UTF8, text=[fields.subtitle])])
    if fields.artists is not None:
        tag.setall(
            "TPE1", [TPE1(encoding=Encoding.UTF8, text=split_values(fields.artists))]
        )
    if cover is not None:
        tag.add(cover)
    if fields.album is not None:
        tag.setall("TALB", [TALB(encoding=Encoding.UTF8, text=[fields.album])])
    if fields.album_artist is not None:
        tag.setall(
            "TPE2", [TPE2(encoding=Encoding.UTF8, text=[fields.album_artist])]
        )
    if released is not None:
        tag.setall(
            "TDRL", [TDRL(encoding=Encoding.UTF8, text=[released.isoformat()])]
        )
    if fields.genres is not None:
        tag.setall(
            "TCON", [TCON(encoding=Encoding.UTF8, text=split_values(fields.genres))]
        )
    if fields.comments is not None:
        tag.add(
            COMM(
                encoding=Encoding.UTF8,
                lang=COMMENT_LANG,
                desc="",
                text=[fields.comments],
            )
        )

    for chapter in chapters:
        tag.add(chapter_frame(chapter))
    if chapters:
        tag.add(toc_frame(chapters))


def format_duration(ms: int) -> str:
    """Format milliseconds as M:SS or H:MM:SS."""
    total_seconds = ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    if hours > 0:
        return "{}:{:02d}:{:02d}".format(hours, minutes, seconds)
    return "{}:{:02d}".format(minutes, seconds)
