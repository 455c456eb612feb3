from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChapterInfo:
    """A chapter in the merged MP3, on both the time and the byte axis."""

    element_id: str
    title: str
    start_time: int  # ms
    end_time: int  # ms
    start_offset: int  # bytes
    end_offset: int  # bytes
    source_file: str


@dataclass
class MetadataFields:
    """Optional tag values. None leaves the corresponding frame untouched."""

    title: str | None = None
    subtitle: str | None = None
    artists: str | None = None  # ";"-separated
    cover: str | None = None
    album: str | None = None
    album_artist: str | None = None
    date_released: str | None = None  # YYYY-MM-DD
    genres: str | None = None  # ";"-separated
    comments: str | None = None
