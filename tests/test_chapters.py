"""Tests for the chapter timeline."""

import math
import os

import pytest

from chapter_merge.chapters import build_chapters, chapter_title, duration_to_ms
from chapter_merge.errors import ProbeError


def test_build_chapters_intro_main(make_file, fake_durations):
    paths = [make_file("intro.mp3", 1000), make_file("main.mp3", 50000)]
    durations = fake_durations({"intro.mp3": 2.0, "main.mp3": 58.5})

    chapters = build_chapters(paths, durations)

    assert [(c.element_id, c.title) for c in chapters] == [
        ("chapter_0", "intro"),
        ("chapter_1", "main"),
    ]
    assert (chapters[0].start_time, chapters[0].end_time) == (0, 2000)
    assert (chapters[0].start_offset, chapters[0].end_offset) == (0, 1000)
    assert (chapters[1].start_time, chapters[1].end_time) == (2000, 60500)
    assert (chapters[1].start_offset, chapters[1].end_offset) == (1000, 51000)
    assert chapters[1].source_file == paths[1]


def test_build_chapters_contiguous_and_exact(make_file, fake_durations):
    specs = [(1.234, 17), (0.0, 0), (300.0625, 4096), (12.5, 1), (7.0009, 333)]
    paths = []
    seconds = {}
    for i, (secs, size) in enumerate(specs):
        paths.append(make_file("{:02d}.mp3".format(i), size))
        seconds["{:02d}.mp3".format(i)] = secs

    chapters = build_chapters(paths, fake_durations(seconds))

    assert len(chapters) == len(specs)
    assert chapters[0].start_time == 0
    assert chapters[0].start_offset == 0
    for prev, nxt in zip(chapters, chapters[1:]):
        assert nxt.start_time == prev.end_time
        assert nxt.start_offset == prev.end_offset
    for chapter, (secs, size) in zip(chapters, specs):
        assert chapter.end_time - chapter.start_time == duration_to_ms(secs)
        assert chapter.end_offset - chapter.start_offset == size
    assert [c.element_id for c in chapters] == [
        "chapter_{}".format(i) for i in range(len(specs))
    ]


def test_build_chapters_zero_width(make_file, fake_durations):
    paths = [make_file("a.mp3", 10), make_file("empty.mp3", 0), make_file("b.mp3", 5)]
    durations = fake_durations({"a.mp3": 1.0, "empty.mp3": 0.0, "b.mp3": 1.0})

    chapters = build_chapters(paths, durations)

    assert chapters[1].start_time == chapters[1].end_time == 1000
    assert chapters[1].start_offset == chapters[1].end_offset == 10
    assert chapters[2].start_time == 1000


def test_build_chapters_has_no_state_between_calls(make_file, fake_durations):
    paths = [make_file("a.mp3", 10), make_file("b.mp3", 20)]
    durations = fake_durations({"a.mp3": 1.0, "b.mp3": 2.0})

    assert build_chapters(paths, durations) == build_chapters(paths, durations)


def test_build_chapters_reports_progress(make_file, fake_durations):
    paths = [make_file("a.mp3"), make_file("b.mp3")]
    seen = []
    build_chapters(paths, fake_durations({"a.mp3": 1, "b.mp3": 1}), progress=seen.append)
    assert seen == paths


def test_build_chapters_missing_file(tmp_dir, fake_durations):
    path = os.path.join(tmp_dir, "missing.mp3")
    with pytest.raises(ProbeError) as exc_info:
        build_chapters([path], fake_durations({"missing.mp3": 1.0}))
    assert exc_info.value.path == path
    assert "missing.mp3" in exc_info.value.message


def test_build_chapters_propagates_probe_error(make_file):
    class FailingDurations:
        def duration(self, path):
            raise ProbeError("failed to get duration of input file '{}'".format(path), path)

    path = make_file("bad.mp3", 10)
    with pytest.raises(ProbeError) as exc_info:
        build_chapters([path], FailingDurations())
    assert exc_info.value.path == path


def test_build_chapters_rejects_negative_duration(make_file, fake_durations):
    path = make_file("neg.mp3", 10)
    with pytest.raises(ProbeError, match="neg.mp3"):
        build_chapters([path], fake_durations({"neg.mp3": -1.0}))


def test_build_chapters_rejects_32bit_overflow(make_file, fake_durations):
    path = make_file("long.mp3", 10)
    with pytest.raises(ProbeError, match="32-bit"):
        build_chapters([path], fake_durations({"long.mp3": 5_000_000.0}))


def test_duration_to_ms_rounds_half_away_from_zero():
    # 0.0625 and 0.1875 are exact in binary, so x * 1000 lands on .5
    assert duration_to_ms(0.0625) == 63
    assert duration_to_ms(0.1875) == 188
    assert duration_to_ms(2.0) == 2000
    assert duration_to_ms(58.5) == 58500
    assert duration_to_ms(0.0) == 0


@pytest.mark.parametrize("value", [-0.001, math.nan, math.inf])
def test_duration_to_ms_rejects_invalid(value):
    with pytest.raises(ValueError):
        duration_to_ms(value)


def test_chapter_title():
    assert chapter_title("intro.mp3") == "intro"
    assert chapter_title("/books/part.one.mp3") == "part.one"
    assert chapter_title("dir/no_extension") == "no_extension"
    assert chapter_title("it's here.mp3") == "it's here"


@pytest.mark.parametrize("path", ["", ".", "..", "/"])
def test_chapter_title_without_stem(path):
    with pytest.raises(ProbeError):
        chapter_title(path)
