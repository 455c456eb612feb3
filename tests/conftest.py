"""Shared test fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile

import pytest


@pytest.fixture
def tmp_dir():
    """Create a temporary directory that's cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def make_file(tmp_dir):
    """Factory fixture that creates a file of ``size`` zero bytes."""

    def _make(filename: str, size: int = 0) -> str:
        path = os.path.join(tmp_dir, filename)
        with open(path, "wb") as f:
            f.write(b"\x00" * size)
        return path

    return _make


@pytest.fixture
def make_mp3(tmp_dir):
    """Factory fixture that creates short silent MP3 files for testing."""
    if shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None:
        pytest.skip("ffmpeg/ffprobe not installed")

    def _make(filename: str, duration_s: float = 1.0) -> str:
        path = os.path.join(tmp_dir, filename)
        cmd = [
            "ffmpeg", "-y",
            "-f", "lavfi", "-i",
            "anullsrc=r=44100:cl=mono",
            "-t", str(duration_s),
            "-q:a", "9",
            "-map_metadata", "-1",
            path,
        ]
        subprocess.run(cmd, capture_output=True, check=True)
        return path

    return _make


@pytest.fixture
def sample_mp3s(make_mp3, tmp_dir):
    """Create a set of 3 short MP3 files for integration tests."""
    make_mp3("01_intro.mp3", duration_s=1.0)
    make_mp3("02_chapter1.mp3", duration_s=1.5)
    make_mp3("10_chapter2.mp3", duration_s=2.0)
    return tmp_dir


class FakeDurations:
    """DurationProvider returning fixed durations keyed by file name."""

    def __init__(self, durations: dict[str, float]):
        self.durations = durations
        self.calls = []

    def duration(self, path: str) -> float:
        self.calls.append(path)
        return self.durations[os.path.basename(path)]


class FakeConcatenator:
    """Concatenator that joins the bytes of the files in the directive list."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.list_contents = None

    def concat(self, list_path: str, output_path: str) -> None:
        with open(list_path, encoding="utf-8") as f:
            self.list_contents = f.read()
        if self.fail:
            raise OSError("concat failed")

        base_dir = os.path.dirname(os.path.abspath(list_path))
        with open(output_path, "wb") as out:
            for line in self.list_contents.splitlines():
                path = line[len("file '"):-1].replace("'\\''", "'")
                with open(os.path.join(base_dir, path), "rb") as f:
                    out.write(f.read())


@pytest.fixture
def fake_durations():
    return FakeDurations


@pytest.fixture
def fake_concatenator():
    return FakeConcatenator
