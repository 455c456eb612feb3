"""Merge audio files into a single chaptered MP3."""

__version__ = "0.1.0"
