"""YAML manifest: metadata and file order for a merge."""

from __future__ import annotations

import datetime
import os

import yaml

from chapter_merge.errors import ManifestError
from chapter_merge.metadata import SEPARATOR
from chapter_merge.models import MetadataFields

_SCALAR_KEYS = (
    "title",
    "subtitle",
    "cover",
    "album",
    "album_artist",
    "date_released",
    "comments",
)
_LIST_KEYS = ("artists", "genres")


def load_manifest(path: str) -> dict:
    """Load a manifest file. An empty file yields an empty manifest."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ManifestError("failed to read manifest '{}'".format(path)) from exc
    except (yaml.YAMLError, ValueError) as exc:
        # ValueError: unquoted dates such as 2023-02-30 fail while loading
        raise ManifestError("invalid manifest '{}': {}".format(path, exc)) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ManifestError("manifest '{}' must be a mapping".format(path))
    return data


def get_file_order(manifest: dict, base_dir: str) -> list[str] | None:
    """Return manifest input files, resolved against ``base_dir``.

    Returns None if the manifest has no ``files`` entry.
    """
    files = manifest.get("files")
    if not files:
        return None
    if not isinstance(files, list):
        raise ManifestError("manifest 'files' must be a list")

    paths = []
    for entry in files:
        entry = str(entry)
        if os.path.isabs(entry):
            paths.append(entry)
        else:
            paths.append(os.path.join(base_dir, entry))
    return paths


def get_metadata(manifest: dict, base_dir: str | None = None) -> MetadataFields:
    """Build MetadataFields from manifest keys. Missing keys stay None.

    A relative ``cover`` is resolved against ``base_dir`` when one is given.
    """
    values = {}
    for key in _SCALAR_KEYS:
        value = manifest.get(key)
        if value is None:
            continue
        if isinstance(value, datetime.date):
            value = value.isoformat()
        values[key] = str(value)

    cover = values.get("cover")
    if cover and base_dir and not os.path.isabs(cover):
        values["cover"] = os.path.join(base_dir, cover)

    for key in _LIST_KEYS:
        value = manifest.get(key)
        if value is None:
            continue
        if isinstance(value, list):
            value = SEPARATOR.join(str(v) for v in value)
        values[key] = str(value)

    return MetadataFields(**values)
