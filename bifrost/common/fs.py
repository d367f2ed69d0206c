"""Filesystem helpers."""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from bifrost.common.errors import DecodeError, FilesystemError


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def read_json(path: Path):
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except ValueError as exc:
        raise DecodeError(f"Invalid JSON document at {path}") from exc


@contextmanager
def scoped_tempfile(prefix: str, suffix: str = "") -> Iterator[tuple[Path, IO[bytes]]]:
    """Create a uniquely named temp file and remove it on every exit path."""
    try:
        handle = tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, delete=False)
    except OSError as exc:
        raise FilesystemError("Could not create temporary file") from exc
    path = Path(handle.name)
    try:
        yield path, handle
    finally:
        handle.close()
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
