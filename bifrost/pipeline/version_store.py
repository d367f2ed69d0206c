"""Persisted upstream release tag for the bank flow."""

from __future__ import annotations

import os
from pathlib import Path

from bifrost.common.constants import VERSION_FILE_PREFIX
from bifrost.common.errors import FilesystemError
from bifrost.common.fs import ensure_dir

FILE_MODE = 0o644


def parse_version_text(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith(VERSION_FILE_PREFIX):
        return ""
    tokens = stripped[len(VERSION_FILE_PREFIX) :].split()
    return tokens[0] if tokens else ""


class VersionStore:
    """Single-line ``TAG_VERSION=<tag>`` file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _open(self):
        ensure_dir(self.path.parent)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, FILE_MODE)
        return os.fdopen(fd, "r+", encoding="utf-8")

    def read(self) -> str:
        try:
            with self._open() as f:
                return parse_version_text(f.read())
        except OSError as exc:
            raise FilesystemError(f"Could not read version file {self.path}") from exc

    def write(self, tag: str) -> None:
        try:
            with self._open() as f:
                f.seek(0)
                f.write(f"{VERSION_FILE_PREFIX}{tag}")
                f.truncate()
        except OSError as exc:
            raise FilesystemError(f"Could not write version file {self.path}") from exc
