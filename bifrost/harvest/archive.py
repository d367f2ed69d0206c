"""ZIP member access for downloaded archives."""

from __future__ import annotations

import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from bifrost.common.errors import ArchiveError, MemberNotFound


@contextmanager
def open_member(archive_path: Path, member_name: str) -> Iterator[IO[bytes]]:
    """Yield a reader over the decompressed bytes of ``member_name``.

    The reader is only valid inside the ``with`` block; leaving it closes the
    member and the archive handle together.
    """
    try:
        archive = zipfile.ZipFile(archive_path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"Could not open ZIP archive {archive_path}") from exc

    with archive:
        info = next((item for item in archive.infolist() if item.filename == member_name), None)
        if info is None:
            raise MemberNotFound(f"{member_name} not found in ZIP archive {archive_path}")
        try:
            member = archive.open(info)
        except (zipfile.BadZipFile, NotImplementedError, RuntimeError) as exc:
            raise ArchiveError(f"Could not open {member_name} in {archive_path}") from exc
        with member:
            yield member
