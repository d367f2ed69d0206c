"""Read-only SQLite access shared by the lookup stores."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from types import TracebackType

from bifrost.common.errors import DatabaseError


class ReadOnlyStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        try:
            self.conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Could not open database {self.path}") from exc
        self.conn.row_factory = sqlite3.Row

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def query_one(self, sql: str, params: tuple) -> sqlite3.Row | None:
        try:
            return self.conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise DatabaseError(f"Query against {self.path} failed") from exc
