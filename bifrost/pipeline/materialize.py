"""Transactional table rebuilds against the embedded SQLite databases."""

from __future__ import annotations

import contextlib
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from bifrost.common.errors import DatabaseError, FilesystemError
from bifrost.common.fs import ensure_dir


class Row(Protocol):
    def to_params(self) -> tuple: ...


@dataclass(frozen=True)
class Table:
    name: str
    create_sql: str
    columns: tuple[str, ...]
    indexes: tuple[str, ...] = ()

    @property
    def insert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT INTO {self.name} ({', '.join(self.columns)}) VALUES ({placeholders})"


GEO_TABLE = Table(
    name="geo_location",
    create_sql="""CREATE TABLE IF NOT EXISTS geo_location (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        country_code TEXT,
        postal_code TEXT,
        place_name TEXT,
        admin_name1 TEXT,
        admin_code1 TEXT,
        admin_name2 TEXT,
        admin_code2 TEXT,
        admin_name3 TEXT,
        admin_code3 TEXT,
        latitude REAL,
        longitude REAL,
        accuracy INTEGER,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    columns=(
        "country_code",
        "postal_code",
        "place_name",
        "admin_name1",
        "admin_code1",
        "admin_name2",
        "admin_code2",
        "admin_name3",
        "admin_code3",
        "latitude",
        "longitude",
        "accuracy",
    ),
    indexes=("CREATE INDEX IF NOT EXISTS idx_geo_location_postal_code ON geo_location (postal_code)",),
)

BANK_TABLE = Table(
    name="bank",
    create_sql="""CREATE TABLE IF NOT EXISTS bank (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT,
        code TEXT,
        ifsc TEXT UNIQUE,
        branch TEXT,
        center TEXT,
        district TEXT,
        state TEXT,
        address TEXT,
        contact TEXT,
        imps BOOLEAN,
        rtgs BOOLEAN,
        city TEXT,
        iso3166 TEXT,
        neft BOOLEAN,
        micr TEXT,
        upi BOOLEAN,
        swift TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )""",
    columns=(
        "name",
        "ifsc",
        "branch",
        "center",
        "district",
        "state",
        "address",
        "contact",
        "imps",
        "rtgs",
        "city",
        "iso3166",
        "neft",
        "micr",
        "upi",
        "swift",
        "code",
    ),
)

VERSION_TABLE = Table(
    name="version",
    create_sql="""CREATE TABLE IF NOT EXISTS version (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT,
        version TEXT UNIQUE,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    columns=("name", "version"),
)


class SqliteEngine:
    """Write handle factory for one SQLite database file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def connect(self) -> sqlite3.Connection:
        try:
            ensure_dir(self.path.parent)
        except OSError as exc:
            raise FilesystemError(f"Could not create database directory {self.path.parent}") from exc
        try:
            # Autocommit mode: transactions are opened explicitly so DDL is covered too.
            return sqlite3.connect(str(self.path), isolation_level=None)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Could not open database {self.path}") from exc


class Materializer:
    def __init__(self, engine: SqliteEngine) -> None:
        self.engine = engine
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DatabaseError("No open transaction")
        return self._conn

    def _execute(self, sql: str, params: tuple = ()) -> None:
        try:
            self.conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Statement failed: {exc}") from exc

    @contextmanager
    def transaction(self) -> Iterator["Materializer"]:
        """Run the enclosed writes in one transaction, rolled back on any exception."""
        if self._conn is not None:
            raise DatabaseError("Transaction already open")
        self._conn = self.engine.connect()
        try:
            self._execute("BEGIN IMMEDIATE")
            try:
                yield self
                self._execute("COMMIT")
            except BaseException:
                self._rollback()
                raise
        finally:
            self._conn.close()
            self._conn = None

    def _rollback(self) -> None:
        if not self.conn.in_transaction:
            return
        # Closing the connection discards the transaction if ROLLBACK itself fails.
        with contextlib.suppress(sqlite3.Error):
            self.conn.execute("ROLLBACK")

    def ensure(self, table: Table) -> None:
        self._execute(table.create_sql)
        for index_sql in table.indexes:
            self._execute(index_sql)

    def rebuild(self, table: Table) -> None:
        self._execute(f"DROP TABLE IF EXISTS {table.name}")
        self.ensure(table)

    def insert_many(self, table: Table, records: Iterable[Row]) -> int:
        count = 0

        def _params() -> Iterator[tuple]:
            nonlocal count
            for record in records:
                yield record.to_params()
                count += 1

        try:
            self.conn.executemany(table.insert_sql, _params())
        except sqlite3.Error as exc:
            raise DatabaseError(f"Insert into {table.name} failed after {count} rows: {exc}") from exc
        return count

    def record_version(self, asset_name: str, tag: str) -> None:
        self._execute(VERSION_TABLE.insert_sql, (asset_name, tag))
