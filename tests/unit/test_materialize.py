from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from bifrost.common.errors import Canceled, DatabaseError
from bifrost.common.models import BankRecord, GeoRecord
from bifrost.pipeline.materialize import BANK_TABLE, GEO_TABLE, VERSION_TABLE, Materializer, SqliteEngine


def _geo(postal_code: str) -> GeoRecord:
    return GeoRecord("IN", postal_code, "Place", "State", "19", "District", "583", "Taluk", "", 13.1, 77.5, 1)


def _bank(ifsc: str, code: str = "") -> BankRecord:
    return BankRecord("Bank", ifsc, "", "", "", "", "", "", "1", "0", "", "", "1", "", "0", "", code or ifsc[:4])


def _rows(db_path: Path, sql: str) -> list[tuple]:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def test_transaction_commits_rows(tmp_path: Path):
    db_path = tmp_path / "atlas" / "data" / "atlas.db"
    materializer = Materializer(SqliteEngine(db_path))

    with materializer.transaction():
        materializer.rebuild(GEO_TABLE)
        count = materializer.insert_many(GEO_TABLE, iter([_geo("560095"), _geo("560001")]))

    assert count == 2
    assert _rows(db_path, "SELECT postal_code, accuracy FROM geo_location ORDER BY id") == [("560095", 1), ("560001", 1)]
    assert _rows(db_path, "SELECT name FROM sqlite_master WHERE name = 'idx_geo_location_postal_code'")


def test_rebuild_replaces_previous_contents(tmp_path: Path):
    materializer = Materializer(SqliteEngine(tmp_path / "atlas.db"))
    for _ in range(2):
        with materializer.transaction():
            materializer.rebuild(GEO_TABLE)
            materializer.insert_many(GEO_TABLE, [_geo("560095")])

    assert _rows(tmp_path / "atlas.db", "SELECT COUNT(*) FROM geo_location") == [(1,)]


def test_failure_rolls_back_drop_and_inserts(tmp_path: Path):
    db_path = tmp_path / "finly.db"
    materializer = Materializer(SqliteEngine(db_path))
    with materializer.transaction():
        materializer.rebuild(BANK_TABLE)
        materializer.rebuild(VERSION_TABLE)
        materializer.insert_many(BANK_TABLE, [_bank("ABHY0065001")])
        materializer.record_version("IFSC.csv", "v1")

    with pytest.raises(DatabaseError):
        with materializer.transaction():
            materializer.rebuild(BANK_TABLE)
            materializer.rebuild(VERSION_TABLE)
            # Duplicate IFSC violates the unique constraint.
            materializer.insert_many(BANK_TABLE, [_bank("HDFC0000123"), _bank("HDFC0000123")])

    assert _rows(db_path, "SELECT ifsc FROM bank") == [("ABHY0065001",)]
    assert _rows(db_path, "SELECT name, version FROM version") == [("IFSC.csv", "v1")]


def test_error_from_record_stream_rolls_back(tmp_path: Path):
    db_path = tmp_path / "atlas.db"
    materializer = Materializer(SqliteEngine(db_path))

    def records():
        yield _geo("560095")
        raise Canceled("stop")

    with pytest.raises(Canceled):
        with materializer.transaction():
            materializer.ensure(GEO_TABLE)
            materializer.insert_many(GEO_TABLE, records())

    assert _rows(db_path, "SELECT name FROM sqlite_master WHERE name = 'geo_location'") == []


def test_bank_booleans_bound_as_source_strings(tmp_path: Path):
    db_path = tmp_path / "finly.db"
    materializer = Materializer(SqliteEngine(db_path))
    with materializer.transaction():
        materializer.rebuild(BANK_TABLE)
        materializer.insert_many(BANK_TABLE, [_bank("ABHY0065001", "ABHY")])

    assert _rows(db_path, "SELECT code, imps, rtgs, upi FROM bank") == [("ABHY", 1, 0, 0)]


def test_statement_outside_transaction_is_rejected(tmp_path: Path):
    with pytest.raises(DatabaseError):
        Materializer(SqliteEngine(tmp_path / "x.db")).ensure(GEO_TABLE)
