from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from bifrost.common.errors import BankNotFound, DatabaseError, GeoLocationNotFound
from bifrost.common.models import BankRecord, GeoRecord
from bifrost.lookup.atlas import Atlas
from bifrost.lookup.finly import Finly, as_bool
from bifrost.pipeline.materialize import BANK_TABLE, GEO_TABLE, Materializer, SqliteEngine


def _build(db_path: Path, table, records) -> None:
    materializer = Materializer(SqliteEngine(db_path))
    with materializer.transaction():
        materializer.rebuild(table)
        materializer.insert_many(table, records)


def test_atlas_returns_geo_location(tmp_path: Path):
    db_path = tmp_path / "atlas.db"
    _build(
        db_path,
        GEO_TABLE,
        [GeoRecord("IN", "560095", "Koramangala VI Bk", "Karnataka", "19", "Bengaluru", "583", "Bangalore South", "", 13.1077, 77.581, 1)],
    )

    with Atlas(db_path) as atlas:
        geo = atlas.get_geo_location_by_postal_code("560095")

    assert geo.place_name == "Koramangala VI Bk"
    assert (geo.latitude, geo.longitude, geo.accuracy) == (13.1077, 77.581, 1)
    assert geo.to_dict()["admin_code3"] == ""


def test_atlas_missing_postal_code_raises(tmp_path: Path):
    db_path = tmp_path / "atlas.db"
    _build(db_path, GEO_TABLE, [])

    with Atlas(db_path) as atlas:
        with pytest.raises(GeoLocationNotFound):
            atlas.get_geo_location_by_postal_code("000000")


def test_finly_returns_bank_with_decoded_booleans(tmp_path: Path):
    db_path = tmp_path / "finly.db"
    _build(
        db_path,
        BANK_TABLE,
        [BankRecord("Abhyudaya", "ABHY0065001", "RTGS-HO", "", "", "", "", "", "1", "0", "", "IN-MH", "true", "", "false", "", "ABHY")],
    )

    with Finly(db_path) as finly:
        bank = finly.get_bank_by_ifsc("ABHY0065001")
        with pytest.raises(BankNotFound):
            finly.get_bank_by_ifsc("HDFC0000123")

    assert bank.code == "ABHY"
    assert (bank.imps, bank.rtgs, bank.neft, bank.upi) == (True, False, True, False)


def test_lookup_store_is_read_only(tmp_path: Path):
    db_path = tmp_path / "atlas.db"
    _build(db_path, GEO_TABLE, [])

    with Atlas(db_path) as atlas:
        with pytest.raises(sqlite3.OperationalError):
            atlas.conn.execute("DELETE FROM geo_location")


def test_lookup_missing_database_raises(tmp_path: Path):
    with pytest.raises(DatabaseError):
        Atlas(tmp_path / "missing.db")


@pytest.mark.parametrize("value,expected", [(1, True), (0, False), ("1", True), ("TRUE", True), ("0", False), ("", False), (None, False)])
def test_as_bool(value, expected):
    assert as_bool(value) is expected
