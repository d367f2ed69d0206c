from __future__ import annotations

import sqlite3
import tempfile
import zipfile
from pathlib import Path

import pytest

from bifrost.common.cancel import CancelToken
from bifrost.common.config_loader import load_config
from bifrost.common.errors import Canceled, HttpStatusError, MemberNotFound, ParseError
from bifrost.flows.geo import run_geo_flow

ZIP_URL = "http://download.example.test/export/zip/allCountries.zip"
HAPPY_LINE = "IN\t560095\tKoramangala VI Bk\tKarnataka\t19\tBengaluru\t583\tBangalore South\t\t13.1077\t77.581\t1\n"


class FakeHttpClient:
    def __init__(self, bodies: dict):
        self.bodies = bodies
        self.fetched: list[str] = []

    def fetch(self, url, out, *, cancel=None):
        if cancel is not None:
            cancel.raise_if_cancelled()
        self.fetched.append(url)
        body = self.bodies[url]
        if isinstance(body, Exception):
            raise body
        out.write(body)
        return len(body), "application/zip"

    def close(self):
        return None


def _zip_bytes(tmp_path: Path, members: dict[str, str]) -> bytes:
    path = tmp_path / "fixture.zip"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, body in members.items():
            archive.writestr(name, body)
    return path.read_bytes()


def _config(tmp_path: Path) -> dict:
    cfg = load_config(None)
    cfg["atlas"]["source_url"] = ZIP_URL
    cfg["atlas"]["database_path"] = str(tmp_path / "atlas" / "data" / "atlas.db")
    return cfg


def _query(cfg: dict, sql: str, params: tuple = ()) -> list[tuple]:
    conn = sqlite3.connect(cfg["atlas"]["database_path"])
    try:
        return conn.execute(sql, params).fetchall()
    finally:
        conn.close()


@pytest.fixture()
def scratch_tempdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


@pytest.mark.integration
def test_geo_flow_happy_path(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    client = FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": HAPPY_LINE})})

    result = run_geo_flow(cfg, http_client=client)

    assert result["status"] == "updated"
    assert result["rows"] == 1
    rows = _query(
        cfg,
        "SELECT latitude, longitude, accuracy, admin_code3 FROM geo_location WHERE postal_code = ?",
        ("560095",),
    )
    assert rows == [(13.1077, 77.581, 1, "")]
    assert list(scratch_tempdir.iterdir()) == []


@pytest.mark.integration
def test_geo_flow_blank_accuracy_stored_as_zero(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    line = HAPPY_LINE.replace("\t1\n", "\t \n")
    client = FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": line})})

    run_geo_flow(cfg, http_client=client)

    assert _query(cfg, "SELECT accuracy FROM geo_location WHERE postal_code = '560095'") == [(0,)]


@pytest.mark.integration
def test_geo_flow_rerun_does_not_duplicate(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    body = HAPPY_LINE + "IN\t560001\tBangalore GPO\tKarnataka\t19\tBengaluru\t583\tBangalore North\t\t12.98\t77.59\t4\n"
    client = FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": body})})

    run_geo_flow(cfg, http_client=client)
    result = run_geo_flow(cfg, http_client=client)

    assert result["rows"] == 2
    assert _query(cfg, "SELECT COUNT(*) FROM geo_location") == [(2,)]


@pytest.mark.integration
def test_geo_flow_bad_coordinate_keeps_previous_table(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    run_geo_flow(cfg, http_client=FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": HAPPY_LINE})}))

    broken = "IN\t110001\tConnaught Place\tDelhi\t07\tNew Delhi\t\t\t\t28.63\t77.21\t4\n" + HAPPY_LINE.replace("13.1077", "north")
    with pytest.raises(ParseError) as excinfo:
        run_geo_flow(cfg, http_client=FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": broken})}))

    assert excinfo.value.stage == "normalize"
    assert _query(cfg, "SELECT postal_code FROM geo_location") == [("560095",)]
    assert list(scratch_tempdir.iterdir()) == []


@pytest.mark.integration
def test_geo_flow_missing_member(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    client = FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"readme.txt": "x"})})

    with pytest.raises(MemberNotFound) as excinfo:
        run_geo_flow(cfg, http_client=client)

    assert excinfo.value.stage == "decode"
    assert not Path(cfg["atlas"]["database_path"]).exists()
    assert list(scratch_tempdir.iterdir()) == []


@pytest.mark.integration
def test_geo_flow_http_failure_is_attributed_to_acquire(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    client = FakeHttpClient({ZIP_URL: HttpStatusError("HTTP status 404", status_code=404)})

    with pytest.raises(HttpStatusError) as excinfo:
        run_geo_flow(cfg, http_client=client)

    assert excinfo.value.stage == "acquire"
    assert list(scratch_tempdir.iterdir()) == []


@pytest.mark.integration
def test_geo_flow_cancelled_before_start(tmp_path: Path, scratch_tempdir: Path):
    cfg = _config(tmp_path)
    token = CancelToken()
    token.cancel()
    client = FakeHttpClient({ZIP_URL: _zip_bytes(tmp_path, {"allCountries.txt": HAPPY_LINE})})

    with pytest.raises(Canceled):
        run_geo_flow(cfg, http_client=client, cancel=token)

    assert client.fetched == []
    assert not Path(cfg["atlas"]["database_path"]).exists()
