"""Row normalisation into typed dataset records."""

from __future__ import annotations

import math
from dataclasses import fields

from bifrost.common.errors import ParseError
from bifrost.common.models import BankRecord, GeoRecord

GEO_COLUMN_COUNT = 12
BANK_COLUMNS = tuple(f.name for f in fields(BankRecord) if f.name != "code")
BANK_MIN_COLUMNS = 2


def _parse_coordinate(value: str, column: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ParseError(f"Invalid {column} {value!r}") from exc
    if not math.isfinite(parsed):
        raise ParseError(f"Non-finite {column} {value!r}")
    return parsed


def _parse_accuracy(value: str) -> int:
    cleaned = value.strip()
    if not cleaned:
        return 0
    try:
        return int(cleaned)
    except ValueError as exc:
        raise ParseError(f"Invalid accuracy {value!r}") from exc


def normalize_geo_row(row: list[str]) -> GeoRecord:
    if len(row) != GEO_COLUMN_COUNT:
        raise ParseError(f"Geo record has {len(row)} columns, expected {GEO_COLUMN_COUNT}")
    return GeoRecord(
        country_code=row[0],
        postal_code=row[1],
        place_name=row[2],
        admin_name1=row[3],
        admin_code1=row[4],
        admin_name2=row[5],
        admin_code2=row[6],
        admin_name3=row[7],
        admin_code3=row[8],
        latitude=_parse_coordinate(row[9], "latitude"),
        longitude=_parse_coordinate(row[10], "longitude"),
        accuracy=_parse_accuracy(row[11]),
    )


def normalize_bank_row(row: list[str]) -> BankRecord:
    """Map an IFSC.csv record onto ``BankRecord``, padding omitted trailing columns."""
    if len(row) < BANK_MIN_COLUMNS:
        raise ParseError(f"Bank record has {len(row)} columns, expected at least {BANK_MIN_COLUMNS}")
    if len(row) > len(BANK_COLUMNS):
        raise ParseError(f"Bank record has {len(row)} columns, expected at most {len(BANK_COLUMNS)}")
    padded = list(row) + [""] * (len(BANK_COLUMNS) - len(row))
    return BankRecord(**dict(zip(BANK_COLUMNS, padded)))
