"""IFSC lookups against the finly database."""

from __future__ import annotations

from pathlib import Path

from bifrost.common.constants import FINLY_DB_PATH
from bifrost.common.errors import BankNotFound
from bifrost.common.models import Bank
from bifrost.lookup.store import ReadOnlyStore

GET_BANK_BY_IFSC = """SELECT name, code, ifsc, branch, center,
district, state, address, contact,
imps, rtgs, city, iso3166,
neft, micr, upi, swift
FROM bank WHERE ifsc = ?"""

TRUE_VALUES = {"1", "true", "yes"}


def as_bool(value: object) -> bool:
    # BOOLEAN columns hold whatever the source CSV carried.
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)


class Finly(ReadOnlyStore):
    def __init__(self, path: Path = Path(FINLY_DB_PATH)) -> None:
        super().__init__(path)

    def get_bank_by_ifsc(self, ifsc: str) -> Bank:
        row = self.query_one(GET_BANK_BY_IFSC, (ifsc,))
        if row is None:
            raise BankNotFound(f"bank not found for ifsc {ifsc}")
        return Bank(
            name=row["name"],
            code=row["code"],
            ifsc=row["ifsc"],
            branch=row["branch"],
            center=row["center"],
            district=row["district"],
            state=row["state"],
            address=row["address"],
            contact=row["contact"],
            imps=as_bool(row["imps"]),
            rtgs=as_bool(row["rtgs"]),
            city=row["city"],
            iso3166=row["iso3166"],
            neft=as_bool(row["neft"]),
            micr=row["micr"],
            upi=as_bool(row["upi"]),
            swift=row["swift"],
        )
