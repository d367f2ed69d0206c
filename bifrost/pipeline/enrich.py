"""Bank code enrichment from the banks.json catalog."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterable

from bifrost.common.errors import DecodeError, ParseError
from bifrost.common.models import BankCode, BankRecord

BANK_CODE_LENGTH = 4


def iter_catalog_entries(payload: Any) -> Iterable[BankCode]:
    if not isinstance(payload, dict):
        raise DecodeError("Bank catalog must be a JSON object")
    for key, entry in payload.items():
        if not isinstance(entry, dict):
            raise DecodeError(f"Bank catalog entry {key!r} is not an object")
        ifsc = entry.get("ifsc")
        code = entry.get("code")
        if not isinstance(ifsc, str) or not isinstance(code, str) or not ifsc or not code:
            continue
        yield BankCode(ifsc=ifsc, code=code)


class BankCodeJoiner:
    def __init__(self, codes: Iterable[BankCode]) -> None:
        self.ifsc_to_code: dict[str, str] = {}
        for entry in codes:
            self.ifsc_to_code[entry.ifsc] = entry.code

    @classmethod
    def from_catalog(cls, payload: Any) -> "BankCodeJoiner":
        return cls(iter_catalog_entries(payload))

    def __len__(self) -> int:
        return len(self.ifsc_to_code)

    def code_for(self, ifsc: str) -> str:
        if len(ifsc) < BANK_CODE_LENGTH:
            raise ParseError(f"IFSC {ifsc!r} is shorter than {BANK_CODE_LENGTH} characters")
        code = self.ifsc_to_code.get(ifsc)
        if code is not None:
            return code
        # IFSC prefix identifies the bank.
        return ifsc[:BANK_CODE_LENGTH]

    def enrich(self, record: BankRecord) -> BankRecord:
        return replace(record, code=self.code_for(record.ifsc))
