"""Data models used across the ingestion flows and the lookup API."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass(frozen=True)
class GeoRecord:
    country_code: str
    postal_code: str
    place_name: str
    admin_name1: str
    admin_code1: str
    admin_name2: str
    admin_code2: str
    admin_name3: str
    admin_code3: str
    latitude: float
    longitude: float
    accuracy: int

    def to_params(self) -> tuple:
        return tuple(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class BankRecord:
    """A row of IFSC.csv; boolean columns keep their source encoding."""

    name: str
    ifsc: str
    branch: str
    center: str
    district: str
    state: str
    address: str
    contact: str
    imps: str
    rtgs: str
    city: str
    iso3166: str
    neft: str
    micr: str
    upi: str
    swift: str
    code: str = ""

    def to_params(self) -> tuple:
        return tuple(getattr(self, f.name) for f in fields(self))


@dataclass(frozen=True)
class BankCode:
    ifsc: str
    code: str


@dataclass(frozen=True)
class GeoLocation:
    country_code: str
    postal_code: str
    place_name: str
    admin_name1: str
    admin_code1: str
    admin_name2: str
    admin_code2: str
    admin_name3: str
    admin_code3: str
    latitude: float
    longitude: float
    accuracy: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Bank:
    name: str
    code: str
    ifsc: str
    branch: str
    center: str
    district: str
    state: str
    address: str
    contact: str
    imps: bool
    rtgs: bool
    city: str
    iso3166: str
    neft: bool
    micr: str
    upi: bool
    swift: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
